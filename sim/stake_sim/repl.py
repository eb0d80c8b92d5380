"""
Claim Stake Simulator - Interactive REPL
==========================================
"""

import cmd
from typing import Optional

import yaml

from stake_sim.achievements import ACHIEVEMENTS, completion_stats, update_achievements
from stake_sim.catalog import CatalogError, catalog_summary, load_catalog
from stake_sim.construction import cancel_construction, check_construction, start_construction
from stake_sim.engine import SimulationEngine, refresh_rates, tick
from stake_sim.format import fmt_time, print_full_report, print_rates, print_state
from stake_sim.fuel import fuel_report
from stake_sim.io import list_saves, load_game, load_scenario, save_game, snapshot_state
from stake_sim.lifecycle import purchase_claim_stake, resupply_fuel
from stake_sim.models import EngineError, GameCatalog, GameState
from stake_sim.rates import compute_resource_rates

DEFAULT_SAVE_DIR = "saves"


class StakeREPL(cmd.Cmd):
    intro = (
        "\n"
        "================================================\n"
        "  Claim Stake Simulator - Interactive Mode\n"
        "================================================\n"
        "Type 'help' for commands. Type 'catalog' for available ids.\n"
    )
    prompt = "stake> "

    def __init__(self, catalog: GameCatalog, save_dir: str = DEFAULT_SAVE_DIR,
                 state: Optional[GameState] = None):
        super().__init__()
        self.catalog = catalog
        self.save_dir = save_dir
        self.state = state or GameState()
        self.undo_stack = []
        self.redo_stack = []

    def _save_undo(self):
        self.undo_stack.append(snapshot_state(self.state))
        self.redo_stack.clear()

    def _report(self, outcome) -> bool:
        """Print an EngineError; True when the command succeeded."""
        if isinstance(outcome, EngineError):
            print(f"Error: {outcome}")
            return False
        return True

    def _stake_id(self, ref: str) -> str:
        # Accept the 1-based position shown by 'show' as well as the full id.
        if ref.isdigit():
            ids = list(self.state.owned_claim_stakes)
            idx = int(ref) - 1
            if 0 <= idx < len(ids):
                return ids[idx]
        return ref

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def do_catalog(self, arg):
        """List catalog entries: catalog [buildings|stakes|planets]"""
        section = arg.strip() or "summary"
        if section == "summary":
            for key, count in catalog_summary(self.catalog).items():
                print(f"  {key:<24} {count}")
            print(f"  {'starter hub':<24} {self.catalog.starter_hub_id}")
        elif section == "buildings":
            print(f"\n{'Id':<36} {'Name':<28} {'Time':>8}  Cost")
            print("-" * 90)
            for b in sorted(self.catalog.buildings.values(), key=lambda b: b.id):
                cost = ", ".join(f"{r}={a:g}" for r, a in b.construction_cost.items())
                print(f"{b.id:<36} {b.name:<28} {fmt_time(b.construction_time):>8}  {cost}")
        elif section == "stakes":
            for d in sorted(self.catalog.claim_stake_definitions.values(), key=lambda d: d.id):
                print(f"  {d.id:<36} {d.name:<28} T{d.tier}  slots={d.slots}")
        elif section == "planets":
            for p in sorted(self.catalog.planets.values(), key=lambda p: p.id):
                print(f"  {p.id:<36} {p.name:<28} {p.planet_archetype}")
        else:
            print("Usage: catalog [buildings|stakes|planets]")
        print()

    def do_use(self, arg):
        """Load another catalog: use <filepath>"""
        if not arg:
            print("Usage: use <filepath>")
            return
        try:
            self.catalog = load_catalog(arg.strip())
            print(f"Catalog loaded: {len(self.catalog.buildings)} buildings")
        except (OSError, CatalogError, yaml.YAMLError) as e:
            print(f"Error: {e}")

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def do_buy(self, arg):
        """Purchase a claim stake: buy <definition_id> <planet_id>"""
        parts = arg.split()
        if len(parts) < 2:
            print("Usage: buy <definition_id> <planet_id>")
            return
        self._save_undo()
        stake = purchase_claim_stake(self.state, parts[0], parts[1], self.catalog)
        if self._report(stake):
            refresh_rates(self.state, self.catalog)
            print(f"Purchased {stake.name} ({stake.id})")
        else:
            self.undo_stack.pop()

    def do_check(self, arg):
        """Preview construction: check <stake> <building_id>"""
        parts = arg.split()
        if len(parts) < 2:
            print("Usage: check <stake> <building_id>")
            return
        result = check_construction(self.state, self._stake_id(parts[0]), parts[1], self.catalog)
        print(f"  can construct: {result.can_construct}")
        for req in result.resource_requirements:
            mark = "ok" if req.sufficient else "SHORT"
            print(f"    {req.resource_id:<28} {req.available:>10.1f} / {req.required:<10g} {mark}")
        print(f"  crew {result.crew_requirement} needed, {result.crew_available} free")
        print(f"  power {result.power_requirement:g} needed, {result.power_available:+g} net")
        for issue in result.issues:
            print(f"  - {issue}")

    def do_build(self, arg):
        """Start construction: build <stake> <building_id>"""
        parts = arg.split()
        if len(parts) < 2:
            print("Usage: build <stake> <building_id>")
            return
        self._save_undo()
        outcome = start_construction(self.state, self._stake_id(parts[0]), parts[1], self.catalog)
        if self._report(outcome):
            print(f"Construction of {parts[1]} started")
        else:
            self.undo_stack.pop()

    def do_cancel(self, arg):
        """Cancel construction (full refund): cancel <construction_id>"""
        if not arg:
            print("Usage: cancel <construction_id>")
            return
        self._save_undo()
        outcome = cancel_construction(self.state, arg.strip(), self.catalog)
        if self._report(outcome):
            print("Cancelled")
        else:
            self.undo_stack.pop()

    def do_resupply(self, arg):
        """Refuel a claim stake: resupply <stake>"""
        if not arg:
            print("Usage: resupply <stake>")
            return
        self._save_undo()
        stake = resupply_fuel(self.state, self._stake_id(arg.strip()))
        if self._report(stake):
            refresh_rates(self.state, self.catalog)
            print(f"{stake.name} refuelled")
        else:
            self.undo_stack.pop()

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def do_tick(self, arg):
        """Advance real time: tick [seconds]"""
        try:
            seconds = float(arg) if arg.strip() else 1.0
        except ValueError:
            print("Usage: tick [seconds]")
            return
        if self.state.is_paused:
            print("Paused; 'resume' first.")
            return
        self._save_undo()
        tick(self.state, seconds, self.catalog)
        for a in update_achievements(self.state, self.catalog):
            print(f"  Achievement unlocked: {a['name']} ({a['tier']})")
        print(f"Elapsed {fmt_time(self.state.elapsed_time)}")

    def do_pause(self, arg):
        """Pause the simulation"""
        self.state.is_paused = True
        print("Paused")

    def do_resume(self, arg):
        """Resume the simulation"""
        self.state.is_paused = False
        print("Running")

    def do_speed(self, arg):
        """Set speed multiplier: speed <x>"""
        try:
            self.state.speed_multiplier = max(0.0, float(arg))
        except ValueError:
            print("Usage: speed <x>")
            return
        print(f"Speed x{self.state.speed_multiplier:g}")

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def do_show(self, arg):
        """Show the game state"""
        print_state(self.state, self.catalog)

    def do_rates(self, arg):
        """Show rates: rates [stake]"""
        if arg.strip():
            stake = self.state.owned_claim_stakes.get(self._stake_id(arg.strip()))
            if stake is None:
                print(f"Unknown claim stake: {arg.strip()}")
                return
            for rid, rate in sorted(compute_resource_rates(stake, self.catalog).items()):
                print(f"  {rid:<28} {rate:+.3f}/s")
            return
        print_rates(self.state)

    def do_fuel(self, arg):
        """Fuel status of every claim stake"""
        for stake in self.state.owned_claim_stakes.values():
            report = fuel_report(stake, compute_resource_rates(stake, self.catalog))
            left = report["seconds_remaining"]
            left_str = fmt_time(left) if left is not None else "-"
            print(f"  {stake.id}  {report['fuel']:.0f}/{report['capacity']:.0f}"
                  f" ({report['status']:.0f}%)  {report['rate']:+g}/s  empty in {left_str}")

    def do_achievements(self, arg):
        """Achievement progress"""
        for a in ACHIEVEMENTS:
            entry = self.state.achievements.get(a.id, {})
            mark = "x" if entry.get("completed") else " "
            print(f"  [{mark}] {a.name:<24} {a.tier:<7} {entry.get('progress', 0.0):>5.1f}%")
        for category, row in completion_stats(self.state).items():
            print(f"  {category:<24} {row['completed']}/{row['total']}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def do_save(self, arg):
        """Save the game: save [name]"""
        save_id = save_game(self.state, self.save_dir, arg.strip())
        print(f"Saved as {save_id}")

    def do_saves(self, arg):
        """List saved games"""
        saves = list_saves(self.save_dir)
        if not saves:
            print("No saves.")
        for s in saves:
            p = s.get("preview", {})
            print(f"  {s['id']}  {s['name']:<28} {p.get('elapsedTime', '')}"
                  f"  {p.get('buildingCount', 0)} buildings")

    def do_load(self, arg):
        """Load a saved game: load <save_id>"""
        if not arg:
            print("Usage: load <save_id>")
            return
        state = load_game(self.save_dir, arg.strip())
        if state is None:
            print("Error: save not found")
            return
        self._save_undo()
        self.state = state
        print(f"Loaded (elapsed {fmt_time(state.elapsed_time)})")

    def do_sim(self, arg):
        """Run a scenario headless: sim <scenario.yaml> [duration_seconds]"""
        parts = arg.split()
        if not parts:
            print("Usage: sim <scenario.yaml> [duration_seconds]")
            return
        duration = float(parts[1]) if len(parts) > 1 else 3600.0
        try:
            scenario = load_scenario(parts[0])
        except (OSError, yaml.YAMLError, KeyError) as e:
            print(f"Error: {e}")
            return
        result = SimulationEngine(scenario, self.catalog, duration).run()
        print_full_report(result, self.catalog)

    def do_undo(self, arg):
        """Undo last change"""
        if self.undo_stack:
            self.redo_stack.append(snapshot_state(self.state))
            self.state = self.undo_stack.pop()
            print("Undone.")
        else:
            print("Nothing to undo.")

    def do_redo(self, arg):
        """Redo last undone change"""
        if self.redo_stack:
            self.undo_stack.append(snapshot_state(self.state))
            self.state = self.redo_stack.pop()
            print("Redone.")
        else:
            print("Nothing to redo.")

    def do_quit(self, arg):
        """Exit the REPL"""
        print("Bye!")
        return True

    do_exit = do_quit
    do_q = do_quit
