"""
Claim Stake Simulator - Output Formatting
===========================================
Pretty-printing for simulation results and live game state.
"""

from typing import List, Optional

from stake_sim import fuel
from stake_sim.constants import STAKE_SCOPED_RESOURCES
from stake_sim.models import GameCatalog, GameState, SimResult

MAX_RESOURCE_COLUMNS = 4


def fmt_time(seconds: float) -> str:
    total = int(seconds)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def fmt_rate(val: float) -> str:
    if abs(val) >= 100:
        return f"{val:+.0f}"
    if abs(val) >= 1:
        return f"{val:+.1f}"
    return f"{val:+.3f}"


def fmt_amount(val: float) -> str:
    if val >= 1_000_000:
        return f"{val / 1_000_000:.2f}M"
    if val >= 10_000:
        return f"{val / 1000:.1f}k"
    return f"{val:.0f}"


def _name(catalog: Optional[GameCatalog], building_id: str) -> str:
    if catalog is None:
        return building_id
    building = catalog.buildings.get(building_id)
    return building.name if building else building_id


# ---------------------------------------------------------------------------
# Simulation reports
# ---------------------------------------------------------------------------

def print_full_report(result: SimResult, catalog: Optional[GameCatalog] = None):
    print()
    print("=" * 70)
    print(f"  CLAIM STAKE SIMULATOR")
    print(f"  Scenario: {result.scenario_name}")
    print(f"  Duration: {fmt_time(result.duration)}")
    print("=" * 70)

    print_timeline(result, catalog)
    print_milestones(result)
    print_snapshots(result)
    print_rejections(result)
    if result.unlocked_achievements:
        print_achievements(result)
    print_summary(result)


def print_timeline(result: SimResult, catalog: Optional[GameCatalog] = None):
    print()
    print("--- CONSTRUCTION TIMELINE ---")
    if not result.completion_log:
        print(" Nothing completed")
        return
    print(f" {'Time':>8}  {'Claim stake':<32} {'Completed':<28}")
    print(f" {'----':>8}  {'-----------':<32} {'---------':<28}")
    for t, building_id, stake_id in result.completion_log:
        print(f" {fmt_time(t):>8}  {stake_id:<32} {_name(catalog, building_id):<28}")


def print_milestones(result: SimResult):
    if not result.milestones:
        return
    print()
    print("--- MILESTONES ---")
    for m in sorted(result.milestones, key=lambda x: x.time):
        print(f" {fmt_time(m.time):>8}  {m.description}")


def _resource_columns(result: SimResult) -> List[str]:
    ranked = sorted(
        (rid for rid in result.final_resources if rid not in STAKE_SCOPED_RESOURCES),
        key=lambda rid: -result.final_resources[rid],
    )
    return ranked[:MAX_RESOURCE_COLUMNS]


def print_snapshots(result: SimResult):
    print()
    print("--- RESOURCE SNAPSHOTS ---")
    cols = _resource_columns(result)
    header = f" {'Time':>8} {'Bldg':>5} {'Queue':>5} {'Up':>3}"
    rule = f" {'----':>8} {'----':>5} {'-----':>5} {'--':>3}"
    for rid in cols:
        header += f" {rid[-14:]:>14}"
        rule += f" {'-' * 14:>14}"
    print(header)
    print(rule)
    for s in result.snapshots:
        line = f" {fmt_time(s.time):>8} {s.building_count:>5} {s.queue_length:>5} {s.operational_stakes:>3}"
        for rid in cols:
            line += f" {fmt_amount(s.resources.get(rid, 0.0)):>14}"
        print(line)


def print_rejections(result: SimResult):
    print()
    print("--- REJECTED ORDERS ---")
    if not result.rejections:
        print(" None")
        return
    for t, what, reason in result.rejections:
        print(f" {fmt_time(t):>8}  {what:<28} {reason}")


def print_achievements(result: SimResult):
    print()
    print("--- ACHIEVEMENTS ---")
    for t, name in result.unlocked_achievements:
        print(f" {fmt_time(t):>8}  {name}")


def print_summary(result: SimResult):
    print()
    print("--- SUMMARY ---")
    print(f" Buildings completed:  {len(result.completion_log)}")
    print(f" Rejected orders:      {len(result.rejections)}")
    for rid, rate in sorted(result.peak_rates.items()):
        if rid in STAKE_SCOPED_RESOURCES:
            continue
        final = result.final_resources.get(rid, 0.0)
        print(f" {rid:<28} peak {fmt_rate(rate):>8}/s   final {fmt_amount(final):>8}")


# ---------------------------------------------------------------------------
# Live state
# ---------------------------------------------------------------------------

def print_state(state: GameState, catalog: Optional[GameCatalog] = None):
    status = "PAUSED" if state.is_paused else f"x{state.speed_multiplier:g}"
    print(f"\n  Elapsed {fmt_time(state.elapsed_time)}  [{status}]")

    print("\n  Resources:")
    if not state.resources:
        print("    (empty)")
    for rid in sorted(state.resources):
        rate = state.resource_rates.get(rid, 0.0)
        print(f"    {rid:<28} {state.resources[rid]:>12.1f}  {fmt_rate(rate):>8}/s")

    print("\n  Claim stakes:")
    if not state.owned_claim_stakes:
        print("    (none)")
    for stake in state.owned_claim_stakes.values():
        up = "online" if stake.operational else "SHUT DOWN"
        print(f"    {stake.id}  {stake.name} (T{stake.tier}, {up})")
        print(f"      fuel {fuel.fuel_amount(stake):.0f}/{stake.fuel_capacity:.0f}"
              f" ({fuel.fuel_status(stake):.0f}%)"
              f"  crew {stake.crew.used}/{stake.crew.capacity}"
              f"  power {stake.power.net:+g}"
              f"  storage {stake.storage.used:.0f}/{stake.storage.capacity:.0f}")
        for building_id, count in sorted(stake.buildings.items()):
            print(f"      {count} x {_name(catalog, building_id)}")

    if state.construction_queue:
        print("\n  Under construction:")
        for item in state.construction_queue.values():
            print(f"    {item.id}  {_name(catalog, item.building_id):<28}"
                  f" {item.progress:>4.0%}  {fmt_time(item.time_remaining)} left")
    print()


def print_rates(state: GameState):
    if not state.resource_rates:
        print("  No production")
        return
    for rid, rate in sorted(state.resource_rates.items(), key=lambda kv: -kv[1]):
        print(f"  {rid:<28} {fmt_rate(rate):>8}/s")
