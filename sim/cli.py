"""
Claim Stake Simulator - CLI Entry Point
=========================================
Usage:
    python cli.py simulate <scenario.yaml> [--duration 3600] [--step 1] [--catalog FILE] [--save DIR]
    python cli.py catalog <file>
    python cli.py interactive [--catalog FILE] [--save-dir DIR]
    python cli.py web [--port 8080] [--catalog FILE]
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from stake_sim.catalog import CATALOGS_DIR, catalog_summary, list_catalogs, load_catalog
from stake_sim.constants import FUEL_RESOURCE
from stake_sim.engine import SimulationEngine
from stake_sim.format import print_full_report
from stake_sim.io import load_scenario, save_game

DEFAULT_CATALOG = CATALOGS_DIR / "sample_catalog.json"


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _load_catalog_or_exit(path):
    try:
        return load_catalog(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        _fail(str(e))


def cmd_simulate(args):
    try:
        scenario = load_scenario(args.file)
    except (OSError, yaml.YAMLError, KeyError) as e:
        _fail(f"cannot read scenario {args.file}: {e}")

    # --catalog wins over the scenario's own catalog entry
    catalog_path = args.catalog or scenario.catalog_path or DEFAULT_CATALOG
    catalog = _load_catalog_or_exit(catalog_path)

    if args.speed is not None:
        scenario.config.speed_multiplier = args.speed
    if args.auto_resupply:
        scenario.config.auto_resupply = True

    engine = SimulationEngine(scenario, catalog, duration=args.duration, step=args.step)
    result = engine.run()
    print_full_report(result, catalog)

    if args.save:
        save_id = save_game(result.final_state, args.save, f"{scenario.name} @ {args.duration:g}s")
        print(f"\n[save] Final state saved to {Path(args.save) / f'save_{save_id}.json'}")


def cmd_catalog(args):
    if args.file is None:
        for name in list_catalogs():
            print(f"  {name}")
        return
    catalog = _load_catalog_or_exit(args.file)
    print(f"\n  {Path(args.file).name}")
    for key, count in catalog_summary(catalog).items():
        print(f"    {key:<24} {count}")
    print(f"    {'starter hub':<24} {catalog.starter_hub_id or '(none)'}")
    fuel_users = [b.id for b in catalog.buildings.values() if b.resource_rate.get(FUEL_RESOURCE, 0) < 0]
    print(f"    {'fuel consumers':<24} {len(fuel_users)}")
    print()


def cmd_interactive(args):
    from stake_sim.repl import StakeREPL
    catalog = _load_catalog_or_exit(args.catalog or DEFAULT_CATALOG)
    StakeREPL(catalog, save_dir=args.save_dir).cmdloop()


def cmd_web(args):
    from stake_sim.web import start_server
    catalog = _load_catalog_or_exit(args.catalog or DEFAULT_CATALOG)
    start_server(port=args.port, catalog=catalog)


def main():
    parser = argparse.ArgumentParser(
        description="Claim Stake Simulator",
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # simulate
    p_sim = sub.add_parser("simulate", aliases=["sim"],
                           help="Run a scenario headless")
    p_sim.add_argument("file", help="Path to scenario YAML file")
    p_sim.add_argument("--duration", "-d", type=float, default=3600.0,
                       help="Simulated seconds to run (default: 3600)")
    p_sim.add_argument("--step", type=float, default=1.0,
                       help="Real seconds per tick (default: 1)")
    p_sim.add_argument("--speed", type=float, default=None,
                       help="Override the scenario speed multiplier")
    p_sim.add_argument("--catalog", "-c", default=None,
                       help="Game data catalog (JSON or YAML)")
    p_sim.add_argument("--auto-resupply", action="store_true",
                       help="Refuel claim stakes as soon as they shut down")
    p_sim.add_argument("--save", default=None,
                       help="Save the final state into this directory")

    # catalog
    p_cat = sub.add_parser("catalog", aliases=["cat"],
                           help="Summarize a game data catalog")
    p_cat.add_argument("file", nargs="?", default=None,
                       help="Catalog file (omit to list bundled catalogs)")

    # interactive
    p_int = sub.add_parser("interactive", aliases=["repl", "i"],
                           help="Interactive REPL mode")
    p_int.add_argument("--catalog", "-c", default=None)
    p_int.add_argument("--save-dir", default="saves")

    # web
    p_web = sub.add_parser("web", aliases=["serve"],
                           help="Start the web API")
    p_web.add_argument("--port", type=int, default=8080,
                       help="Port to serve on (default: 8080)")
    p_web.add_argument("--catalog", "-c", default=None)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command in ("simulate", "sim"):
        cmd_simulate(args)
    elif args.command in ("catalog", "cat"):
        cmd_catalog(args)
    elif args.command in ("interactive", "repl", "i"):
        cmd_interactive(args)
    elif args.command in ("web", "serve"):
        cmd_web(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
