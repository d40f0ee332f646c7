"""Command line entry point: simulate, check and inspect distributions."""

import argparse
import logging
import sys
from typing import List, Optional

from .config.loader import build_distribution, load_config
from .engine.errors import DistributionError
from .logsetup import configure_logging
from .simulation.runner import ScheduleSimulator
from .simulation.schedule import project_schedule
from .validation.sanity_checks import SanityChecker, validate_simulation_results

logger = logging.getLogger(__name__)


def _fmt(amount: int, decimals: int) -> str:
    return f"{amount / 10 ** decimals:,.{min(decimals, 6)}f}"


def cmd_simulate(args) -> int:
    config = load_config(args.config)
    if args.seed is not None:
        config.simulation.random_seed = args.seed
    if args.periods is not None:
        config.simulation.horizon_periods = args.periods

    result = ScheduleSimulator(config).run()
    decimals = config.token.decimals
    print(f"config {config.compute_hash()}  ({len(result.snapshots)} ticks)")
    for key, value in result.final_metrics.items():
        if key in ('beneficiaries', 'ticks', 'fully_vested'):
            print(f"  {key:<16} {value}")
        else:
            print(f"  {key:<16} {_fmt(value, decimals)} {config.token.symbol}")

    warnings = validate_simulation_results(result)
    for w in warnings:
        print(f"  [{w.severity}] {w.category}: {w.message}" + (f" ({w.details})" if w.details else ""))

    if args.csv:
        from .reporting.export import export_csv
        export_csv(result, args.csv)
        print(f"wrote {args.csv}")
    if args.json:
        from .reporting.export import export_json
        export_json(result, args.json)
        print(f"wrote {args.json}")

    return 1 if any(w.severity == "error" for w in warnings) else 0


def cmd_check(args) -> int:
    config = load_config(args.config)
    checker = SanityChecker(config)
    warnings = checker.check_config_inputs()
    decimals = config.token.decimals
    print(f"pledged {_fmt(checker.total_pledged, decimals)} / deposit {_fmt(checker.planned_deposit, decimals)} {config.token.symbol}")
    if not warnings:
        print("no issues found")
    for w in warnings:
        print(f"[{w.severity}] {w.category}: {w.message}" + (f" ({w.details})" if w.details else ""))
    return 1 if any(w.severity == "error" for w in warnings) else 0


def cmd_schedule(args) -> int:
    config = load_config(args.config)
    distribution = build_distribution(config, time_source=lambda: 0)
    try:
        record = distribution.beneficiary(args.principal)
    except DistributionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    decimals = config.token.decimals
    period = config.clock.period_seconds
    activation = config.clock.start_delay_seconds

    print(f"{args.principal}: stake {_fmt(record.stake, decimals)}, allocation {_fmt(record.total_allocation, decimals)}")
    for entry in project_schedule(record, activation, period):
        days = (entry.timestamp - activation) / 86400
        label = "TGE" if entry.kind == "tge" else f"#{entry.index}"
        print(f"  day {days:>8.1f}  {label:>5}  {_fmt(entry.amount, decimals):>20}  {_fmt(entry.cumulative, decimals):>20}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vestledger", description=__doc__)
    parser.add_argument("-c", "--config", default=None, help="YAML config (defaults to bundled defaults.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Replay the distribution end to end")
    sim.add_argument("--seed", type=int, default=None)
    sim.add_argument("--periods", type=int, default=None, help="Horizon in installment periods")
    sim.add_argument("--csv", default=None, help="Write per-tick snapshots to CSV")
    sim.add_argument("--json", default=None, help="Write the full result to JSON")
    sim.set_defaults(func=cmd_simulate)

    check = sub.add_parser("check", help="Sanity-check a config")
    check.set_defaults(func=cmd_check)

    sched = sub.add_parser("schedule", help="Print one beneficiary's unlock schedule")
    sched.add_argument("principal")
    sched.set_defaults(func=cmd_schedule)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
