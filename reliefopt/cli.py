import argparse
import logging
import sys
from pathlib import Path

from reliefopt import config
from reliefopt.errors import ReliefOptError
from reliefopt.services.allocator import STRATEGIES, allocate, approximation_gap
from reliefopt.services.oracles import StaticDemandOracle, demand_snapshot
from reliefopt.services.reporting import allocations_frame, build_report, summary_frame
from reliefopt.utils.data_loader import load_demand, load_network

logger = logging.getLogger(__name__)


def _load_inputs(args):
    network = load_network(args.network)
    demand = load_demand(args.demand)
    oracle = StaticDemandOracle(demand)
    demand = demand_snapshot(oracle, demand.keys(), args.months)
    return network, demand


def cmd_allocate(args) -> int:
    network, demand = _load_inputs(args)
    result = allocate(network, demand, units_per_person=args.units_per_person, strategy=args.strategy)
    report = build_report(network, demand, result)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    allocations_frame(result).to_csv(out_dir / "allocations.csv", index=False)
    summary_frame(report).to_csv(out_dir / "district_summary.csv", index=False)
    logger.info("Wrote %d allocation rows to %s", len(result.rows), out_dir)

    for district_id in result.infeasible_districts:
        print(f"{district_id}: allocation_infeasible_for_district")
    return 0


def cmd_summary(args) -> int:
    network, demand = _load_inputs(args)
    result = allocate(network, demand, units_per_person=args.units_per_person, strategy=args.strategy)
    totals = build_report(network, demand, result).totals
    print(f"districts:   {totals.total_districts}")
    print(f"displaced:   {totals.total_displaced}")
    print(f"allocated:   {totals.total_allocated}")
    print(f"unmet:       {totals.total_unmet}")
    print(f"utilization: {totals.utilization_percent:.1f}%")
    return 0


def cmd_gap(args) -> int:
    network, demand = _load_inputs(args)
    gap = approximation_gap(network, demand, units_per_person=args.units_per_person)
    print(f"served  greedy={gap.greedy_served} optimal={gap.optimal_served} gap={gap.served_gap}")
    print(f"cost    greedy={gap.greedy_cost:.0f} optimal={gap.optimal_cost:.0f} gap={gap.cost_gap:.0f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reliefopt", description="District relief allocation planner")
    parser.add_argument("--network", default=str(config.NETWORK_PATH), help="network JSON (districts, depots, shelters, edges)")
    parser.add_argument("--demand", default=str(config.DEMAND_PATH), help="predicted demand JSON or CSV")
    parser.add_argument(
        "--months",
        type=int,
        default=config.DEFAULT_HORIZON_MONTHS,
        help="planning horizon in months (default %(default)s; 6 plans on the unscaled baseline)",
    )
    parser.add_argument("--units-per-person", type=float, default=config.UNITS_PER_PERSON)
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p_alloc = sub.add_parser("allocate", help="write allocations.csv and district_summary.csv")
    p_alloc.add_argument("--strategy", choices=STRATEGIES, default=config.STRATEGY)
    p_alloc.add_argument("--out-dir", default=".")
    p_alloc.set_defaults(func=cmd_allocate)

    p_summary = sub.add_parser("summary", help="print aggregate totals")
    p_summary.add_argument("--strategy", choices=STRATEGIES, default=config.STRATEGY)
    p_summary.set_defaults(func=cmd_summary)

    p_gap = sub.add_parser("gap", help="compare greedy and optimal plans")
    p_gap.set_defaults(func=cmd_gap)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format=config.LOG_FORMAT,
    )
    try:
        return args.func(args)
    except ReliefOptError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
