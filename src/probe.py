"""Characterize a binary64 matrix-multiply-accumulate unit.

Usage:
    fp64-mma-probe
    fp64-mma-probe --unit tensor-core --size 2 --rounding toward-zero
    fp64-mma-probe --unit host -v
"""

import argparse
import logging
import sys

from exact import SetupAssertionFailure
from harness import ProbeHarness
from oracle import HostMatmulOracle, MMAOracle, ReferenceOracle
from report import Reporter
from rounder import RoundingMode
from tensor_core_oracle import TensorCoreOracle

logger = logging.getLogger(__name__)

UNITS = ("tensor-core", "host", "reference")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fp64-mma-probe",
        description="Probe the binary64 semantics of a matrix-multiply-accumulate unit",
    )
    parser.add_argument("--unit", choices=UNITS, default="tensor-core", help="unit under test")
    parser.add_argument("--size", type=int, default=4, help="square operand size of the unit")
    parser.add_argument(
        "--rounding",
        choices=[mode.value for mode in RoundingMode],
        default=RoundingMode.NEAREST_EVEN.value,
        help="rounding of the simulated tensor core",
    )
    parser.add_argument(
        "--flush-subnormals",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="simulate a tensor core that flushes subnormals to zero",
    )
    parser.add_argument(
        "--vcd",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="whether to produce vcd files for each tensor core run",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="print failure details and debug logs")
    return parser


def build_oracle(args: argparse.Namespace) -> MMAOracle:
    if args.unit == "host":
        return HostMatmulOracle(args.size)
    if args.unit == "reference":
        return ReferenceOracle(args.size)

    return TensorCoreOracle(
        size=args.size,
        rounding=RoundingMode(args.rounding),
        flush_subnormals=args.flush_subnormals,
        vcd_prefix="TensorCore" if args.vcd else None,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    oracle = build_oracle(args)
    try:
        harness = ProbeHarness(oracle)
    except SetupAssertionFailure as e:
        logger.error("boundary constants failed self-check, aborting: %s", e)
        return 2

    logger.info("running %d probes on %s unit (size %d)", len(harness.cases), oracle.name, oracle.size)
    reports = harness.run()

    Reporter(verbose=args.verbose).report(reports)

    return 0 if all(report.failed == 0 for report in reports) else 1


if __name__ == "__main__":
    sys.exit(main())
