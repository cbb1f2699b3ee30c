import logging
from dataclasses import dataclass, field

from catalog import CATEGORIES, Category, ComparisonFailure, DotProduct, ProbeCase, build_catalog, required_size
from exact import BoundaryConstants
from operands import OperandBuilder
from oracle import MMAOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    category: Category
    name: str
    description: str
    passed: bool
    observed: float
    baseline: float | None = None
    detail: str = ""


@dataclass
class CategoryReport:
    category: Category
    results: list[ProbeResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return len(self.results) - self.passed


class ProbeHarness:
    """Runs the probe catalog against one unit.

    The harness is the only owner of the operand buffers. Boundary constants
    are verified on construction, so a bad host setup raises
    SetupAssertionFailure before the unit is invoked at all.
    """

    def __init__(self, oracle: MMAOracle, constants: BoundaryConstants | None = None):
        self.constants = constants if constants is not None else BoundaryConstants.derive()
        self.constants.verify()

        self.cases = build_catalog(self.constants)
        needed = required_size(self.cases)
        if oracle.size < needed:
            raise ValueError(f"probes need a unit of size >= {needed}, got {oracle.size}")

        self.oracle = oracle
        self.operands = OperandBuilder(oracle.size)

    def evaluate(self, dot: DotProduct) -> float:
        """One reset -> encode -> invoke cycle; returns D[0, 0]."""
        self.operands.reset()
        dot.encode(self.operands)

        self.oracle.load_a(self.operands.a)
        self.oracle.load_b(self.operands.b)
        if dot.zero_init:
            self.oracle.init_to_zero()
        else:
            self.oracle.load_c(self.operands.c)
        self.operands.mark_loaded()

        self.oracle.multiply_accumulate()
        return float(self.oracle.store()[0, 0])

    def run_case(self, case: ProbeCase) -> ProbeResult:
        baseline = self.evaluate(case.baseline) if case.baseline is not None else None
        observed = self.evaluate(case.dot)

        try:
            case.expect.check(observed, baseline)
        except ComparisonFailure as e:
            logger.warning("%s: %s", case.name, e)
            return ProbeResult(
                case.category, case.name, case.description, False, observed, baseline, str(e)
            )

        logger.debug("%s: observed %s", case.name, observed.hex())
        return ProbeResult(case.category, case.name, case.description, True, observed, baseline)

    def run(self) -> list[CategoryReport]:
        reports = {category: CategoryReport(category) for category in CATEGORIES}
        for case in self.cases:
            reports[case.category].results.append(self.run_case(case))
        return [report for report in reports.values() if report.results]
