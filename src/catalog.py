"""Probe catalog: named dot products with independently derived expectations.

Every probe writes its product terms into row 0 of A and column 0 of B, an
optional seed into C[0, 0], and inspects D[0, 0]. Expected values are built
from `BoundaryConstants` and exact power-of-two arithmetic only.
"""

import abc
from dataclasses import dataclass
from fractions import Fraction

from exact import BoundaryConstants, exact, pow2, pred, succ
from float64 import F64


class ComparisonFailure(Exception):
    """The unit's result does not satisfy a probe's expectation."""


@dataclass(frozen=True)
class Category:
    key: str
    title: str


SUBNORMALS = Category("A", "Subnormal support")
ACCUMULATION = Category("B", "Dot-product accumulation precision")
ROUNDING = Category("C", "Rounding mode")
ACCUMULATOR = Category("D", "Accumulator internal behavior")

CATEGORIES = (SUBNORMALS, ACCUMULATION, ROUNDING, ACCUMULATOR)


def describe(x: float) -> str:
    return f"{x.hex()} ({F64.from_float(x).to_bits():#018x})"


def same_bits(x: float, y: float) -> bool:
    return F64.from_float(x).to_bits() == F64.from_float(y).to_bits()


@dataclass(frozen=True)
class DotProduct:
    """sum(a_k * b_k) + seed, with seed None meaning a zero-initialized accumulator."""

    terms: tuple[tuple[float, float], ...]
    seed: float | None = None

    @property
    def zero_init(self) -> bool:
        return self.seed is None

    def encode(self, operands) -> None:
        for k, (a, b) in enumerate(self.terms):
            operands.set_entry("a", 0, k, a)
            operands.set_entry("b", k, 0, b)
        if self.seed is not None:
            operands.set_entry("c", 0, 0, self.seed)

    def exact_value(self) -> Fraction:
        total = Fraction(0) if self.seed is None else exact(self.seed)
        for a, b in self.terms:
            total += exact(a) * exact(b)
        return total


class Expectation(abc.ABC):
    needs_baseline = False

    @abc.abstractmethod
    def check(self, observed: float, baseline: float | None = None) -> None:
        """Raise ComparisonFailure if `observed` does not meet the expectation."""


@dataclass(frozen=True)
class Exactly(Expectation):
    value: float

    def check(self, observed, baseline=None):
        if not same_bits(observed, self.value):
            raise ComparisonFailure(f"got {describe(observed)}, expected {describe(self.value)}")


@dataclass(frozen=True)
class OneOf(Expectation):
    values: tuple[float, ...]

    def check(self, observed, baseline=None):
        if not any(same_bits(observed, value) for value in self.values):
            candidates = ", ".join(describe(value) for value in self.values)
            raise ComparisonFailure(f"got {describe(observed)}, expected one of {candidates}")


@dataclass(frozen=True)
class NotBelowBaseline(Expectation):
    needs_baseline = True

    def check(self, observed, baseline=None):
        if baseline is None:
            raise ValueError("ordering check needs the baseline result")
        if not observed >= baseline:
            raise ComparisonFailure(f"got {describe(observed)}, below baseline {describe(baseline)}")


@dataclass(frozen=True)
class ProbeCase:
    name: str
    description: str
    category: Category
    dot: DotProduct
    expect: Expectation
    baseline: DotProduct | None = None

    @property
    def terms_needed(self) -> int:
        dots = [self.dot] if self.baseline is None else [self.baseline, self.dot]
        return max(len(dot.terms) for dot in dots)


def subnormal_probes(k: BoundaryConstants) -> list[ProbeCase]:
    return [
        ProbeCase(
            "subnormal_operand",
            "Subnormal operand: 2^-1074 x 2^52 = 2^-1022",
            SUBNORMALS,
            DotProduct(((k.min_subnormal, pow2(52)),)),
            Exactly(k.min_normal),
        ),
        ProbeCase(
            "subnormal_product",
            "Normal operands, subnormal product: 2^-537 x 2^-537",
            SUBNORMALS,
            DotProduct(((pow2(-537), pow2(-537)),)),
            Exactly(k.min_subnormal),
        ),
        ProbeCase(
            "subnormal_sum_with_accumulator",
            "Subnormal sum: 2^-1021 - 1.5 x 2^-1022 = 2^-1023",
            SUBNORMALS,
            DotProduct(((-1.5, k.min_normal),), seed=pow2(-1021)),
            Exactly(pow2(-1023)),
        ),
        ProbeCase(
            "subnormal_sum_from_cancellation",
            "Subnormal sum from cancelling normal products",
            SUBNORMALS,
            DotProduct(((1.0, k.min_normal), (-pred(k.pred_one), k.min_normal))),
            Exactly(k.min_subnormal),
        ),
    ]


def accumulation_probes(k: BoundaryConstants) -> list[ProbeCase]:
    return [
        ProbeCase(
            "sub_ulp_products_combine",
            "Two half-ULP products perturb 1.0 together",
            ACCUMULATION,
            DotProduct(((1.0, pow2(-53)), (1.0, pow2(-53))), seed=1.0),
            Exactly(k.succ_one),
        ),
        ProbeCase(
            "wider_than_binary32",
            "Accumulation keeps 2^-29 next to 1.0",
            ACCUMULATION,
            DotProduct(((1.0, pow2(-30)), (1.0, pow2(-30))), seed=1.0),
            Exactly(1.0 + pow2(-29)),
        ),
        ProbeCase(
            "full_width_product",
            "Full 106-bit product kept: (1+2^-52)^2 - (1+2^-51)",
            ACCUMULATION,
            DotProduct(((k.succ_one, k.succ_one),), seed=-succ(k.succ_one)),
            Exactly(pow2(-104)),
        ),
    ]


def rounding_probes(k: BoundaryConstants) -> list[ProbeCase]:
    two_odd = succ(2.0)
    cases = []
    for sign, label in ((1.0, "positive"), (-1.0, "negative")):
        cases += [
            ProbeCase(
                f"nearest_above_midpoint_{label}",
                f"Round to nearest above midpoint ({label})",
                ROUNDING,
                DotProduct(((sign, 2.0), (sign, pow2(-52) + pow2(-53)))),
                Exactly(sign * two_odd),
            ),
            ProbeCase(
                f"nearest_below_midpoint_{label}",
                f"Round to nearest below midpoint ({label})",
                ROUNDING,
                DotProduct(((sign, 2.0), (sign, pow2(-53)))),
                Exactly(sign * 2.0),
            ),
            ProbeCase(
                f"tie_to_even_down_{label}",
                f"Tie rounds to even, toward 2.0 ({label})",
                ROUNDING,
                DotProduct(((sign, 2.0), (sign, pow2(-52)))),
                Exactly(sign * 2.0),
            ),
            ProbeCase(
                f"tie_to_even_up_{label}",
                f"Tie rounds to even, away from odd 2+2^-51 ({label})",
                ROUNDING,
                DotProduct(((sign, two_odd), (sign, pow2(-52)))),
                Exactly(sign * succ(two_odd)),
            ),
        ]
    return cases


def accumulator_probes(k: BoundaryConstants) -> list[ProbeCase]:
    half_ulp = pow2(-53)
    return [
        ProbeCase(
            "alignment_guard_bit",
            "Alignment guard bit: 1 - pred(1.0) = 2^-53",
            ACCUMULATOR,
            DotProduct(((1.0, 1.0),), seed=-k.pred_one),
            Exactly(half_ulp),
        ),
        ProbeCase(
            "per_step_normalization",
            "Normalization per addition: pred(1.0) + 2 x 2^-53",
            ACCUMULATOR,
            DotProduct(((1.0, half_ulp), (1.0, half_ulp)), seed=k.pred_one),
            Exactly(1.0),
        ),
        ProbeCase(
            "subtraction_normalization",
            "Normalization after cancellation down to +0.0",
            ACCUMULATOR,
            DotProduct(((-k.pred_one, 1.0), (-half_ulp, 1.0)), seed=1.0),
            Exactly(0.0),
        ),
        ProbeCase(
            "no_extra_carry_out_bits",
            "No extra carry-out bits: pred(2.0) + 1.0",
            ACCUMULATOR,
            DotProduct(((1.0, 1.0),), seed=k.pred_two),
            OneOf((3.0, pred(3.0))),
        ),
        ProbeCase(
            "monotonic_in_b",
            "Monotonicity: larger B entry never lowers result",
            ACCUMULATOR,
            DotProduct(((1.0, 1.0), (1.0, succ(half_ulp)))),
            NotBelowBaseline(),
            baseline=DotProduct(((1.0, 1.0), (1.0, half_ulp))),
        ),
        ProbeCase(
            "monotonic_in_a",
            "Monotonicity: larger A entry never lowers result",
            ACCUMULATOR,
            DotProduct(((k.succ_one, half_ulp),), seed=1.0),
            NotBelowBaseline(),
            baseline=DotProduct(((1.0, half_ulp),), seed=1.0),
        ),
    ]


def build_catalog(constants: BoundaryConstants) -> list[ProbeCase]:
    return (
        subnormal_probes(constants)
        + accumulation_probes(constants)
        + rounding_probes(constants)
        + accumulator_probes(constants)
    )


def required_size(cases: list[ProbeCase]) -> int:
    return max(case.terms_needed for case in cases)
