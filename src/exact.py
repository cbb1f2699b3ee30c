"""Exact binary64 boundary values, derived on the host only.

Nothing here touches the unit being probed: constants come from power-of-two
scaling (`math.ldexp`) and neighbour steps (`math.nextafter`), and are checked
against exact rationals before any probe relies on them.
"""

import math
from dataclasses import dataclass
from fractions import Fraction

from float64 import F64


class SetupAssertionFailure(Exception):
    """A boundary constant does not have the value it must have on this host."""


def pow2(n: int) -> float:
    return math.ldexp(1.0, n)


def pred(x: float) -> float:
    return math.nextafter(x, -math.inf)


def succ(x: float) -> float:
    return math.nextafter(x, math.inf)


def exact(x: float) -> Fraction:
    """Exact rational value of a finite double."""
    return Fraction(x)


def round_to_double(q: Fraction) -> float:
    """Round a rational to the nearest double, ties to even.

    int / int true division is correctly rounded, subnormals included.
    """
    return q.numerator / q.denominator


@dataclass(frozen=True)
class BoundaryConstants:
    min_subnormal: float
    min_normal: float
    pred_one: float
    succ_one: float
    pred_two: float

    @classmethod
    def derive(cls) -> "BoundaryConstants":
        return cls(
            min_subnormal=pow2(-1074),
            min_normal=pow2(-1022),
            pred_one=pred(1.0),
            succ_one=succ(1.0),
            pred_two=pred(2.0),
        )

    def verify(self) -> None:
        """Raise SetupAssertionFailure unless every constant is exact."""
        expected = {
            "min_subnormal": Fraction(1, 2**1074),
            "min_normal": Fraction(1, 2**1022),
            "pred_one": 1 - Fraction(1, 2**53),
            "succ_one": 1 + Fraction(1, 2**52),
            "pred_two": 2 - Fraction(1, 2**52),
        }
        for name, value in expected.items():
            actual = getattr(self, name)
            if not math.isfinite(actual) or exact(actual) != value:
                raise SetupAssertionFailure(
                    f"{name} is {actual!r} ({F64.from_float(actual).to_bits():#018x}), "
                    f"expected exactly {value}"
                )

        if F64.from_float(self.min_subnormal).to_bits() != 1:
            raise SetupAssertionFailure("smallest subnormal is not bit pattern 0x1")
        if self.min_subnormal / 2 != 0.0:
            raise SetupAssertionFailure("half the smallest subnormal did not underflow to zero")
        if self.succ_one - 1.0 != pow2(-52) or 1.0 - self.pred_one != pow2(-53):
            raise SetupAssertionFailure("host subtraction near 1.0 is not exact")
