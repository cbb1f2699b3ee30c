import enum

from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class RoundingMode(enum.Enum):
    NEAREST_EVEN = "nearest-even"
    TOWARD_ZERO = "toward-zero"


class Rounder(wiring.Component):
    """Rounds a magnitude field using guard, round and sticky bits.

    `mantissa_in` may be a packed exponent|mantissa field: an increment that
    carries out of the mantissa bumps the exponent, which is how subnormals
    round up into the smallest normal and the largest finite value rounds up
    into infinity.
    """

    def __init__(self, width: int = 8, mode: RoundingMode = RoundingMode.NEAREST_EVEN):
        self.width = width
        self.mode = mode

        super().__init__(
            {
                "mantissa_in": In(width),
                "guard": In(1),
                "round_bit": In(1),
                "sticky": In(1),
                "mantissa_out": Out(width),
                "overflow": Out(1),
                "inexact": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        lsb = self.mantissa_in[0]

        round_up = Signal()
        if self.mode is RoundingMode.NEAREST_EVEN:
            with m.If(self.guard):
                with m.If(self.round_bit | self.sticky):
                    m.d.comb += round_up.eq(1)
                with m.Else():
                    m.d.comb += round_up.eq(lsb)
            with m.Else():
                m.d.comb += round_up.eq(0)

        incremented = Signal(self.width + 1)
        m.d.comb += incremented.eq(self.mantissa_in + round_up)

        m.d.comb += self.mantissa_out.eq(incremented[0 : self.width])
        m.d.comb += self.overflow.eq(incremented[self.width])
        m.d.comb += self.inexact.eq(self.guard | self.round_bit | self.sticky)

        return m
