from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float64 import MANT_BITS, Float64, significand


class SignificandMultiplier(wiring.Component):
    """Exact 53x53-bit significand product, hidden bits included.

    Subnormal operands contribute their mantissa without a hidden bit, so the
    product is exact for every finite input pair.
    """

    def __init__(self, flush_subnormals: bool = False):
        self.flush_subnormals = flush_subnormals

        super().__init__(
            {
                "a": In(Float64),
                "b": In(Float64),
                "sign": Out(1),
                "product": Out(2 * (MANT_BITS + 1), init=0),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        a_full = Signal(MANT_BITS + 1)
        b_full = Signal(MANT_BITS + 1)

        m.d.comb += a_full.eq(significand(self.a, flush_subnormals=self.flush_subnormals))
        m.d.comb += b_full.eq(significand(self.b, flush_subnormals=self.flush_subnormals))

        m.d.comb += self.product.eq(a_full * b_full)
        m.d.comb += self.sign.eq(self.a.sign ^ self.b.sign)

        return m
