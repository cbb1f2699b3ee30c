from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class LeadingZeroCounter(wiring.Component):
    """Log-depth leading zero counter

    The input is left-aligned into a power-of-two field; each stage checks
    whether the top half of the remaining span is zero and, if so, shifts it
    out and sets one bit of the count. An all-zero input reports `width`.
    """

    def __init__(self, width: int = 8):
        self.width = width
        self.stages = max(1, (width - 1).bit_length())
        self.count_bits = width.bit_length()

        super().__init__(
            {
                "value_in": In(width),
                "lz_count": Out(self.count_bits),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        padded = 1 << self.stages

        value = Signal(padded)
        m.d.comb += value.eq(self.value_in << (padded - self.width))

        count = []
        for stage in reversed(range(self.stages)):
            span = 1 << stage

            top_zero = Signal(name=f"top_zero_{stage}")
            m.d.comb += top_zero.eq(value[padded - span :] == 0)

            shifted = Signal(padded, name=f"shifted_{stage}")
            m.d.comb += shifted.eq(Mux(top_zero, value << span, value))

            count.insert(0, top_zero)
            value = shifted

        with m.If(self.value_in == 0):
            m.d.comb += self.lz_count.eq(self.width)
        with m.Else():
            m.d.comb += self.lz_count.eq(Cat(*count))

        return m
