from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Aligner(wiring.Component):
    """Places a significand into the accumulator window (left-shift).

    Bits shifted past `out_width` are dropped; callers size the window so
    that never happens for finite operands.
    """

    def __init__(self, in_width: int, out_width: int, shift_bits: int):
        self.in_width = in_width
        self.out_width = out_width
        self.shift_bits = shift_bits

        super().__init__(
            {
                "value_in": In(in_width),
                "shift_amount": In(shift_bits),
                "value_out": Out(out_width),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()
        m.d.comb += self.value_out.eq(self.value_in << self.shift_amount)
        return m
