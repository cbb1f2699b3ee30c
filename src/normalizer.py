from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out


class Normalizer(wiring.Component):
    """Logarithmic barrel shifter for window normalization (left-shift)

    - One mux stage per bit of `shift_amount`, stage i shifts by 2^i
    - Bits shifted past the top are discarded
    """

    def __init__(self, width: int = 64):
        self.width = width
        self.shift_bits = (width - 1).bit_length()

        super().__init__(
            {
                "value_in": In(width),
                "shift_amount": In(self.shift_bits),
                "value_out": Out(width),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        value = self.value_in
        for stage in range(self.shift_bits):
            shifted = Signal(self.width, name=f"stage_{stage}")
            m.d.comb += shifted.eq(Mux(self.shift_amount[stage], value << (1 << stage), value))
            value = shifted

        m.d.comb += self.value_out.eq(value)

        return m
