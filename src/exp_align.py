from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float64 import BIAS, EXP_BITS, MANT_BITS, WINDOW_FRAC_BITS


class AlignmentShift(wiring.Component):
    """Window positions of a product and of the addend

    product_shift = (ea + eb - 2*(bias + 52)) + 2148 = ea + eb - 2
    addend_shift  = (ec - (bias + 52)) + 2148 = ec + 1073

    Exponents are effective exponents (subnormals use 1). Both shifts are
    non-negative for every finite input, so no saturation is needed.
    """

    SHIFT_BITS = EXP_BITS + 2

    PRODUCT_OFFSET = WINDOW_FRAC_BITS - 2 * (BIAS + MANT_BITS)
    ADDEND_OFFSET = WINDOW_FRAC_BITS - (BIAS + MANT_BITS)

    def __init__(self):
        super().__init__(
            {
                "a_exp": In(EXP_BITS),
                "b_exp": In(EXP_BITS),
                "c_exp": In(EXP_BITS),
                "product_shift": Out(self.SHIFT_BITS),
                "addend_shift": Out(self.SHIFT_BITS),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        a_eff = Signal(EXP_BITS)
        b_eff = Signal(EXP_BITS)
        c_eff = Signal(EXP_BITS)

        m.d.comb += a_eff.eq(Mux(self.a_exp == 0, 1, self.a_exp))
        m.d.comb += b_eff.eq(Mux(self.b_exp == 0, 1, self.b_exp))
        m.d.comb += c_eff.eq(Mux(self.c_exp == 0, 1, self.c_exp))

        # ---- Add Exponents ----
        exp_add = Signal(EXP_BITS + 1)
        m.d.comb += exp_add.eq(a_eff + b_eff)

        m.d.comb += self.product_shift.eq(exp_add + self.PRODUCT_OFFSET)
        m.d.comb += self.addend_shift.eq(c_eff + self.ADDEND_OFFSET)

        return m
