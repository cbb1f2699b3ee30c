from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from aligner import Aligner
from exp_align import AlignmentShift
from float64 import MANT_BITS, Float64, significand, window_width
from result_encoder import ResultEncoder
from rounder import RoundingMode
from significand_multiplier import SignificandMultiplier


class PE(wiring.Component):
    """Processing element with an exact fixed-point accumulator

    The accumulator is a signed window wide enough for `terms` products of
    any two finite doubles plus one addend, so every MAC step is exact and the
    only rounding happens in the output encoder.

    - load_c: load the aligned addend (or zero when zero_c is set)
    - enable: add the aligned product of a_in and b_in
    """

    def __init__(
        self,
        terms: int = 4,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN,
        flush_subnormals: bool = False,
    ):
        self.terms = terms
        self.rounding = rounding
        self.flush_subnormals = flush_subnormals
        self.width = window_width(terms)

        super().__init__(
            {
                "a_in": In(Float64),
                "b_in": In(Float64),
                "c_in": In(Float64),
                "zero_c": In(1),
                "load_c": In(1),
                "enable": In(1),
                "acc_out": Out(Float64),
                "inexact": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        shift_bits = AlignmentShift.SHIFT_BITS

        m.submodules.mult = mult = SignificandMultiplier(flush_subnormals=self.flush_subnormals)
        m.submodules.exp_align = exp_align = AlignmentShift()
        m.submodules.product_aligner = product_aligner = Aligner(
            in_width=2 * (MANT_BITS + 1), out_width=self.width, shift_bits=shift_bits
        )
        m.submodules.addend_aligner = addend_aligner = Aligner(
            in_width=MANT_BITS + 1, out_width=self.width, shift_bits=shift_bits
        )
        m.submodules.encoder = encoder = ResultEncoder(
            width=self.width, rounding=self.rounding, flush_subnormals=self.flush_subnormals
        )

        acc = Signal(signed(self.width))

        m.d.comb += mult.a.eq(self.a_in)
        m.d.comb += mult.b.eq(self.b_in)

        m.d.comb += exp_align.a_exp.eq(self.a_in.exponent)
        m.d.comb += exp_align.b_exp.eq(self.b_in.exponent)
        m.d.comb += exp_align.c_exp.eq(self.c_in.exponent)

        # ---- Product term ----
        m.d.comb += product_aligner.value_in.eq(mult.product)
        m.d.comb += product_aligner.shift_amount.eq(exp_align.product_shift)

        product_term = Signal(signed(self.width))
        with m.If(mult.sign):
            m.d.comb += product_term.eq(-product_aligner.value_out)
        with m.Else():
            m.d.comb += product_term.eq(product_aligner.value_out)

        # ---- Addend term ----
        m.d.comb += addend_aligner.value_in.eq(
            significand(self.c_in, flush_subnormals=self.flush_subnormals)
        )
        m.d.comb += addend_aligner.shift_amount.eq(exp_align.addend_shift)

        addend_term = Signal(signed(self.width))
        with m.If(self.zero_c):
            m.d.comb += addend_term.eq(0)
        with m.Elif(self.c_in.sign):
            m.d.comb += addend_term.eq(-addend_aligner.value_out)
        with m.Else():
            m.d.comb += addend_term.eq(addend_aligner.value_out)

        # ---- Accumulate ----
        with m.If(self.load_c):
            m.d.sync += acc.eq(addend_term)
        with m.Elif(self.enable):
            m.d.sync += acc.eq(acc + product_term)

        m.d.comb += encoder.value_in.eq(acc)
        m.d.comb += self.acc_out.eq(encoder.result)
        m.d.comb += self.inexact.eq(encoder.inexact)

        return m
