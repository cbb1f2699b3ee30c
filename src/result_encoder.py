from amaranth import *
from amaranth.build import Platform
from amaranth.lib import wiring
from amaranth.lib.wiring import In, Out

from float64 import EXP_BITS, EXP_MAX, MANT_BITS, NORMAL_MSB, Float64
from lzc import LeadingZeroCounter
from normalizer import Normalizer
from rounder import Rounder, RoundingMode


class ResultEncoder(wiring.Component):
    """Rounds the signed accumulator window to a binary64 value.

    The window is normalized so its leading one sits in the top bit, but the
    shift is clamped at the position of the smallest normal's hidden bit so
    tiny values come out as subnormals instead of being over-normalized.
    The packed exponent|mantissa field is then rounded in one step.
    """

    def __init__(
        self,
        width: int,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN,
        flush_subnormals: bool = False,
    ):
        self.width = width
        self.rounding = rounding
        self.flush_subnormals = flush_subnormals

        super().__init__(
            {
                "value_in": In(signed(width)),
                "result": Out(Float64),
                "inexact": Out(1),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        width = self.width
        max_shift = width - 1 - NORMAL_MSB

        m.submodules.lzc = lzc = LeadingZeroCounter(width=width)
        m.submodules.normalizer = normalizer = Normalizer(width=width)
        m.submodules.rounder = rounder = Rounder(width=EXP_BITS + MANT_BITS, mode=self.rounding)

        # ---- Sign / Magnitude ----
        sign = Signal()
        magnitude = Signal(width)
        m.d.comb += sign.eq(self.value_in[-1])
        m.d.comb += magnitude.eq(Mux(sign, -self.value_in, self.value_in))

        # ---- Normalize ----
        m.d.comb += lzc.value_in.eq(magnitude)

        shift = Signal(range(max_shift + 1))
        with m.If(lzc.lz_count > max_shift):
            m.d.comb += shift.eq(max_shift)
        with m.Else():
            m.d.comb += shift.eq(lzc.lz_count)

        m.d.comb += normalizer.value_in.eq(magnitude)
        m.d.comb += normalizer.shift_amount.eq(shift)

        normalized = normalizer.value_out
        hidden = normalized[width - 1]

        biased_exp = Signal(range(width + 1))
        with m.If(hidden):
            m.d.comb += biased_exp.eq(width - NORMAL_MSB - shift)
        with m.Else():
            m.d.comb += biased_exp.eq(0)

        # ---- Round ----
        m.d.comb += rounder.mantissa_in.eq(
            Cat(normalized[width - 1 - MANT_BITS : width - 1], biased_exp[0:EXP_BITS])
        )
        m.d.comb += rounder.guard.eq(normalized[width - 2 - MANT_BITS])
        m.d.comb += rounder.round_bit.eq(normalized[width - 3 - MANT_BITS])
        m.d.comb += rounder.sticky.eq(normalized[0 : width - 3 - MANT_BITS].any())

        # ---- Pack ----
        huge = biased_exp >= EXP_MAX
        tiny = rounder.mantissa_out[MANT_BITS:] == 0
        flush = Const(int(self.flush_subnormals), 1)

        packed = Signal(EXP_BITS + MANT_BITS)
        with m.If(huge):
            if self.rounding is RoundingMode.NEAREST_EVEN:
                m.d.comb += packed.eq(EXP_MAX << MANT_BITS)
            else:
                m.d.comb += packed.eq((EXP_MAX << MANT_BITS) - 1)
        with m.Elif(flush & tiny):
            m.d.comb += packed.eq(0)
        with m.Else():
            m.d.comb += packed.eq(rounder.mantissa_out)

        m.d.comb += self.result.sign.eq(sign)
        m.d.comb += self.result.exponent.eq(packed[MANT_BITS:])
        m.d.comb += self.result.mantissa.eq(packed[:MANT_BITS])
        m.d.comb += self.inexact.eq(rounder.inexact | huge)

        return m
