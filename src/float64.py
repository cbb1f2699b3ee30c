import struct

from amaranth import *
from amaranth.lib import data

MANT_BITS = 52
EXP_BITS = 11
BIAS = 1023
EXP_MAX = (1 << EXP_BITS) - 1

# Accumulator window: LSB weight is the LSB of the product of two minimum
# subnormals, 2^-2148.
WINDOW_FRAC_BITS = 2 * (BIAS - 1 + MANT_BITS)
# Window bit that carries weight 2^-1022 (hidden bit of the smallest normal).
NORMAL_MSB = WINDOW_FRAC_BITS - (BIAS - 1)


def window_width(terms: int) -> int:
    """Bits needed to hold `terms` exact products plus one addend, signed."""
    int_bits = 2 * (EXP_MAX - BIAS)
    return WINDOW_FRAC_BITS + int_bits + (terms + 1).bit_length() + 1


class Float64(data.Struct):
    mantissa: MANT_BITS
    exponent: EXP_BITS
    sign: 1

    def is_zero(self):
        return (self.exponent == 0) & (self.mantissa == 0)

    def is_subnormal(self):
        return self.exponent == 0


def significand(value, *, flush_subnormals: bool = False):
    """53-bit significand with the hidden bit made explicit."""
    hidden = value.exponent != 0
    if flush_subnormals:
        return Mux(hidden, Cat(value.mantissa, Const(1, 1)), 0)
    return Cat(value.mantissa, hidden)


class F64:
    def __init__(self, bits: int):
        self.bits = bits

    @classmethod
    def from_float(cls, f: float):
        bits = struct.unpack(">Q", struct.pack(">d", f))[0]
        return cls(bits)

    @classmethod
    def from_bits(cls, bits: int):
        return cls(bits)

    def to_bits(self) -> int:
        return self.bits

    def to_float(self) -> float:
        return struct.unpack(">d", struct.pack(">Q", self.bits))[0]

    def unpack(self) -> tuple[int, int, int]:
        sign = (self.bits >> 63) & 0x1
        exp = (self.bits >> MANT_BITS) & EXP_MAX
        mant = self.bits & ((1 << MANT_BITS) - 1)
        return sign, exp, mant

    @classmethod
    def pack(cls, sign: int, exp: int, mant: int):
        bits = (sign << 63) | (exp << MANT_BITS) | mant
        return cls(bits)

    def as_struct(self) -> dict:
        sign, exp, mant = self.unpack()
        return {"sign": sign, "exponent": exp, "mantissa": mant}

    @classmethod
    def from_struct(cls, value):
        return cls.pack(value["sign"], value["exponent"], value["mantissa"])

    def __repr__(self):
        return f"F64(0x{self.bits:016x})"
