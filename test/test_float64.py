import math

from float64 import F64, NORMAL_MSB, WINDOW_FRAC_BITS, window_width


def test_float_to_f64_conversion():
    test_cases = [
        (0.0, 0x0000000000000000),
        (1.0, 0x3FF0000000000000),
        (2.0, 0x4000000000000000),
        (-1.0, 0xBFF0000000000000),
        (0.5, 0x3FE0000000000000),
        (math.ldexp(1.0, -1074), 0x0000000000000001),
        (math.ldexp(1.0, -1022), 0x0010000000000000),
    ]

    for f, expected_bits in test_cases:
        result = F64.from_float(f).to_bits()
        assert result == expected_bits, f"{f}: got 0x{result:016x}, expected 0x{expected_bits:016x}"


def test_f64_to_float_conversion():
    test_cases = [
        (0x3FF0000000000000, 1.0),
        (0x3FF0000000000001, 1.0 + 2**-52),
        (0x3FEFFFFFFFFFFFFF, 1.0 - 2**-53),
        (0xC000000000000000, -2.0),
    ]

    for bits, expected in test_cases:
        assert F64.from_bits(bits).to_float() == expected


def test_negative_zero_keeps_sign():
    assert F64.from_float(-0.0).to_bits() == 0x8000000000000000
    assert F64.from_float(0.0).to_bits() == 0


def test_pack_unpack():
    test_cases = [
        (0, 1023, 0),
        (1, 1023, 0),
        (0, 0, 1),
        (0, 1024, (1 << 52) - 1),
        (1, 2046, 0xABCDEF),
    ]

    for sign, exp, mant in test_cases:
        value = F64.pack(sign, exp, mant)
        assert value.unpack() == (sign, exp, mant)


def test_struct_roundtrip():
    value = F64.from_float(-3.25)
    struct = value.as_struct()
    assert struct == {"sign": 1, "exponent": 1024, "mantissa": 0xA000000000000}
    assert F64.from_struct(struct).to_float() == -3.25


def test_window_layout():
    # 2^-1074 * 2^-1074 is the window LSB
    assert WINDOW_FRAC_BITS == 2148
    assert NORMAL_MSB == 1126
    # two products of magnitude < 2^2048 plus an addend, with a sign bit
    assert window_width(2) == 2148 + 2048 + 2 + 1
    assert window_width(4) == 2148 + 2048 + 3 + 1
