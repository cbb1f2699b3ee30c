import math

from amaranth.sim import Simulator

from exp_align import AlignmentShift
from float64 import F64, WINDOW_FRAC_BITS


def lsb_exponent(x):
    """Exponent of the significand LSB of a double."""
    _, exp, _ = F64.from_float(x).unpack()
    return max(exp, 1) - 1075


def test_product_shift_matches_lsb_exponents():
    dut = AlignmentShift()

    pairs = [
        (1.0, 1.0),
        (math.ldexp(1.0, -1074), math.ldexp(1.0, 52)),
        (math.ldexp(1.0, -537), math.ldexp(1.0, -537)),
        (math.ldexp(1.0, -1074), math.ldexp(1.0, -1074)),
        (1.7e308, 1.7e308),
        (3.0, 2.0**-30),
    ]

    async def bench(ctx):
        for a, b in pairs:
            ctx.set(dut.a_exp, F64.from_float(a).unpack()[1])
            ctx.set(dut.b_exp, F64.from_float(b).unpack()[1])

            expected = lsb_exponent(a) + lsb_exponent(b) + WINDOW_FRAC_BITS
            result = ctx.get(dut.product_shift)
            assert result == expected, f"{a!r} x {b!r}: got {result}, expected {expected}"

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_addend_shift_matches_lsb_exponent():
    dut = AlignmentShift()

    values = [1.0, 1.0 - 2**-53, math.ldexp(1.0, -1074), math.ldexp(1.0, -1022), 1.7e308]

    async def bench(ctx):
        for c in values:
            ctx.set(dut.c_exp, F64.from_float(c).unpack()[1])

            expected = lsb_exponent(c) + WINDOW_FRAC_BITS
            result = ctx.get(dut.addend_shift)
            assert result == expected, f"{c!r}: got {result}, expected {expected}"

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_shift_extremes():
    dut = AlignmentShift()

    async def bench(ctx):
        ctx.set(dut.a_exp, 0)
        ctx.set(dut.b_exp, 0)
        assert ctx.get(dut.product_shift) == 0

        ctx.set(dut.a_exp, 2046)
        ctx.set(dut.b_exp, 2046)
        assert ctx.get(dut.product_shift) == 4090

        ctx.set(dut.c_exp, 0)
        assert ctx.get(dut.addend_shift) == 1074

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()
