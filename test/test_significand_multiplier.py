import math

from amaranth.sim import Simulator

from float64 import F64
from significand_multiplier import SignificandMultiplier


def test_significand_mult_basic():
    dut = SignificandMultiplier()

    async def bench(ctx):
        # 1.0 x 1.0: 2^52 x 2^52 = 2^104
        ctx.set(dut.a, F64.from_float(1.0).as_struct())
        ctx.set(dut.b, F64.from_float(1.0).as_struct())
        assert ctx.get(dut.product) == 1 << 104
        assert ctx.get(dut.sign) == 0

        # 1.5 x -1.5: 3*2^51 x 3*2^51
        ctx.set(dut.a, F64.from_float(1.5).as_struct())
        ctx.set(dut.b, F64.from_float(-1.5).as_struct())
        assert ctx.get(dut.product) == 9 << 102
        assert ctx.get(dut.sign) == 1

        # (1 + 2^-52)^2 keeps all 106 bits
        ctx.set(dut.a, F64.from_float(1.0 + 2**-52).as_struct())
        ctx.set(dut.b, F64.from_float(1.0 + 2**-52).as_struct())
        assert ctx.get(dut.product) == ((1 << 52) + 1) ** 2

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_significand_mult_subnormal():
    dut = SignificandMultiplier()

    async def bench(ctx):
        # subnormal operands have no hidden bit
        ctx.set(dut.a, F64.from_float(math.ldexp(1.0, -1074)).as_struct())
        ctx.set(dut.b, F64.from_float(math.ldexp(1.0, 52)).as_struct())
        assert ctx.get(dut.product) == 1 << 52

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()


def test_significand_mult_flushes_subnormal():
    dut = SignificandMultiplier(flush_subnormals=True)

    async def bench(ctx):
        ctx.set(dut.a, F64.from_float(math.ldexp(3.0, -1074)).as_struct())
        ctx.set(dut.b, F64.from_float(2.0).as_struct())
        assert ctx.get(dut.product) == 0

        ctx.set(dut.a, F64.from_float(math.ldexp(1.0, -1022)).as_struct())
        assert ctx.get(dut.product) == 1 << 104

    sim = Simulator(dut)
    sim.add_testbench(bench)
    sim.run()
