import itertools
import sys

import numpy as np
import pytest
from amaranth.sim import Simulator

from tensor_core import TensorCore
from tensor_core_oracle import f64_flat_to_matrix, get_matrix, matrix_to_f64_flat, set_matrix


def run_core(request, dut, bench, name):
    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(bench)

    if request.config.getoption("--vcd"):
        vcd_name = f"TensorCore_{name}.vcd"
        with sim.write_vcd(vcd_name):
            sim.run()
    else:
        sim.run()


async def compute(ctx, dut, A, B, C=None):
    n = dut.size

    set_matrix(ctx, dut.a_matrix, matrix_to_f64_flat(A))
    set_matrix(ctx, dut.b_matrix, matrix_to_f64_flat(B))
    if C is None:
        ctx.set(dut.zero_c, 1)
    else:
        ctx.set(dut.zero_c, 0)
        set_matrix(ctx, dut.c_matrix, matrix_to_f64_flat(C))

    ctx.set(dut.start, 1)
    await ctx.tick()

    ctx.set(dut.start, 0)

    cycles = 1
    for _ in range(20):
        done = ctx.get(dut.done)
        if done:
            break
        await ctx.tick()
        cycles += 1

    assert done, "Computation did not complete"

    result = f64_flat_to_matrix(get_matrix(ctx, dut.d_matrix, n * n), n, n)

    # let the FSM fall back to IDLE
    await ctx.tick()
    assert not ctx.get(dut.done)

    return result, cycles


def test_tensor_core_rejects_small_size():
    with pytest.raises(ValueError):
        TensorCore(size=1)


@pytest.mark.slow
def test_tensor_core_2x2_integers(request):
    dut = TensorCore(size=2)

    async def bench(ctx):
        np.random.seed(42)
        A = np.random.randint(-8, 8, size=(2, 2)).astype(np.float64)
        B = np.random.randint(-8, 8, size=(2, 2)).astype(np.float64)
        C = np.random.randint(-8, 8, size=(2, 2)).astype(np.float64)

        result, cycles = await compute(ctx, dut, A, B, C)

        # start, load C, one cycle per k
        assert cycles == 2 + dut.size

        expected = A @ B + C
        for i, j in itertools.product(range(2), range(2)):
            assert result[i, j] == expected[i, j], f"D[{i},{j}]: got {result[i, j]}, expected {expected[i, j]}"

    run_core(request, dut, bench, sys._getframe().f_code.co_name)


@pytest.mark.slow
def test_tensor_core_2x2_identity_zero_c(request):
    dut = TensorCore(size=2)

    async def bench(ctx):
        I = np.eye(2)
        A = np.array([[0.1, -2.5], [1e-300, 3.0e200]])

        result, _ = await compute(ctx, dut, I, A)

        for i, j in itertools.product(range(2), range(2)):
            assert result[i, j] == A[i, j], f"D[{i},{j}]: got {result[i, j]!r}, expected {A[i, j]!r}"

    run_core(request, dut, bench, sys._getframe().f_code.co_name)


@pytest.mark.slow
def test_tensor_core_back_to_back(request):
    dut = TensorCore(size=2)

    async def bench(ctx):
        A = np.array([[1.0, 2.0], [3.0, 4.0]])
        B = np.array([[5.0, 6.0], [7.0, 8.0]])
        C = np.full((2, 2), 0.5)

        first, _ = await compute(ctx, dut, A, B, C)
        second, _ = await compute(ctx, dut, A, B)

        np.testing.assert_array_equal(first, A @ B + C)
        np.testing.assert_array_equal(second, A @ B)

    run_core(request, dut, bench, sys._getframe().f_code.co_name)
