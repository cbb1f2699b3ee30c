import itertools
import logging

import numpy as np
from amaranth.sim import Simulator

from float64 import F64
from oracle import MMAOracle
from rounder import RoundingMode
from tensor_core import TensorCore

logger = logging.getLogger(__name__)


def matrix_to_f64_flat(matrix):
    flat = []
    rows, cols = matrix.shape
    for i, j in itertools.product(range(rows), range(cols)):
        flat.append(F64.from_float(float(matrix[i, j])))
    return flat


def f64_flat_to_matrix(flat_f64, rows, cols):
    matrix = np.zeros((rows, cols), dtype=np.float64)
    for i, j in itertools.product(range(rows), range(cols)):
        matrix[i, j] = flat_f64[i * cols + j].to_float()
    return matrix


def set_matrix(ctx, port, matrix_flat):
    for idx, f64 in enumerate(matrix_flat):
        ctx.set(port[idx], f64.as_struct())


def get_matrix(ctx, port, size):
    return [F64.from_struct(ctx.get(port[idx])) for idx in range(size)]


class TensorCoreOracle(MMAOracle):
    """Runs the Amaranth TensorCore model in simulation, one start pulse per call."""

    name = "tensor-core"

    def __init__(
        self,
        size: int = 4,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN,
        flush_subnormals: bool = False,
        vcd_prefix: str | None = None,
        max_cycles: int | None = None,
    ):
        super().__init__(size)
        self.rounding = rounding
        self.flush_subnormals = flush_subnormals
        self.vcd_prefix = vcd_prefix
        self.max_cycles = max_cycles if max_cycles is not None else size + 4
        self.invocations = 0

    def _compute(self, a, b, c):
        dut = TensorCore(size=self.size, rounding=self.rounding, flush_subnormals=self.flush_subnormals)
        elements = self.size * self.size
        outputs = []

        async def bench(ctx):
            set_matrix(ctx, dut.a_matrix, matrix_to_f64_flat(a))
            set_matrix(ctx, dut.b_matrix, matrix_to_f64_flat(b))
            if c is None:
                ctx.set(dut.zero_c, 1)
            else:
                ctx.set(dut.zero_c, 0)
                set_matrix(ctx, dut.c_matrix, matrix_to_f64_flat(c))

            ctx.set(dut.start, 1)
            await ctx.tick()

            ctx.set(dut.start, 0)

            for cycle in range(self.max_cycles):
                done = ctx.get(dut.done)
                if done:
                    logger.debug("tensor core done after %d cycles", cycle + 1)
                    break
                await ctx.tick()

            if not done:
                raise RuntimeError(f"tensor core did not finish within {self.max_cycles} cycles")

            outputs.extend(get_matrix(ctx, dut.d_matrix, elements))

        sim = Simulator(dut)
        sim.add_clock(1e-6)
        sim.add_testbench(bench)

        self.invocations += 1
        if self.vcd_prefix:
            vcd_name = f"{self.vcd_prefix}_{self.invocations:03d}.vcd"
            with sim.write_vcd(vcd_name):
                sim.run()
        else:
            sim.run()

        return f64_flat_to_matrix(outputs, self.size, self.size)
