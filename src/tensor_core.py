from amaranth import *
from amaranth.build import Platform
from amaranth.lib import enum, wiring
from amaranth.lib.wiring import In, Out

from float64 import Float64
from pe import PE
from rounder import RoundingMode


class State(enum.Enum, shape=2):
    IDLE = 0
    LOAD_C = 1
    MAC = 2
    DONE = 3


class TensorCore(wiring.Component):
    """Square binary64 tensor core: D = A @ B + C (or A @ B with zero_c)

    One PE per output element. After `start`, the core loads C, then feeds
    one k slice of A and B per cycle and raises `done` once all `size`
    products have been accumulated. Matrices are flattened row-major.
    """

    def __init__(
        self,
        size: int = 4,
        rounding: RoundingMode = RoundingMode.NEAREST_EVEN,
        flush_subnormals: bool = False,
    ):
        if size < 2:
            raise ValueError(f"TensorCore size must be at least 2, got {size}")

        self.size = size
        self.rounding = rounding
        self.flush_subnormals = flush_subnormals

        elements = size * size
        super().__init__(
            {
                "a_matrix": In(Float64).array(elements),
                "b_matrix": In(Float64).array(elements),
                "c_matrix": In(Float64).array(elements),
                "zero_c": In(1),
                "start": In(1),
                "done": Out(1),
                "d_matrix": Out(Float64).array(elements),
            }
        )

    def elaborate(self, platform: Platform | None) -> Module:
        m = Module()

        n = self.size

        pe = [
            [PE(terms=n, rounding=self.rounding, flush_subnormals=self.flush_subnormals) for _ in range(n)]
            for _ in range(n)
        ]
        for i in range(n):
            for j in range(n):
                m.submodules[f"pe_{i}_{j}"] = pe[i][j]

        state = Signal(State)
        k = Signal(range(n))

        for i in range(n):
            for j in range(n):
                idx = i * n + j
                m.d.comb += pe[i][j].c_in.eq(self.c_matrix[idx])
                m.d.comb += pe[i][j].zero_c.eq(self.zero_c)

        with m.Switch(k):
            for k_val in range(n):
                with m.Case(k_val):
                    for i in range(n):
                        for j in range(n):
                            a_idx = i * n + k_val
                            b_idx = k_val * n + j
                            m.d.comb += pe[i][j].a_in.eq(self.a_matrix[a_idx])
                            m.d.comb += pe[i][j].b_in.eq(self.b_matrix[b_idx])

        with m.Switch(state):
            with m.Case(State.IDLE):
                m.d.comb += self.done.eq(0)
                for i in range(n):
                    for j in range(n):
                        m.d.comb += pe[i][j].load_c.eq(0)
                        m.d.comb += pe[i][j].enable.eq(0)

                with m.If(self.start):
                    m.d.sync += state.eq(State.LOAD_C)
                    m.d.sync += k.eq(0)

            with m.Case(State.LOAD_C):
                m.d.comb += self.done.eq(0)
                for i in range(n):
                    for j in range(n):
                        m.d.comb += pe[i][j].load_c.eq(1)
                        m.d.comb += pe[i][j].enable.eq(0)

                m.d.sync += state.eq(State.MAC)

            with m.Case(State.MAC):
                m.d.comb += self.done.eq(0)
                for i in range(n):
                    for j in range(n):
                        m.d.comb += pe[i][j].load_c.eq(0)
                        m.d.comb += pe[i][j].enable.eq(1)

                with m.If(k == n - 1):
                    m.d.sync += state.eq(State.DONE)
                with m.Else():
                    m.d.sync += k.eq(k + 1)

            with m.Case(State.DONE):
                m.d.comb += self.done.eq(1)
                for i in range(n):
                    for j in range(n):
                        m.d.comb += pe[i][j].load_c.eq(0)
                        m.d.comb += pe[i][j].enable.eq(0)

                with m.If(~self.start):
                    m.d.sync += state.eq(State.IDLE)

        for i in range(n):
            for j in range(n):
                idx = i * n + j
                m.d.comb += self.d_matrix[idx].eq(pe[i][j].acc_out)

        return m
