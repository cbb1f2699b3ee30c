"""Units under test, behind a load / multiply-accumulate / store contract."""

import abc
import logging
from fractions import Fraction

import numpy as np
from numpy.typing import NDArray

from exact import round_to_double

logger = logging.getLogger(__name__)


class MMAOracle(abc.ABC):
    """A fixed-size square multiply-accumulate unit treated as a black box.

    Usage per invocation: load_a, load_b, then load_c or init_to_zero, then
    multiply_accumulate and store. Results are never assumed correct.
    """

    name = "unit"

    def __init__(self, size: int):
        self.size = size
        self._a: NDArray[np.float64] | None = None
        self._b: NDArray[np.float64] | None = None
        self._c: NDArray[np.float64] | None = None
        self._d: NDArray[np.float64] | None = None

    def _checked(self, matrix) -> NDArray[np.float64]:
        operand = np.array(matrix, dtype=np.float64)
        if operand.shape != (self.size, self.size):
            raise ValueError(f"{self.name} expects {self.size}x{self.size} operands, got shape {operand.shape}")
        return operand

    def load_a(self, matrix) -> None:
        self._a = self._checked(matrix)

    def load_b(self, matrix) -> None:
        self._b = self._checked(matrix)

    def load_c(self, matrix) -> None:
        self._c = self._checked(matrix)

    def init_to_zero(self) -> None:
        self._c = None

    def multiply_accumulate(self) -> None:
        if self._a is None or self._b is None:
            raise RuntimeError("load_a and load_b must be called before multiply_accumulate")

        d = np.asarray(self._compute(self._a, self._b, self._c), dtype=np.float64)
        if d.shape != (self.size, self.size):
            raise ValueError(f"{self.name} returned shape {d.shape}, expected {(self.size, self.size)}")
        self._d = d

    def store(self) -> NDArray[np.float64]:
        if self._d is None:
            raise RuntimeError("multiply_accumulate has not been called")
        return self._d.copy()

    @abc.abstractmethod
    def _compute(
        self,
        a: NDArray[np.float64],
        b: NDArray[np.float64],
        c: NDArray[np.float64] | None,
    ) -> NDArray[np.float64]:
        """Return D = A @ B + C, or A @ B when c is None."""


class HostMatmulOracle(MMAOracle):
    """numpy matmul on the host; rounding behaviour is whatever BLAS does."""

    name = "host"

    def _compute(self, a, b, c):
        d = np.matmul(a, b)
        if c is not None:
            d = d + c
        return d


class ReferenceOracle(MMAOracle):
    """Exact dot products rounded once to nearest, ties to even."""

    name = "reference"

    def _compute(self, a, b, c):
        n = self.size
        d = np.zeros((n, n), dtype=np.float64)
        for i in range(n):
            for j in range(n):
                total = Fraction(0) if c is None else Fraction(float(c[i, j]))
                for k in range(n):
                    total += Fraction(float(a[i, k])) * Fraction(float(b[k, j]))
                d[i, j] = round_to_double(total)
        logger.debug("reference D[0,0] = %r", float(d[0, 0]))
        return d
