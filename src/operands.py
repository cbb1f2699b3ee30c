import numpy as np
from numpy.typing import NDArray


class OperandBuilder:
    """Fixed-shape A, B and C operand buffers, reused across probes.

    Every entry not written since the last `reset()` is exactly 0.0. Once the
    buffers have been handed to a unit (`mark_loaded()`), they must be reset
    before the next probe writes to them.
    """

    MATRICES = ("a", "b", "c")

    def __init__(self, size: int):
        if size < 1:
            raise ValueError(f"operand size must be positive, got {size}")

        self.size = size
        self._matrices = {name: np.zeros((size, size), dtype=np.float64) for name in self.MATRICES}
        self._loaded = False

    def reset(self) -> None:
        for matrix in self._matrices.values():
            matrix.fill(0.0)
        self._loaded = False

    def set_entry(self, matrix: str, row: int, col: int, value: float) -> None:
        if self._loaded:
            raise RuntimeError("operands were loaded into the unit; reset() before encoding again")
        if matrix not in self._matrices:
            raise ValueError(f"unknown operand matrix {matrix!r}, expected one of {self.MATRICES}")
        if not (0 <= row < self.size and 0 <= col < self.size):
            raise IndexError(f"entry ({row}, {col}) outside {self.size}x{self.size} operand")

        self._matrices[matrix][row, col] = value

    def mark_loaded(self) -> None:
        self._loaded = True

    def matrix(self, name: str) -> NDArray[np.float64]:
        """Read-only view of one operand buffer."""
        view = self._matrices[name].view()
        view.flags.writeable = False
        return view

    @property
    def a(self) -> NDArray[np.float64]:
        return self.matrix("a")

    @property
    def b(self) -> NDArray[np.float64]:
        return self.matrix("b")

    @property
    def c(self) -> NDArray[np.float64]:
        return self.matrix("c")
