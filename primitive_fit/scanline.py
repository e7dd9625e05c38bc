"""Scanline spans and the reusable span buffer.

A span is a horizontal run of pixels `[x1, x2]` (inclusive) on row `y` with a
16-bit coverage value. Spans are stored as rows of an `(N, 4)` int64 array with
columns `[y, x1, x2, alpha]`; every raster primitive in `primitive_fit.core`
works on that layout.
"""

from __future__ import annotations

import numpy as np

from .constants import FULL_COVERAGE, SPAN_CAPACITY

Y, X1, X2, ALPHA = 0, 1, 2, 3


class ScanlineBuffer:
    """Pre-sized span storage that is cleared and refilled per rasterization.

    The backing array only ever grows (by doubling), so a worker that evaluates
    thousands of shapes settles on a fixed allocation.
    """

    def __init__(self, capacity: int = SPAN_CAPACITY) -> None:
        self._data = np.zeros((max(1, int(capacity)), 4), dtype=np.int64)
        self.size = 0

    @property
    def capacity(self) -> int:
        return int(self._data.shape[0])

    def __len__(self) -> int:
        return self.size

    def clear(self) -> None:
        self.size = 0

    def _reserve(self, extra: int) -> None:
        need = self.size + extra
        cap = self.capacity
        if need <= cap:
            return
        while cap < need:
            cap *= 2
        grown = np.zeros((cap, 4), dtype=np.int64)
        grown[: self.size] = self._data[: self.size]
        self._data = grown

    def append(self, y: int, x1: int, x2: int, alpha: int = FULL_COVERAGE) -> None:
        self._reserve(1)
        self._data[self.size] = (y, x1, x2, alpha)
        self.size += 1

    def extend(self, ys: np.ndarray, x1s: np.ndarray, x2s: np.ndarray, alpha: int = FULL_COVERAGE) -> None:
        """Append many spans at once (arrays are broadcast against each other)."""
        ys, x1s, x2s = np.broadcast_arrays(np.asarray(ys), np.asarray(x1s), np.asarray(x2s))
        n = int(ys.size)
        if n == 0:
            return
        self._reserve(n)
        block = self._data[self.size : self.size + n]
        block[:, Y] = ys.ravel()
        block[:, X1] = x1s.ravel()
        block[:, X2] = x2s.ravel()
        block[:, ALPHA] = alpha
        self.size += n

    def crop(self, width: int, height: int) -> np.ndarray:
        """Clip spans to a `width x height` canvas, dropping empty ones.

        Returns:
            The cropped spans (a view into the buffer).
        """
        lines = self._data[: self.size]
        keep = (lines[:, Y] >= 0) & (lines[:, Y] < height) & (lines[:, X1] < width) & (lines[:, X2] >= 0)
        kept = lines[keep]
        np.clip(kept[:, X1], 0, width - 1, out=kept[:, X1])
        np.clip(kept[:, X2], 0, width - 1, out=kept[:, X2])
        kept = kept[kept[:, X1] <= kept[:, X2]]
        n = int(kept.shape[0])
        self._data[:n] = kept
        self.size = n
        return self._data[:n]

    def view(self) -> np.ndarray:
        return self._data[: self.size]


def span_pixels(lines: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Expand spans into per-pixel coordinates.

    Args:
        lines: Spans `(N, 4)` as `[y, x1, x2, alpha]`.

    Returns:
        `(ys, xs, alphas)`, each of length `sum(x2 - x1 + 1)`.
    """
    lines = np.asarray(lines, dtype=np.int64).reshape(-1, 4)
    if lines.shape[0] == 0:
        empty = np.zeros(0, dtype=np.int64)
        return empty, empty, empty
    lengths = lines[:, X2] - lines[:, X1] + 1
    total = int(lengths.sum())
    offsets = np.cumsum(lengths) - lengths
    ys = np.repeat(lines[:, Y], lengths)
    xs = np.arange(total, dtype=np.int64) - np.repeat(offsets - lines[:, X1], lengths)
    alphas = np.repeat(lines[:, ALPHA], lengths)
    return ys, xs, alphas


def span_area(lines: np.ndarray) -> int:
    """Number of pixels covered by `lines`."""
    lines = np.asarray(lines).reshape(-1, 4)
    if lines.shape[0] == 0:
        return 0
    return int(np.sum(lines[:, X2] - lines[:, X1] + 1))
