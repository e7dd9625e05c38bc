"""Per-pixel accumulation grid for span coverage."""

from __future__ import annotations

import numpy as np

from .scanline import span_pixels


class Heatmap:
    """Accumulates span coverage per pixel.

    Workers reset their heatmap at the start of every round; `add` records the
    coverage of a rasterized shape.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        self.count = np.zeros((self.height, self.width), dtype=np.uint64)

    def clear(self) -> None:
        self.count.fill(0)

    def add(self, lines: np.ndarray) -> None:
        """Add each span's coverage to the pixels it touches."""
        ys, xs, alphas = span_pixels(lines)
        np.add.at(self.count, (ys, xs), alphas.astype(np.uint64))

