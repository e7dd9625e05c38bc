"""Scanline rasterizer for filled polygons and stroked polylines.

Shapes without a closed-form scanline decomposition (rotated rectangles,
rotated ellipses, polygons and quadratic curves) are converted to spans here.
A pixel is covered when its centre `(x + 0.5, y + 0.5)` lies inside the
polygon (matplotlib's point-in-path test) or within half the stroke width of a
polyline. Only the clipped bounding box of the geometry is sampled, so the
cost follows the shape size.
"""

from __future__ import annotations

import math

import numpy as np
from matplotlib.path import Path

from .scanline import ScanlineBuffer


def quadratic_points(p0: tuple[float, float], p1: tuple[float, float], p2: tuple[float, float], n: int = 16) -> np.ndarray:
    """Sample a quadratic Bezier curve into `n + 1` points `(n + 1, 2)`."""
    t = np.linspace(0.0, 1.0, int(n) + 1)[:, None]
    a = np.asarray(p0, dtype=float)[None, :]
    b = np.asarray(p1, dtype=float)[None, :]
    c = np.asarray(p2, dtype=float)[None, :]
    u = 1.0 - t
    return u * u * a + 2.0 * u * t * b + t * t * c


class Rasterizer:
    """Reusable span generator bound to a fixed canvas size.

    The pixel-centre grid is built once and sliced per call; callers pass the
    span buffer to fill so no per-call state survives between shapes.
    """

    def __init__(self, width: int, height: int) -> None:
        self.width = int(width)
        self.height = int(height)
        xs = np.arange(self.width, dtype=float) + 0.5
        ys = np.arange(self.height, dtype=float) + 0.5
        self._centers = np.stack(np.meshgrid(xs, ys), axis=-1)

    def _clip_box(self, points: np.ndarray, pad: float = 0.0) -> tuple[int, int, int, int] | None:
        lo = np.min(points, axis=0) - pad
        hi = np.max(points, axis=0) + pad
        if not (np.all(np.isfinite(lo)) and np.all(np.isfinite(hi))):
            return None
        x0 = max(int(math.floor(lo[0])), 0)
        y0 = max(int(math.floor(lo[1])), 0)
        x1 = min(int(math.ceil(hi[0])), self.width - 1)
        y1 = min(int(math.ceil(hi[1])), self.height - 1)
        if x0 > x1 or y0 > y1:
            return None
        return x0, y0, x1, y1

    @staticmethod
    def _emit_runs(mask: np.ndarray, x0: int, y0: int, lines: ScanlineBuffer) -> None:
        rows, cols = mask.shape
        padded = np.zeros((rows, cols + 2), dtype=np.int8)
        padded[:, 1:-1] = mask
        edges = np.diff(padded, axis=1)
        start_rows, start_cols = np.nonzero(edges == 1)
        _, end_cols = np.nonzero(edges == -1)
        lines.extend(start_rows + y0, start_cols + x0, end_cols - 1 + x0)

    def fill(self, points: np.ndarray, lines: ScanlineBuffer) -> np.ndarray:
        """Rasterize a closed polygon into `lines` (cleared first).

        Args:
            points: Vertices `(V, 2)` in pixel coordinates.
            lines: Span buffer to fill.

        Returns:
            The spans, already cropped to the canvas.
        """
        lines.clear()
        points = np.asarray(points, dtype=float)
        box = self._clip_box(points)
        if box is None:
            return lines.view()
        x0, y0, x1, y1 = box
        grid = self._centers[y0 : y1 + 1, x0 : x1 + 1]
        inside = Path(points, closed=False).contains_points(grid.reshape(-1, 2))
        self._emit_runs(inside.reshape(grid.shape[:2]), x0, y0, lines)
        return lines.view()

    def stroke(self, points: np.ndarray, width: float, lines: ScanlineBuffer) -> np.ndarray:
        """Rasterize an open polyline of the given width into `lines` (cleared first).

        Pixels whose centre is within `max(width / 2, 0.5)` of the polyline are
        covered, so thin strokes stay at least one pixel wide.
        """
        lines.clear()
        points = np.asarray(points, dtype=float)
        reach = max(0.5 * float(width), 0.5)
        box = self._clip_box(points, pad=reach)
        if box is None:
            return lines.view()
        x0, y0, x1, y1 = box
        grid = self._centers[y0 : y1 + 1, x0 : x1 + 1]
        pts = grid.reshape(-1, 1, 2)
        a = points[:-1][None, :, :]
        ab = (points[1:] - points[:-1])[None, :, :]
        denom = np.sum(ab * ab, axis=-1)
        denom = np.where(denom > 0.0, denom, 1.0)
        t = np.clip(np.sum((pts - a) * ab, axis=-1) / denom, 0.0, 1.0)
        nearest = a + t[..., None] * ab
        dist2 = np.min(np.sum((pts - nearest) ** 2, axis=-1), axis=1)
        self._emit_runs((dist2 <= reach * reach).reshape(grid.shape[:2]), x0, y0, lines)
        return lines.view()
