"""Shape variants searched by the workers.

Every shape keeps a reference to its owning worker, which provides the canvas
bounds, the random source, the reusable span buffer and the rasterizer. The
only capability the search needs is `rasterize()`; `mutate()` and `copy()`
serve the local search, while `svg()` and `patch()` serve output rendering.

Coordinates are in worker pixels, with pixel `(x, y)` centred on `(x, y)`.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np
from matplotlib import patches as mpatches
from matplotlib.path import Path

from .constants import FULL_COVERAGE, MUTATE_MARGIN, MUTATE_STEP
from .core import Color
from .raster import quadratic_points

if TYPE_CHECKING:
    from .worker import Worker


class ShapeType(IntEnum):
    """Shape selector; `ANY` picks a random concrete type per candidate."""

    ANY = 0
    TRIANGLE = 1
    RECTANGLE = 2
    ELLIPSE = 3
    CIRCLE = 4
    ROTATED_RECTANGLE = 5
    QUADRATIC = 6
    ROTATED_ELLIPSE = 7
    POLYGON = 8


CONCRETE_SHAPE_TYPES: tuple[ShapeType, ...] = tuple(t for t in ShapeType if t != ShapeType.ANY)


def resolve_shape_type(value: int | ShapeType | None, rng: np.random.Generator) -> ShapeType:
    """Map a selector to a concrete shape type.

    Concrete types pass through; `ANY` and unknown values are replaced by a
    uniformly drawn concrete type, as is `None`.
    """
    try:
        shape_type = ShapeType(int(value))
    except (TypeError, ValueError):
        shape_type = ShapeType.ANY
    if shape_type == ShapeType.ANY:
        shape_type = CONCRETE_SHAPE_TYPES[int(rng.integers(len(CONCRETE_SHAPE_TYPES)))]
    return shape_type


def _clamp(value: float, lo: float, hi: float) -> float:
    hi = max(hi, lo)
    return lo if value < lo else hi if value > hi else value


def _clamp_int(value: int, lo: int, hi: int) -> int:
    hi = max(hi, lo)
    return lo if value < lo else hi if value > hi else value


def _rotate(x: float, y: float, theta: float) -> tuple[float, float]:
    c, s = math.cos(theta), math.sin(theta)
    return x * c - y * s, x * s + y * c


def _step(rng: np.random.Generator) -> int:
    return int(rng.normal() * MUTATE_STEP)


class Shape(ABC):
    """Base class for all shape variants."""

    def __init__(self, worker: Worker) -> None:
        self.worker = worker

    @abstractmethod
    def rasterize(self) -> np.ndarray:
        """Fill the worker's span buffer and return the spans `(N, 4)`."""

    @abstractmethod
    def copy(self) -> Shape:
        """Independent copy bound to the same worker."""

    @abstractmethod
    def mutate(self) -> None:
        """Apply one random local change, keeping the shape valid."""

    @abstractmethod
    def svg(self, attrs: str) -> str:
        """SVG element for this shape, with `attrs` carrying fill attributes."""

    @abstractmethod
    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        """matplotlib patch in worker pixel coordinates.

        Args:
            color: Fill (or stroke) colour.
            px: Size of one worker pixel in points, for stroked shapes.
        """

    def valid(self) -> bool:
        return True

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items() if k != "worker")
        return f"{type(self).__name__}({fields})"


def _fill_patch(points: np.ndarray, color: Color) -> mpatches.Patch:
    return mpatches.Polygon(points, closed=True, facecolor=color.rgba(), edgecolor="none", linewidth=0)


def _edge_x(x0: int, dx: int, dy: int, steps: np.ndarray) -> np.ndarray:
    # one division per row keeps exact vertices exact
    if dy == 0:
        return np.full(steps.shape, x0, dtype=np.int64)
    return (x0 + dx * steps / dy).astype(np.int64)


def _rasterize_triangle_bottom(x1: int, y1: int, x2: int, y2: int, x3: int, y3: int, lines) -> None:
    ys = np.arange(y1, y2 + 1, dtype=np.int64)
    steps = ys - y1
    a = _edge_x(x1, x2 - x1, y2 - y1, steps)
    b = _edge_x(x1, x3 - x1, y3 - y1, steps)
    lines.extend(ys, np.minimum(a, b), np.maximum(a, b), FULL_COVERAGE)


def _rasterize_triangle_top(x1: int, y1: int, x2: int, y2: int, x3: int, y3: int, lines) -> None:
    ys = np.arange(y3, y1, -1, dtype=np.int64)
    steps = y3 - ys + 1
    a = _edge_x(x3, x1 - x3, y3 - y1, steps)
    b = _edge_x(x3, x2 - x3, y3 - y2, steps)
    lines.extend(ys, np.minimum(a, b), np.maximum(a, b), FULL_COVERAGE)


class Triangle(Shape):
    def __init__(self, worker: Worker, x1: int, y1: int, x2: int, y2: int, x3: int, y3: int) -> None:
        super().__init__(worker)
        self.x1, self.y1 = x1, y1
        self.x2, self.y2 = x2, y2
        self.x3, self.y3 = x3, y3

    @classmethod
    def random(cls, worker: Worker) -> Triangle:
        rng = worker.rng
        x1 = int(rng.integers(worker.width))
        y1 = int(rng.integers(worker.height))
        x2 = x1 + int(rng.integers(31)) - 15
        y2 = y1 + int(rng.integers(31)) - 15
        x3 = x1 + int(rng.integers(31)) - 15
        y3 = y1 + int(rng.integers(31)) - 15
        t = cls(worker, x1, y1, x2, y2, x3, y3)
        t.mutate()
        return t

    def copy(self) -> Triangle:
        return Triangle(self.worker, self.x1, self.y1, self.x2, self.y2, self.x3, self.y3)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        m = MUTATE_MARGIN
        while True:
            i = int(rng.integers(3))
            if i == 0:
                self.x1 = _clamp_int(self.x1 + _step(rng), -m, w - 1 + m)
                self.y1 = _clamp_int(self.y1 + _step(rng), -m, h - 1 + m)
            elif i == 1:
                self.x2 = _clamp_int(self.x2 + _step(rng), -m, w - 1 + m)
                self.y2 = _clamp_int(self.y2 + _step(rng), -m, h - 1 + m)
            else:
                self.x3 = _clamp_int(self.x3 + _step(rng), -m, w - 1 + m)
                self.y3 = _clamp_int(self.y3 + _step(rng), -m, h - 1 + m)
            if self.valid():
                break

    def valid(self) -> bool:
        """Every interior angle must exceed 15 degrees."""
        min_degrees = 15.0
        pts = [(self.x1, self.y1), (self.x2, self.y2), (self.x3, self.y3)]
        for i in range(3):
            ox, oy = pts[i]
            ax, ay = pts[(i + 1) % 3]
            bx, by = pts[(i + 2) % 3]
            ux, uy = float(ax - ox), float(ay - oy)
            vx, vy = float(bx - ox), float(by - oy)
            du = math.hypot(ux, uy)
            dv = math.hypot(vx, vy)
            if du == 0.0 or dv == 0.0:
                return False
            cos_a = _clamp((ux * vx + uy * vy) / (du * dv), -1.0, 1.0)
            if math.degrees(math.acos(cos_a)) <= min_degrees:
                return False
        return True

    def rasterize(self) -> np.ndarray:
        lines = self.worker.lines
        lines.clear()
        pts = sorted([(self.y1, self.x1), (self.y2, self.x2), (self.y3, self.x3)])
        (y1, x1), (y2, x2), (y3, x3) = pts
        if y2 == y3:
            _rasterize_triangle_bottom(x1, y1, x2, y2, x3, y3, lines)
        elif y1 == y2:
            _rasterize_triangle_top(x1, y1, x2, y2, x3, y3, lines)
        else:
            x4 = x1 + int((y2 - y1) * (x3 - x1) / (y3 - y1))
            _rasterize_triangle_bottom(x1, y1, x2, y2, x4, y2, lines)
            _rasterize_triangle_top(x2, y2, x4, y2, x3, y3, lines)
        return lines.crop(self.worker.width, self.worker.height)

    def svg(self, attrs: str) -> str:
        return f'<polygon {attrs} points="{self.x1},{self.y1} {self.x2},{self.y2} {self.x3},{self.y3}" />'

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        pts = np.array([[self.x1, self.y1], [self.x2, self.y2], [self.x3, self.y3]], dtype=float)
        return _fill_patch(pts, color)


class Rectangle(Shape):
    def __init__(self, worker: Worker, x1: int, y1: int, x2: int, y2: int) -> None:
        super().__init__(worker)
        self.x1, self.y1 = x1, y1
        self.x2, self.y2 = x2, y2

    @classmethod
    def random(cls, worker: Worker) -> Rectangle:
        rng = worker.rng
        x1 = int(rng.integers(worker.width))
        y1 = int(rng.integers(worker.height))
        x2 = _clamp_int(x1 + int(rng.integers(32)) + 1, 0, worker.width - 1)
        y2 = _clamp_int(y1 + int(rng.integers(32)) + 1, 0, worker.height - 1)
        return cls(worker, x1, y1, x2, y2)

    def bounds(self) -> tuple[int, int, int, int]:
        x1, x2 = sorted((self.x1, self.x2))
        y1, y2 = sorted((self.y1, self.y2))
        return x1, y1, x2, y2

    def copy(self) -> Rectangle:
        return Rectangle(self.worker, self.x1, self.y1, self.x2, self.y2)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        if int(rng.integers(2)) == 0:
            self.x1 = _clamp_int(self.x1 + _step(rng), 0, w - 1)
            self.y1 = _clamp_int(self.y1 + _step(rng), 0, h - 1)
        else:
            self.x2 = _clamp_int(self.x2 + _step(rng), 0, w - 1)
            self.y2 = _clamp_int(self.y2 + _step(rng), 0, h - 1)

    def rasterize(self) -> np.ndarray:
        x1, y1, x2, y2 = self.bounds()
        lines = self.worker.lines
        lines.clear()
        lines.extend(np.arange(y1, y2 + 1), x1, x2)
        return lines.view()

    def svg(self, attrs: str) -> str:
        x1, y1, x2, y2 = self.bounds()
        return f'<rect {attrs} x="{x1 - 0.5}" y="{y1 - 0.5}" width="{x2 - x1 + 1}" height="{y2 - y1 + 1}" />'

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        x1, y1, x2, y2 = self.bounds()
        return mpatches.Rectangle(
            (x1 - 0.5, y1 - 0.5),
            x2 - x1 + 1,
            y2 - y1 + 1,
            facecolor=color.rgba(),
            edgecolor="none",
            linewidth=0,
        )


class Ellipse(Shape):
    """Axis-aligned ellipse; `circle=True` keeps both radii equal."""

    def __init__(self, worker: Worker, x: int, y: int, rx: int, ry: int, circle: bool = False) -> None:
        super().__init__(worker)
        self.x, self.y = x, y
        self.rx, self.ry = rx, ry
        self.circle = circle

    @classmethod
    def random(cls, worker: Worker) -> Ellipse:
        rng = worker.rng
        x = int(rng.integers(worker.width))
        y = int(rng.integers(worker.height))
        rx = int(rng.integers(32)) + 1
        ry = int(rng.integers(32)) + 1
        return cls(worker, x, y, rx, ry)

    @classmethod
    def random_circle(cls, worker: Worker) -> Ellipse:
        rng = worker.rng
        x = int(rng.integers(worker.width))
        y = int(rng.integers(worker.height))
        r = int(rng.integers(32)) + 1
        return cls(worker, x, y, r, r, circle=True)

    def copy(self) -> Ellipse:
        return Ellipse(self.worker, self.x, self.y, self.rx, self.ry, self.circle)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        i = int(rng.integers(3))
        if i == 0:
            self.x = _clamp_int(self.x + _step(rng), 0, w - 1)
            self.y = _clamp_int(self.y + _step(rng), 0, h - 1)
        elif i == 1:
            self.rx = _clamp_int(self.rx + _step(rng), 1, w - 1)
            if self.circle:
                self.ry = self.rx
        else:
            self.ry = _clamp_int(self.ry + _step(rng), 1, h - 1)
            if self.circle:
                self.rx = self.ry

    def rasterize(self) -> np.ndarray:
        w, h = self.worker.width, self.worker.height
        lines = self.worker.lines
        lines.clear()
        dy = np.arange(self.ry, dtype=np.int64)
        s = (np.sqrt((self.ry * self.ry - dy * dy).astype(float)) * (self.rx / self.ry)).astype(np.int64)
        x1 = np.maximum(self.x - s, 0)
        x2 = np.minimum(self.x + s, w - 1)
        above = self.y - dy
        below = self.y + dy
        keep = (above >= 0) & (above < h)
        lines.extend(above[keep], x1[keep], x2[keep])
        keep = (below >= 0) & (below < h) & (dy > 0)
        lines.extend(below[keep], x1[keep], x2[keep])
        return lines.view()

    def svg(self, attrs: str) -> str:
        return f'<ellipse {attrs} cx="{self.x}" cy="{self.y}" rx="{self.rx}" ry="{self.ry}" />'

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        return mpatches.Ellipse(
            (self.x, self.y),
            2 * self.rx,
            2 * self.ry,
            facecolor=color.rgba(),
            edgecolor="none",
            linewidth=0,
        )


class RotatedRectangle(Shape):
    def __init__(self, worker: Worker, x: int, y: int, sx: int, sy: int, angle: int) -> None:
        super().__init__(worker)
        self.x, self.y = x, y
        self.sx, self.sy = sx, sy
        self.angle = angle

    @classmethod
    def random(cls, worker: Worker) -> RotatedRectangle:
        rng = worker.rng
        x = int(rng.integers(worker.width))
        y = int(rng.integers(worker.height))
        sx = int(rng.integers(32)) + 1
        sy = int(rng.integers(32)) + 1
        angle = int(rng.integers(360))
        r = cls(worker, x, y, sx, sy, angle)
        r.mutate()
        return r

    def copy(self) -> RotatedRectangle:
        return RotatedRectangle(self.worker, self.x, self.y, self.sx, self.sy, self.angle)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        while True:
            i = int(rng.integers(3))
            if i == 0:
                self.x = _clamp_int(self.x + _step(rng), 0, w - 1)
                self.y = _clamp_int(self.y + _step(rng), 0, h - 1)
            elif i == 1:
                self.sx = _clamp_int(self.sx + _step(rng), 1, w - 1)
                self.sy = _clamp_int(self.sy + _step(rng), 1, h - 1)
            else:
                self.angle = self.angle + int(rng.normal() * 32)
            if self.valid():
                break

    def valid(self) -> bool:
        """Aspect ratio of the sides must not exceed 5."""
        a, b = max(self.sx, self.sy), min(self.sx, self.sy)
        return a / b <= 5.0

    def corners(self) -> np.ndarray:
        theta = math.radians(self.angle)
        hx, hy = self.sx / 2.0, self.sy / 2.0
        pts = [_rotate(dx, dy, theta) for dx, dy in ((-hx, -hy), (hx, -hy), (hx, hy), (-hx, hy))]
        return np.array(pts, dtype=float) + np.array([self.x, self.y], dtype=float)

    def rasterize(self) -> np.ndarray:
        return self.worker.rasterizer.fill(self.corners() + 0.5, self.worker.lines)

    def svg(self, attrs: str) -> str:
        return (
            f'<g transform="translate({self.x} {self.y}) rotate({self.angle}) scale({self.sx} {self.sy})">'
            f'<rect {attrs} x="-0.5" y="-0.5" width="1" height="1" /></g>'
        )

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        return _fill_patch(self.corners(), color)


class Quadratic(Shape):
    """Stroked quadratic Bezier curve from `(x1, y1)` to `(x3, y3)`."""

    def __init__(
        self,
        worker: Worker,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        x3: float,
        y3: float,
        width: float = 0.5,
    ) -> None:
        super().__init__(worker)
        self.x1, self.y1 = x1, y1
        self.x2, self.y2 = x2, y2
        self.x3, self.y3 = x3, y3
        self.width = width

    @classmethod
    def random(cls, worker: Worker) -> Quadratic:
        rng = worker.rng
        x1 = float(rng.random()) * worker.width
        y1 = float(rng.random()) * worker.height
        x2 = x1 + float(rng.random()) * 40 - 20
        y2 = y1 + float(rng.random()) * 40 - 20
        x3 = x2 + float(rng.random()) * 40 - 20
        y3 = y2 + float(rng.random()) * 40 - 20
        q = cls(worker, x1, y1, x2, y2, x3, y3)
        q.mutate()
        return q

    def copy(self) -> Quadratic:
        return Quadratic(self.worker, self.x1, self.y1, self.x2, self.y2, self.x3, self.y3, self.width)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        m = float(MUTATE_MARGIN)
        while True:
            i = int(rng.integers(3))
            if i == 0:
                self.x1 = _clamp(self.x1 + float(rng.normal()) * MUTATE_STEP, -m, w - 1 + m)
                self.y1 = _clamp(self.y1 + float(rng.normal()) * MUTATE_STEP, -m, h - 1 + m)
            elif i == 1:
                self.x2 = _clamp(self.x2 + float(rng.normal()) * MUTATE_STEP, -m, w - 1 + m)
                self.y2 = _clamp(self.y2 + float(rng.normal()) * MUTATE_STEP, -m, h - 1 + m)
            else:
                self.x3 = _clamp(self.x3 + float(rng.normal()) * MUTATE_STEP, -m, w - 1 + m)
                self.y3 = _clamp(self.y3 + float(rng.normal()) * MUTATE_STEP, -m, h - 1 + m)
            if self.valid():
                break

    def valid(self) -> bool:
        """The end points must be the farthest-apart pair of control points."""
        dx12, dy12 = int(self.x1 - self.x2), int(self.y1 - self.y2)
        dx23, dy23 = int(self.x2 - self.x3), int(self.y2 - self.y3)
        dx13, dy13 = int(self.x1 - self.x3), int(self.y1 - self.y3)
        d12 = dx12 * dx12 + dy12 * dy12
        d23 = dx23 * dx23 + dy23 * dy23
        d13 = dx13 * dx13 + dy13 * dy13
        return d13 > d12 and d13 > d23

    def rasterize(self) -> np.ndarray:
        pts = quadratic_points((self.x1, self.y1), (self.x2, self.y2), (self.x3, self.y3))
        return self.worker.rasterizer.stroke(pts + 0.5, self.width, self.worker.lines)

    def svg(self, attrs: str) -> str:
        attrs = attrs.replace("fill", "stroke")
        return (
            f'<path {attrs} fill="none" d="M {self.x1:f} {self.y1:f} Q {self.x2:f} {self.y2:f}, '
            f'{self.x3:f} {self.y3:f}" stroke-width="{self.width:f}" />'
        )

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        path = Path(
            [(self.x1, self.y1), (self.x2, self.y2), (self.x3, self.y3)],
            [Path.MOVETO, Path.CURVE3, Path.CURVE3],
        )
        return mpatches.PathPatch(
            path,
            facecolor="none",
            edgecolor=color.rgba(),
            linewidth=self.width * px,
            capstyle="round",
            joinstyle="round",
        )


class RotatedEllipse(Shape):
    def __init__(self, worker: Worker, x: float, y: float, rx: float, ry: float, angle: float) -> None:
        super().__init__(worker)
        self.x, self.y = x, y
        self.rx, self.ry = rx, ry
        self.angle = angle

    @classmethod
    def random(cls, worker: Worker) -> RotatedEllipse:
        rng = worker.rng
        x = float(rng.random()) * worker.width
        y = float(rng.random()) * worker.height
        rx = float(rng.random()) * 32 + 1
        ry = float(rng.random()) * 32 + 1
        angle = float(rng.random()) * 360
        return cls(worker, x, y, rx, ry, angle)

    def copy(self) -> RotatedEllipse:
        return RotatedEllipse(self.worker, self.x, self.y, self.rx, self.ry, self.angle)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        i = int(rng.integers(3))
        if i == 0:
            self.x = _clamp(self.x + float(rng.normal()) * MUTATE_STEP, 0, w - 1)
            self.y = _clamp(self.y + float(rng.normal()) * MUTATE_STEP, 0, h - 1)
        elif i == 1:
            self.rx = _clamp(self.rx + float(rng.normal()) * MUTATE_STEP, 1, w - 1)
            self.ry = _clamp(self.ry + float(rng.normal()) * MUTATE_STEP, 1, h - 1)
        else:
            self.angle = self.angle + float(rng.normal()) * 32

    def outline(self, n: int = 32) -> np.ndarray:
        """Polygonal outline with `n` vertices `(n, 2)`."""
        t = np.linspace(0.0, 2.0 * math.pi, int(n), endpoint=False)
        theta = math.radians(self.angle)
        c, s = math.cos(theta), math.sin(theta)
        ex = self.rx * np.cos(t)
        ey = self.ry * np.sin(t)
        return np.column_stack([ex * c - ey * s + self.x, ex * s + ey * c + self.y])

    def rasterize(self) -> np.ndarray:
        return self.worker.rasterizer.fill(self.outline() + 0.5, self.worker.lines)

    def svg(self, attrs: str) -> str:
        return (
            f'<g transform="translate({self.x:f} {self.y:f}) rotate({self.angle:f}) scale({self.rx:f} {self.ry:f})">'
            f'<ellipse {attrs} cx="0" cy="0" rx="1" ry="1" /></g>'
        )

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        return mpatches.Ellipse(
            (self.x, self.y),
            2 * self.rx,
            2 * self.ry,
            angle=self.angle,
            facecolor=color.rgba(),
            edgecolor="none",
            linewidth=0,
        )


class Polygon(Shape):
    def __init__(self, worker: Worker, xs: list[float], ys: list[float], convex: bool = False) -> None:
        super().__init__(worker)
        if len(xs) != len(ys) or len(xs) < 3:
            raise ValueError("Polygon needs at least 3 vertices with matching x/y lengths")
        self.xs = list(xs)
        self.ys = list(ys)
        self.convex = convex

    @property
    def order(self) -> int:
        return len(self.xs)

    @classmethod
    def random(cls, worker: Worker, order: int = 4, convex: bool = False) -> Polygon:
        rng = worker.rng
        x0 = float(rng.random()) * worker.width
        y0 = float(rng.random()) * worker.height
        xs = [x0] + [x0 + float(rng.random()) * 40 - 20 for _ in range(order - 1)]
        ys = [y0] + [y0 + float(rng.random()) * 40 - 20 for _ in range(order - 1)]
        p = cls(worker, xs, ys, convex)
        p.mutate()
        return p

    def copy(self) -> Polygon:
        return Polygon(self.worker, self.xs, self.ys, self.convex)

    def mutate(self) -> None:
        w, h, rng = self.worker.width, self.worker.height, self.worker.rng
        m = float(MUTATE_MARGIN)
        while True:
            if float(rng.random()) < 0.25:
                i = int(rng.integers(self.order))
                j = int(rng.integers(self.order))
                self.xs[i], self.xs[j] = self.xs[j], self.xs[i]
                self.ys[i], self.ys[j] = self.ys[j], self.ys[i]
            else:
                i = int(rng.integers(self.order))
                self.xs[i] = _clamp(self.xs[i] + float(rng.normal()) * MUTATE_STEP, -m, w - 1 + m)
                self.ys[i] = _clamp(self.ys[i] + float(rng.normal()) * MUTATE_STEP, -m, h - 1 + m)
            if self.valid():
                break

    def valid(self) -> bool:
        """Non-convex polygons are always valid; convex ones need a consistent turn sign."""
        if not self.convex:
            return True
        sign = False
        n = self.order
        for a in range(n):
            i, j, k = a, (a + 1) % n, (a + 2) % n
            dx1, dy1 = self.xs[j] - self.xs[i], self.ys[j] - self.ys[i]
            dx2, dy2 = self.xs[k] - self.xs[j], self.ys[k] - self.ys[j]
            positive = dx1 * dy2 - dy1 * dx2 > 0
            if a == 0:
                sign = positive
            elif positive != sign:
                return False
        return True

    def points(self) -> np.ndarray:
        return np.column_stack([self.xs, self.ys]).astype(float)

    def rasterize(self) -> np.ndarray:
        return self.worker.rasterizer.fill(self.points() + 0.5, self.worker.lines)

    def svg(self, attrs: str) -> str:
        pts = " ".join(f"{x:f},{y:f}" for x, y in zip(self.xs, self.ys))
        return f'<polygon {attrs} points="{pts}" />'

    def patch(self, color: Color, *, px: float = 1.0) -> mpatches.Patch:
        return _fill_patch(self.points(), color)


def random_shape(worker: Worker, shape_type: ShapeType) -> Shape:
    """Build a random shape of a concrete `shape_type` for `worker`."""
    if shape_type == ShapeType.TRIANGLE:
        return Triangle.random(worker)
    if shape_type == ShapeType.RECTANGLE:
        return Rectangle.random(worker)
    if shape_type == ShapeType.ELLIPSE:
        return Ellipse.random(worker)
    if shape_type == ShapeType.CIRCLE:
        return Ellipse.random_circle(worker)
    if shape_type == ShapeType.ROTATED_RECTANGLE:
        return RotatedRectangle.random(worker)
    if shape_type == ShapeType.QUADRATIC:
        return Quadratic.random(worker)
    if shape_type == ShapeType.ROTATED_ELLIPSE:
        return RotatedEllipse.random(worker)
    if shape_type == ShapeType.POLYGON:
        return Polygon.random(worker, 4, False)
    raise ValueError(f"Not a concrete shape type: {shape_type!r}")
