"""Canvas model: runs the workers and commits one shape per step.

The model owns the target and the current canvas. Each step initialises every
worker against the current canvas, runs them concurrently (one worker per
thread), keeps the best candidate and composites it onto the canvas.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from .config import SearchConfig
from .core import Color, check_canvas, compute_color, difference_full, difference_partial, draw_lines, uniform_rgba
from .optimize import hill_climb
from .render import render_shapes, svg_document
from .scanline import span_area
from .shapes import Shape, ShapeType
from .state import State
from .worker import Worker

logger = logging.getLogger(__name__)


class Model:
    """Greedy shape-by-shape approximation of a target canvas.

    Args:
        target: Target canvas `(H, W, 4)` uint8 (premultiplied RGBA).
        background: Initial canvas colour.
        size: Output size of the longer side, in pixels.
        num_workers: Number of workers (and threads).
        seed: Base seed; worker `i` is seeded with `seed + i`. Time-based when
            omitted.
    """

    def __init__(
        self,
        target: np.ndarray,
        background: Color,
        size: int,
        num_workers: int,
        *,
        seed: int | None = None,
    ) -> None:
        check_canvas(target, name="target")
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")
        h, w = target.shape[:2]
        aspect = w / float(h)
        if aspect >= 1:
            self.sw, self.sh = int(size), int(size / aspect)
            self.scale = size / float(w)
        else:
            self.sw, self.sh = int(size * aspect), int(size)
            self.scale = size / float(h)
        self.width, self.height = int(w), int(h)
        self.background = background
        self.target = target
        self.current = uniform_rgba(h, w, background)
        self.score = difference_full(self.target, self.current)
        self.shapes: list[Shape] = []
        self.colors: list[Color] = []
        self.scores: list[float] = []
        self.workers = [
            Worker(self.target, seed=None if seed is None else int(seed) + i) for i in range(int(num_workers))
        ]

    def add(self, shape: Shape, alpha: int) -> None:
        """Composite `shape` at `alpha` with its best-fit colour onto the canvas."""
        before = self.current.copy()
        lines = shape.rasterize().copy()
        color = compute_color(self.target, self.current, lines, alpha)
        draw_lines(self.current, color, lines)
        self.score = difference_partial(self.target, before, self.current, self.score, lines)
        self.shapes.append(shape)
        self.colors.append(color)
        self.scores.append(self.score)
        logger.debug(
            "added %r area=%d color=%s alpha=%d score=%.6f",
            shape,
            span_area(lines),
            color.hex(),
            color.a,
            self.score,
        )

    def step(
        self,
        shape_type: int | ShapeType | None,
        alpha: int,
        repeat: int = 0,
        *,
        search: SearchConfig | None = None,
    ) -> int:
        """Add the best shape found by the workers, plus up to `repeat` follow-ups.

        Follow-up shapes start from the previous winner and are only hill
        climbed; they stop early once climbing leaves the candidate unchanged.

        Returns:
            Total number of energy evaluations across workers for this step.
        """
        search = search if search is not None else SearchConfig()
        state = self._run_workers(shape_type, alpha, search)
        self.add(state.shape, state.alpha)
        for _ in range(int(repeat)):
            state.worker.init(self.current, self.score)
            state.score = -1.0
            a = state.energy()
            state = hill_climb(state, search.max_age)
            b = state.energy()
            if a == b:
                break
            self.add(state.shape, state.alpha)
        return sum(worker.counter for worker in self.workers)

    def _run_workers(self, shape_type: int | ShapeType | None, alpha: int, search: SearchConfig) -> State:
        per_worker = search.trials_per_worker(len(self.workers))
        for worker in self.workers:
            worker.init(self.current, self.score)

        def _run(worker: Worker) -> State:
            return worker.best_hill_climb_state(shape_type, alpha, search.n_random, search.max_age, per_worker)

        if len(self.workers) == 1:
            results = [_run(self.workers[0])]
        else:
            with ThreadPoolExecutor(max_workers=len(self.workers)) as ex:
                results = list(ex.map(_run, self.workers))

        best_state = results[0]
        best_energy = best_state.energy()
        for state in results[1:]:
            energy = state.energy()
            if energy < best_energy:
                best_energy = energy
                best_state = state
        return best_state

    def svg(self, count: int | None = None) -> str:
        """SVG of the first `count` committed shapes (all by default)."""
        n = len(self.shapes) if count is None else int(count)
        return svg_document(
            self.shapes[:n],
            self.colors[:n],
            out_width=self.sw,
            out_height=self.sh,
            scale=self.scale,
            background=self.background,
        )

    def render(self, path: Path | str, count: int | None = None) -> Path:
        """Write the first `count` committed shapes (all by default) to a raster file."""
        n = len(self.shapes) if count is None else int(count)
        return render_shapes(
            path,
            self.shapes[:n],
            self.colors[:n],
            width=self.width,
            height=self.height,
            out_width=self.sw,
            out_height=self.sh,
            background=self.background,
        )

    def save(self, path: Path | str, count: int | None = None) -> Path:
        """Write the canvas to `path`; `.svg` is written as text, anything else via `render`."""
        path = Path(path)
        if path.suffix.lower() == ".svg":
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.svg(count) + "\n", encoding="utf-8")
            return path
        return self.render(path, count)
