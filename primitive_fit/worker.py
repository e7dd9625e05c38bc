"""Per-thread search unit that finds the next shape to add.

A `Worker` owns every scratch resource needed to score candidate shapes
against a fixed target image:

- a scratch canvas the size of the target (never cleared as a whole),
- a reusable span buffer and rasterizer,
- a heatmap (reset every round),
- its own random source.

Scoring a shape only touches the pixels the shape covers: those pixels are
copied from the current canvas into the scratch canvas, the shape is drawn on
top, and the full-image score is updated from the difference. Whatever the
scratch canvas holds outside that region is a leftover from earlier
evaluations and is never read.

A worker is not thread-safe; run one worker per thread.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import numpy as np

from .constants import SPAN_CAPACITY
from .core import check_canvas, compute_color, copy_lines, difference_partial, draw_lines
from .heatmap import Heatmap
from .optimize import hill_climb
from .raster import Rasterizer
from .scanline import ScanlineBuffer
from .shapes import Shape, ShapeType, random_shape, resolve_shape_type
from .state import State

logger = logging.getLogger(__name__)

TraceFn = Callable[..., None]
Refiner = Callable[[State, int], State]


class Worker:
    """Random multi-start + hill-climbing search over one shape type.

    Args:
        target: Target canvas `(H, W, 4)` uint8, shared and never written.
        seed: Seed for the random source (time-based when omitted).
        rng: Random source to use as-is (takes precedence over `seed`).
        refiner: Local search applied to each multi-start winner; must return a
            state whose energy is not above its input's.
        trace: Sink for per-trial diagnostics, called as `trace(fmt, *args)`.
    """

    def __init__(
        self,
        target: np.ndarray,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        refiner: Refiner | None = None,
        trace: TraceFn | None = None,
    ) -> None:
        check_canvas(target, name="target")
        self.height, self.width = (int(v) for v in target.shape[:2])
        self.target = target
        self.current: np.ndarray | None = None
        self.buffer = np.zeros_like(target)
        self.rasterizer = Rasterizer(self.width, self.height)
        self.lines = ScanlineBuffer(SPAN_CAPACITY)
        self.heatmap = Heatmap(self.width, self.height)
        if rng is None:
            rng = np.random.default_rng(time.time_ns() if seed is None else int(seed))
        self.rng = rng
        self.refiner: Refiner = refiner if refiner is not None else hill_climb
        self.trace: TraceFn = trace if trace is not None else logger.debug
        self.score = 0.0
        self._counter = 0

    @property
    def counter(self) -> int:
        """Number of energy evaluations since the last `init`."""
        return self._counter

    def init(self, current: np.ndarray, score: float) -> None:
        """Start a round against `current`, whose difference to the target is `score`.

        Raises:
            ValueError: If `current` does not match the target's shape.
        """
        check_canvas(current, name="current")
        if current.shape != self.target.shape:
            raise ValueError(f"current shape {current.shape} does not match target {self.target.shape}")
        self.current = current
        self.score = float(score)
        self._counter = 0
        self.heatmap.clear()

    def energy(self, shape: Shape, alpha: int) -> float:
        """Score of the canvas after drawing `shape` at `alpha` with its best colour.

        Only the scratch canvas is written; `target` and `current` are read-only.

        Raises:
            RuntimeError: If called before `init`.
        """
        if self.current is None:
            raise RuntimeError("Worker.init() must be called before evaluating shapes")
        self._counter += 1
        lines = shape.rasterize()
        color = compute_color(self.target, self.current, lines, alpha)
        copy_lines(self.buffer, self.current, lines)
        draw_lines(self.buffer, color, lines)
        return difference_partial(self.target, self.current, self.buffer, self.score, lines)

    def random_state(self, shape_type: int | ShapeType | None, alpha: int) -> State:
        """Unscored state holding a random shape of `shape_type`.

        `ShapeType.ANY` and unknown selectors draw a concrete type uniformly.
        """
        concrete = resolve_shape_type(shape_type, self.rng)
        return State(self, random_shape(self, concrete), alpha)

    def best_random_state(self, shape_type: int | ShapeType | None, alpha: int, n: int) -> State:
        """Lowest-energy state among `n` random candidates (earliest wins ties).

        Raises:
            ValueError: If `n < 1`.
        """
        if n < 1:
            raise ValueError(f"n must be >= 1, got {n}")
        best_state = self.random_state(shape_type, alpha)
        best_energy = best_state.energy()
        for _ in range(n - 1):
            state = self.random_state(shape_type, alpha)
            energy = state.energy()
            if energy < best_energy:
                best_energy = energy
                best_state = state
        return best_state

    def best_hill_climb_state(
        self,
        shape_type: int | ShapeType | None,
        alpha: int,
        n_random: int,
        max_age: int,
        m: int,
        *,
        trace: TraceFn | None = None,
    ) -> State:
        """Best refined state over `m` independent trials.

        Each trial seeds from `best_random_state(shape_type, alpha, n_random)`
        and refines the seed with `self.refiner(seed, max_age)`. Earlier trials
        win ties.

        Raises:
            ValueError: If `m < 1` or `n_random < 1`.
        """
        if m < 1:
            raise ValueError(f"m must be >= 1, got {m}")
        trace = trace if trace is not None else self.trace
        best_state: State | None = None
        best_energy = 0.0
        for _ in range(m):
            state = self.best_random_state(shape_type, alpha, n_random)
            before = state.energy()
            state = self.refiner(state, max_age)
            energy = state.energy()
            trace("%dx random: %.6f -> %dx hill climb: %.6f", n_random, before, max_age, energy)
            if best_state is None or energy < best_energy:
                best_energy = energy
                best_state = state
        assert best_state is not None
        return best_state
