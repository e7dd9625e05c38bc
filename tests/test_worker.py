from __future__ import annotations

import unittest

import numpy as np
import pytest

from primitive_fit.core import Color, difference_full, uniform_rgba
from primitive_fit.shapes import Rectangle, ShapeType
from primitive_fit.state import State
from primitive_fit.worker import Worker


def _solid(h: int, w: int, rgb: tuple[int, int, int]) -> np.ndarray:
    return uniform_rgba(h, w, Color(*rgb, 255))


def _gradient(h: int = 24, w: int = 32) -> np.ndarray:
    im = np.zeros((h, w, 4), dtype=np.uint8)
    im[..., 0] = np.linspace(0, 255, w, dtype=np.uint8)[None, :]
    im[..., 1] = np.linspace(255, 0, h, dtype=np.uint8)[:, None]
    im[..., 2] = 90
    im[..., 3] = 255
    return im


def _ready(seed: int = 0, **kwargs) -> Worker:
    target = _gradient()
    current = _solid(24, 32, (128, 128, 128))
    worker = Worker(target, seed=seed, **kwargs)
    worker.init(current, difference_full(target, current))
    return worker


def identity(state: State, max_age: int) -> State:
    return state


class TestWorkerSetup(unittest.TestCase):
    def test_rejects_bad_target(self) -> None:
        with self.assertRaises(ValueError):
            Worker(np.zeros((4, 4, 3), dtype=np.uint8))
        with self.assertRaises(ValueError):
            Worker(np.zeros((4, 4, 4), dtype=np.float64))

    def test_energy_requires_init(self) -> None:
        worker = Worker(_gradient(), seed=0)
        with self.assertRaises(RuntimeError):
            worker.energy(Rectangle(worker, 0, 0, 3, 3), 128)

    def test_init_rejects_mismatched_canvas(self) -> None:
        worker = Worker(_gradient(), seed=0)
        with self.assertRaises(ValueError):
            worker.init(_solid(10, 10, (0, 0, 0)), 0.5)

    def test_init_resets_counter_and_heatmap(self) -> None:
        worker = _ready()
        worker.energy(Rectangle(worker, 0, 0, 3, 3), 128)
        worker.heatmap.add(np.array([[0, 0, 3, 10]], dtype=np.int64))
        self.assertEqual(worker.counter, 1)
        worker.init(worker.current, worker.score)
        self.assertEqual(worker.counter, 0)
        self.assertEqual(int(worker.heatmap.count.sum()), 0)

    def test_injected_rng_wins_over_seed(self) -> None:
        rng = np.random.default_rng(99)
        worker = Worker(_gradient(), seed=1, rng=rng)
        self.assertIs(worker.rng, rng)

    def test_invalid_budgets(self) -> None:
        worker = _ready()
        with self.assertRaises(ValueError):
            worker.best_random_state(ShapeType.TRIANGLE, 128, 0)
        with self.assertRaises(ValueError):
            worker.best_hill_climb_state(ShapeType.TRIANGLE, 128, 10, 5, 0)
        with self.assertRaises(ValueError):
            worker.best_hill_climb_state(ShapeType.TRIANGLE, 128, 0, 5, 1)
        with self.assertRaises(ValueError):
            worker.best_hill_climb_state(ShapeType.TRIANGLE, 128, 10, -1, 1)


def test_counter_counts_every_evaluation() -> None:
    worker = _ready()
    assert worker.counter == 0
    worker.energy(Rectangle(worker, 1, 1, 4, 4), 128)
    assert worker.counter == 1
    worker.random_state(ShapeType.ELLIPSE, 128).energy()
    assert worker.counter == 2
    worker.best_random_state(ShapeType.TRIANGLE, 128, 25)
    assert worker.counter == 27


def test_counter_with_identity_refiner() -> None:
    worker = _ready(refiner=identity)
    worker.best_hill_climb_state(ShapeType.RECTANGLE, 128, 15, 10, 3)
    assert worker.counter == 45


def test_energy_does_not_modify_target_or_current() -> None:
    worker = _ready()
    target = worker.target.copy()
    current = worker.current.copy()
    worker.best_hill_climb_state(ShapeType.ANY, 0, 20, 20, 2)
    np.testing.assert_array_equal(worker.target, target)
    np.testing.assert_array_equal(worker.current, current)


@pytest.mark.parametrize("shape_type", [ShapeType.TRIANGLE, ShapeType.ANY, ShapeType.POLYGON])
def test_best_random_state_is_minimum_of_replayed_samples(shape_type: ShapeType) -> None:
    n = 30
    best = _ready(seed=5).best_random_state(shape_type, 128, n)

    replay = _ready(seed=5)
    samples = [replay.random_state(shape_type, 128) for _ in range(n)]
    energies = [s.energy() for s in samples]
    first_min = int(np.argmin(energies))
    assert best.energy() == min(energies)
    assert repr(best.shape) == repr(samples[first_min].shape)


def test_same_seed_is_reproducible() -> None:
    a = _ready(seed=8).best_hill_climb_state(ShapeType.ANY, 0, 20, 15, 2)
    b = _ready(seed=8).best_hill_climb_state(ShapeType.ANY, 0, 20, 15, 2)
    assert a.energy() == b.energy()
    assert repr(a) == repr(b)


def test_identity_refiner_returns_best_seed() -> None:
    m, n = 4, 12
    result = _ready(seed=3, refiner=identity).best_hill_climb_state(ShapeType.RECTANGLE, 128, n, 10, m)

    replay = _ready(seed=3)
    seeds = [replay.best_random_state(ShapeType.RECTANGLE, 128, n).energy() for _ in range(m)]
    assert result.energy() == min(seeds)


def test_improving_refiner_beats_every_seed() -> None:
    seen: list[float] = []

    def improve(state: State, max_age: int) -> State:
        seen.append(state.energy())
        better = state.copy()
        better.score = state.energy() * 0.5
        return better

    worker = _ready(seed=2, refiner=improve)
    result = worker.best_hill_climb_state(ShapeType.RECTANGLE, 128, 10, 10, 3)
    assert len(seen) == 3
    assert result.energy() < min(seen)


def test_ties_keep_the_earliest_trial() -> None:
    outputs: list[State] = []

    def flat(state: State, max_age: int) -> State:
        out = state.copy()
        out.score = 0.25
        outputs.append(out)
        return out

    result = _ready(seed=6, refiner=flat).best_hill_climb_state(ShapeType.TRIANGLE, 128, 5, 10, 4)
    assert len(outputs) == 4
    assert result is outputs[0]


def test_trace_receives_each_trial() -> None:
    calls: list[tuple] = []
    worker = _ready(seed=1)
    worker.best_hill_climb_state(
        ShapeType.RECTANGLE, 128, 8, 6, 3, trace=lambda fmt, *args: calls.append((fmt, args))
    )
    assert len(calls) == 3
    fmt, args = calls[0]
    assert args[0] == 8 and args[2] == 6
    assert args[3] <= args[1]
    assert "hill climb" in fmt % args


def test_default_trace_is_overridable_at_construction() -> None:
    calls: list[str] = []
    worker = _ready(seed=1, trace=lambda fmt, *args: calls.append(fmt % args))
    worker.best_hill_climb_state(ShapeType.RECTANGLE, 128, 4, 3, 2)
    assert len(calls) == 2


def test_second_init_replaces_first() -> None:
    target = _solid(12, 12, (200, 100, 50))
    worker = Worker(target, seed=0)
    black = _solid(12, 12, (0, 0, 0))
    worker.init(black, difference_full(target, black))
    shape = Rectangle(worker, 2, 2, 8, 8)
    assert worker.energy(shape, 255) > 0.0

    worker.init(target.copy(), 0.0)
    assert worker.counter == 0
    assert worker.energy(shape, 255) == 0.0


def test_solid_identical_images_cost_nothing() -> None:
    target = _solid(16, 16, (40, 160, 220))
    worker = Worker(target, seed=0)
    worker.init(target.copy(), 0.0)
    state = worker.best_hill_climb_state(ShapeType.ANY, 128, 1, 10, 1)
    assert state.energy() == pytest.approx(0.0, abs=0.01)


class TestSinglePixel(unittest.TestCase):
    def setUp(self) -> None:
        self.target = _solid(8, 8, (0, 0, 0))
        self.target[4, 4, :3] = 255
        self.current = _solid(8, 8, (0, 0, 0))
        self.baseline = difference_full(self.target, self.current)
        self.worker = Worker(self.target, seed=10)
        self.worker.init(self.current, self.baseline)

    def test_overlapping_shape_scores_lower(self) -> None:
        over = self.worker.energy(Rectangle(self.worker, 3, 3, 5, 5), 255)
        away = self.worker.energy(Rectangle(self.worker, 0, 0, 1, 1), 255)
        self.assertLess(over, away)
        self.assertAlmostEqual(away, self.baseline, places=9)

    def test_random_search_finds_the_pixel(self) -> None:
        best = self.worker.best_random_state(ShapeType.RECTANGLE, 255, 200)
        self.assertLess(best.energy(), self.baseline)
        x1, y1, x2, y2 = best.shape.bounds()
        self.assertTrue(x1 <= 4 <= x2 and y1 <= 4 <= y2)
