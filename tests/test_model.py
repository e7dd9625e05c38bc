import logging
import unittest

import numpy as np
import pytest
from PIL import Image

from primitive_fit.config import SearchConfig
from primitive_fit.core import Color, average_color, difference_full
from primitive_fit.model import Model
from primitive_fit.shapes import Rectangle, ShapeType

SEARCH = SearchConfig(n_random=20, max_age=10, trials=2)


def _target(h: int = 16, w: int = 24) -> np.ndarray:
    im = np.zeros((h, w, 4), dtype=np.uint8)
    im[..., 0] = np.linspace(0, 255, w, dtype=np.uint8)[None, :]
    im[: h // 2, :, 2] = 220
    im[..., 3] = 255
    return im


class TestModel(unittest.TestCase):
    def setUp(self) -> None:
        self.target = _target()
        self.model = Model(self.target, average_color(self.target), 48, 1, seed=1)

    def test_output_geometry(self) -> None:
        self.assertEqual((self.model.sw, self.model.sh), (48, 32))
        self.assertAlmostEqual(self.model.scale, 2.0)
        self.assertEqual((self.model.width, self.model.height), (24, 16))

    def test_steps_never_increase_score(self) -> None:
        scores = [self.model.score]
        for _ in range(4):
            n = self.model.step(ShapeType.RECTANGLE, 128, search=SEARCH)
            self.assertGreater(n, 0)
            scores.append(self.model.score)
        self.assertEqual(len(self.model.shapes), 4)
        self.assertEqual(self.model.scores, scores[1:])
        for a, b in zip(scores, scores[1:]):
            self.assertLessEqual(b, a + 1e-12)
        self.assertAlmostEqual(self.model.score, difference_full(self.target, self.model.current), places=6)

    def test_repeat_adds_follow_up_shapes(self) -> None:
        self.model.step(ShapeType.ELLIPSE, 128, 2, search=SEARCH)
        self.assertGreaterEqual(len(self.model.shapes), 1)
        self.assertLessEqual(len(self.model.shapes), 3)
        self.assertEqual(len(self.model.colors), len(self.model.shapes))

    def test_svg_document(self) -> None:
        for _ in range(3):
            self.model.step(ShapeType.RECTANGLE, 128, search=SEARCH)
        doc = self.model.svg()
        self.assertTrue(doc.startswith("<svg"))
        self.assertTrue(doc.endswith("</svg>"))
        self.assertIn('width="48" height="32"', doc)
        self.assertIn("scale(2.000000) translate(0.5 0.5)", doc)
        # background rect + one per shape
        self.assertEqual(doc.count("<rect"), 4)
        self.assertEqual(self.model.svg(1).count("<rect"), 2)


def test_multiple_workers_share_the_step() -> None:
    target = _target()
    model = Model(target, Color(0, 0, 0, 255), 24, 2, seed=3)
    before = model.score
    n = model.step(ShapeType.TRIANGLE, 0, search=SEARCH)
    assert n >= 2 * SEARCH.n_random
    assert model.score <= before
    assert len(model.shapes) == 1
    assert 1 <= model.colors[0].a <= 255


def test_rejects_bad_arguments() -> None:
    with pytest.raises(ValueError):
        Model(_target(), Color(0, 0, 0, 255), 32, 0)
    with pytest.raises(ValueError):
        Model(np.zeros((4, 4, 3), dtype=np.uint8), Color(0, 0, 0, 255), 32, 1)


def test_save_raster_and_svg(tmp_path) -> None:
    target = _target()
    model = Model(target, average_color(target), 48, 1, seed=0)
    model.step(ShapeType.ROTATED_ELLIPSE, 128, search=SEARCH)
    model.step(ShapeType.QUADRATIC, 200, search=SEARCH)

    png = model.save(tmp_path / "out.png")
    with Image.open(png) as im:
        assert abs(im.size[0] - 48) <= 1
        assert abs(im.size[1] - 32) <= 1

    svg = model.save(tmp_path / "nested" / "out.svg")
    text = svg.read_text(encoding="utf-8")
    assert text.startswith("<svg")
    assert "stroke=" in text


def test_add_logs_shape_area(caplog) -> None:
    target = _target()
    model = Model(target, Color(0, 0, 0, 255), 24, 1, seed=0)
    worker = model.workers[0]
    caplog.set_level(logging.DEBUG, logger="primitive_fit.model")
    model.add(Rectangle(worker, 2, 3, 5, 4), 128)
    assert any("area=8" in rec.getMessage() for rec in caplog.records)
