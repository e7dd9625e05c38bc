"""NumPy raster primitives: colour fit, compositing and image difference.

Canvases are `uint8` arrays of shape `(H, W, 4)` holding premultiplied RGBA.
All span-restricted operations only touch the pixels listed by the spans, so
their cost is proportional to the shape area rather than the canvas area.
Integer arithmetic follows 16-bit premultiplied "over" compositing so results
are exact and reproducible.
"""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from .scanline import span_pixels


class Color(NamedTuple):
    """8-bit straight (non-premultiplied) RGBA colour."""

    r: int
    g: int
    b: int
    a: int

    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def rgba(self) -> tuple[float, float, float, float]:
        """Colour as floats in `[0, 1]` (matplotlib order)."""
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a / 255.0)


def parse_hex_color(text: str) -> Color:
    """Parse `#rgb`, `#rgba`, `#rrggbb` or `#rrggbbaa` (leading `#` optional).

    Raises:
        ValueError: If `text` is not a valid hex colour.
    """
    raw = text.strip().lstrip("#")
    if len(raw) in (3, 4):
        raw = "".join(ch * 2 for ch in raw)
    if len(raw) not in (6, 8):
        raise ValueError(f"Invalid hex colour: {text!r}")
    try:
        values = [int(raw[i : i + 2], 16) for i in range(0, len(raw), 2)]
    except ValueError as exc:
        raise ValueError(f"Invalid hex colour: {text!r}") from exc
    if len(values) == 3:
        values.append(255)
    return Color(*values)


def check_canvas(image: np.ndarray, *, name: str = "image") -> np.ndarray:
    """Validate a canvas array and return it unchanged.

    Raises:
        ValueError: If `image` is not a non-empty `(H, W, 4)` uint8 array.
    """
    if not isinstance(image, np.ndarray) or image.dtype != np.uint8:
        raise ValueError(f"{name} must be a uint8 numpy array")
    if image.ndim != 3 or image.shape[2] != 4 or image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError(f"{name} must have shape (H, W, 4), got {image.shape}")
    return image


def uniform_rgba(height: int, width: int, color: Color) -> np.ndarray:
    """Create a canvas filled with `color` (premultiplied)."""
    im = np.empty((int(height), int(width), 4), dtype=np.uint8)
    a = int(color.a)
    im[..., 0] = color.r * a // 255
    im[..., 1] = color.g * a // 255
    im[..., 2] = color.b * a // 255
    im[..., 3] = a
    return im


def average_color(image: np.ndarray) -> Color:
    """Mean RGB of an image as an opaque colour."""
    mean = image[..., :3].reshape(-1, 3).mean(axis=0)
    r, g, b = (int(v) for v in mean)
    return Color(r, g, b, 255)


def compute_color(target: np.ndarray, current: np.ndarray, lines: np.ndarray, alpha: int) -> Color:
    """Closed-form colour minimising squared error when drawn at `alpha`.

    Solves, per channel, for the source value `s` such that compositing `s` at
    opacity `alpha` over `current` best matches `target` over the spans.

    Args:
        target: Target canvas.
        current: Canvas the shape will be drawn onto.
        lines: Spans `(N, 4)`.
        alpha: Opacity in `[1, 255]`.

    Returns:
        The fitted colour with `a=alpha`, or `Color(0, 0, 0, 0)` when the spans
        are empty.
    """
    ys, xs, _ = span_pixels(lines)
    count = int(ys.size)
    if count == 0:
        return Color(0, 0, 0, 0)
    t = target[ys, xs, :3].astype(np.int64)
    c = current[ys, xs, :3].astype(np.int64)
    a = 0x101 * 255 // int(alpha)
    sums = ((t - c) * a + c * 0x101).sum(axis=0)
    r, g, b = (int(v) for v in np.clip((sums // count) >> 8, 0, 255))
    return Color(r, g, b, int(alpha))


def copy_lines(dst: np.ndarray, src: np.ndarray, lines: np.ndarray) -> None:
    """Copy the pixels covered by `lines` from `src` into `dst`."""
    ys, xs, _ = span_pixels(lines)
    dst[ys, xs] = src[ys, xs]


def draw_lines(im: np.ndarray, color: Color, lines: np.ndarray) -> None:
    """Composite `color` over `im` inside `lines`, weighted by span coverage."""
    ys, xs, ma = span_pixels(lines)
    if ys.size == 0:
        return
    m = 0xFFFF
    a = int(color.a)
    src = np.array(
        [
            color.r * 0x101 * a // 0xFF,
            color.g * 0x101 * a // 0xFF,
            color.b * 0x101 * a // 0xFF,
            a * 0x101,
        ],
        dtype=np.int64,
    )
    k = (m - src[3] * ma // m) * 0x101
    dst = im[ys, xs].astype(np.int64)
    out = ((dst * k[:, None] + src[None, :] * ma[:, None]) // m) >> 8
    im[ys, xs] = out.astype(np.uint8)


def difference_full(a: np.ndarray, b: np.ndarray) -> float:
    """RMS difference over all pixels and channels, normalised to `[0, 1]`."""
    h, w = a.shape[:2]
    d = a.astype(np.int64) - b.astype(np.int64)
    total = int(np.sum(d * d))
    return math.sqrt(total / float(w * h * 4)) / 255.0


def difference_partial(
    target: np.ndarray,
    before: np.ndarray,
    after: np.ndarray,
    score: float,
    lines: np.ndarray,
) -> float:
    """Update a full-image score for a change restricted to `lines`.

    `score` must be `difference_full(target, before)`; the result equals
    `difference_full(target, after)` provided `before` and `after` only differ
    inside the spans.
    """
    h, w = target.shape[:2]
    n = float(w * h * 4)
    total = int(round((score * 255.0) ** 2 * n))
    ys, xs, _ = span_pixels(lines)
    if ys.size:
        t = target[ys, xs].astype(np.int64)
        d1 = t - before[ys, xs].astype(np.int64)
        d2 = t - after[ys, xs].astype(np.int64)
        total += int(np.sum(d2 * d2)) - int(np.sum(d1 * d1))
    return math.sqrt(max(total, 0) / n) / 255.0
