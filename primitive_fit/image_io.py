"""Image loading helpers (Pillow -> premultiplied RGBA canvases)."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def image_to_canvas(image: Image.Image) -> np.ndarray:
    """Convert a Pillow image to a premultiplied `(H, W, 4)` uint8 canvas."""
    rgba = np.asarray(image.convert("RGBA"), dtype=np.uint16)
    out = np.empty(rgba.shape, dtype=np.uint8)
    alpha = rgba[..., 3:4]
    out[..., :3] = rgba[..., :3] * alpha // 255
    out[..., 3:] = alpha
    return out


def load_image(path: Path | str, *, size: int | None = 256) -> np.ndarray:
    """Load an image as a canvas, shrinking it to fit `size x size`.

    Args:
        path: Image file readable by Pillow.
        size: Longest side after resizing (bilinear thumbnail, never upscales);
            `None` or `0` keeps the original size.

    Returns:
        Premultiplied RGBA canvas `(H, W, 4)`.
    """
    with Image.open(path) as im:
        im.load()
        if size:
            im.thumbnail((int(size), int(size)), Image.Resampling.BILINEAR)
        return image_to_canvas(im)
