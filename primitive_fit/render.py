"""Output rendering: raster files through matplotlib, SVG as text."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from .core import Color
from .shapes import Shape

_DPI = 100.0


def render_shapes(
    path: Path | str,
    shapes: Sequence[Shape],
    colors: Sequence[Color],
    *,
    width: int,
    height: int,
    out_width: int,
    out_height: int,
    background: Color,
) -> Path:
    """Draw `shapes` over a solid background and save to `path`.

    Shapes are in worker pixel coordinates (`width x height`); the figure is
    `out_width x out_height` pixels. The format follows the file suffix.
    """
    path = Path(path)
    fig = Figure(figsize=(out_width / _DPI, out_height / _DPI), dpi=_DPI)
    FigureCanvasAgg(fig)
    fig.patch.set_facecolor(background.rgba()[:3])
    ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
    ax.set_axis_off()
    ax.set_xlim(-0.5, width - 0.5)
    ax.set_ylim(height - 0.5, -0.5)
    px = (out_width / float(width)) * 72.0 / _DPI
    for shape, color in zip(shapes, colors):
        ax.add_patch(shape.patch(color, px=px))
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=_DPI, facecolor=fig.get_facecolor())
    return path


def svg_document(
    shapes: Sequence[Shape],
    colors: Sequence[Color],
    *,
    out_width: int,
    out_height: int,
    scale: float,
    background: Color,
) -> str:
    """SVG document with a background rect and one element per shape."""
    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" version="1.1" width="{out_width}" height="{out_height}">',
        f'<rect x="0" y="0" width="{out_width}" height="{out_height}" fill="{background.hex()}" />',
        f'<g transform="scale({scale:f}) translate(0.5 0.5)">',
    ]
    for shape, c in zip(shapes, colors):
        attrs = f'fill="{c.hex()}" fill-opacity="{c.a / 255.0:f}"'
        lines.append(shape.svg(attrs))
    lines.append("</g>")
    lines.append("</svg>")
    return "\n".join(lines)
