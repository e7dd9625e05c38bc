"""Project-wide constants.

These values centralize the mutation step sizes, buffer sizes and opacity
defaults shared by the shapes, the worker and the CLI.
"""

from __future__ import annotations

# Full coverage for a scanline span (16-bit).
FULL_COVERAGE: int = 0xFFFF

# Initial capacity of a worker's span buffer (grows by doubling).
SPAN_CAPACITY: int = 4096

# Gaussian step (pixels) used when mutating shape coordinates.
MUTATE_STEP: float = 16.0

# How far free-floating vertices may leave the canvas.
MUTATE_MARGIN: int = 16

# Opacity used when the caller asks the search to pick one (alpha=0).
DEFAULT_ALPHA: int = 128

# Output formats understood by the CLI.
RASTER_SUFFIXES: frozenset[str] = frozenset({".png", ".jpg", ".jpeg"})
VECTOR_SUFFIXES: frozenset[str] = frozenset({".svg"})
