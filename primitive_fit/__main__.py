"""Entrypoint for `python -m primitive_fit`."""

from __future__ import annotations

from primitive_fit.cli.fit_image import main

if __name__ == "__main__":
    raise SystemExit(main())
