"""Candidate state: a shape, its opacity and a cached cost."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import DEFAULT_ALPHA
from .shapes import Shape

if TYPE_CHECKING:
    from .worker import Worker


class State:
    """Shape + opacity with a lazily computed cost.

    An `alpha` of 0 means "let the search pick": the state starts at
    `DEFAULT_ALPHA` and every move also nudges the opacity.
    """

    def __init__(
        self,
        worker: Worker,
        shape: Shape,
        alpha: int,
        *,
        mutate_alpha: bool | None = None,
        score: float = -1.0,
    ) -> None:
        if mutate_alpha is None:
            mutate_alpha = alpha == 0
            if alpha == 0:
                alpha = DEFAULT_ALPHA
        self.worker = worker
        self.shape = shape
        self.alpha = int(alpha)
        self.mutate_alpha = bool(mutate_alpha)
        self.score = float(score)

    def energy(self) -> float:
        if self.score < 0:
            self.score = self.worker.energy(self.shape, self.alpha)
        return self.score

    def do_move(self) -> State:
        """Mutate in place and return the previous state for `undo_move`."""
        old = self.copy()
        self.shape.mutate()
        if self.mutate_alpha:
            step = int(self.worker.rng.integers(21)) - 10
            self.alpha = min(max(self.alpha + step, 1), 255)
        self.score = -1.0
        return old

    def undo_move(self, undo: State) -> None:
        self.shape = undo.shape
        self.alpha = undo.alpha
        self.score = undo.score

    def copy(self) -> State:
        return State(
            self.worker,
            self.shape.copy(),
            self.alpha,
            mutate_alpha=self.mutate_alpha,
            score=self.score,
        )

    def __repr__(self) -> str:
        return f"State(shape={self.shape!r}, alpha={self.alpha}, score={self.score:.6f})"
