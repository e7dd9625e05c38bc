"""Local search over candidate states."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar


class Annealable(Protocol):
    """Anything with a cost and reversible random moves."""

    def energy(self) -> float: ...

    def do_move(self) -> Any: ...

    def undo_move(self, undo: Any) -> None: ...

    def copy(self) -> Any: ...


S = TypeVar("S", bound=Annealable)


def hill_climb(state: S, max_age: int) -> S:
    """Stochastic hill climbing with a non-improvement budget.

    Moves are kept only when they strictly lower the cost; `max_age`
    consecutive rejected moves end the search.

    Args:
        state: Starting state (not modified).
        max_age: Number of consecutive non-improving moves before stopping.

    Returns:
        A copy of the best state seen; its energy is never above the input's.

    Raises:
        ValueError: If `max_age` is negative.
    """
    if max_age < 0:
        raise ValueError(f"max_age must be >= 0, got {max_age}")
    state = state.copy()
    best_energy = state.energy()
    best_state = state.copy()
    age = 0
    while age < max_age:
        undo = state.do_move()
        energy = state.energy()
        if energy >= best_energy:
            state.undo_move(undo)
            age += 1
        else:
            best_energy = energy
            best_state = state.copy()
            age = 0
    return best_state
