"""AI move-selection utility consumed by ``CardGame.ai_move``."""

from __future__ import annotations

import random
from enum import Enum
from typing import Optional, Protocol, Sequence, TypeVar, Union

T = TypeVar("T")


class Difficulty(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


# Probability that a seat plays its heuristic move instead of a random legal one.
OPTIMAL_PLAY_PROBABILITY: dict[Difficulty, float] = {
    Difficulty.BEGINNER: 0.3,
    Difficulty.INTERMEDIATE: 0.7,
    Difficulty.EXPERT: 1.0,
}


def parse_difficulty(value: Union[str, Difficulty]) -> Difficulty:
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(value.lower())
    except ValueError as exc:
        raise ValueError(f"Unknown difficulty: {value!r}") from exc


class AIStub(Protocol):
    def pick_random(self, moves: Sequence[T]) -> T: ...

    def should_play_optimal(self, difficulty: Difficulty) -> bool: ...


class RandomStub:
    """Default stub backed by a private ``random.Random``."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def pick_random(self, moves: Sequence[T]) -> T:
        if not moves:
            raise ValueError("Cannot pick from an empty move list.")
        return self._rng.choice(list(moves))

    def should_play_optimal(self, difficulty: Difficulty) -> bool:
        threshold = OPTIMAL_PLAY_PROBABILITY[parse_difficulty(difficulty)]
        return threshold >= 1.0 or self._rng.random() < threshold


class AlwaysOptimalStub:
    """Deterministic stub: always plays the heuristic move."""

    def pick_random(self, moves: Sequence[T]) -> T:
        if not moves:
            raise ValueError("Cannot pick from an empty move list.")
        return moves[0]

    def should_play_optimal(self, difficulty: Difficulty) -> bool:
        return True
