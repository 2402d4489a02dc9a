"""RNG wrapper built on top of random.Random."""
from __future__ import annotations

from random import Random
from typing import Sequence, TypeVar

T_co = TypeVar("T_co")


class RNG:
    """Wrapper around random.Random used for every roll in the simulation.

    A seed is optional; encounters are not meant to be replayable, but tests
    and headless runs may pin one.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._random = Random(seed)

    def randint(self, a: int, b: int) -> int:
        """Return a random integer N such that a <= N <= b."""
        return self._random.randint(a, b)

    def random(self) -> float:
        """Return the next random floating point number in the range [0.0, 1.0)."""
        return self._random.random()

    def uniform(self, a: float, b: float) -> float:
        """Return a random float N such that a <= N <= b."""
        return self._random.uniform(a, b)

    def roll_percent(self, chance: float) -> bool:
        """Return True with the given percentage chance (0-100)."""
        return self.random() * 100 < chance

    def choice(self, seq: Sequence[T_co]) -> T_co:
        """Return a random element from the non-empty sequence."""
        if not seq:
            raise ValueError("Cannot choose from an empty sequence.")
        return self._random.choice(seq)

    def sample(self, seq: Sequence[T_co], k: int) -> list[T_co]:
        """Return k unique elements chosen from the sequence."""
        return self._random.sample(list(seq), k)
