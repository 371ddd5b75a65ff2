"""
Random Source - The single injectable seam for all engine randomness.

Every shuffle (deck, dilemma pool, encounter presentation order) and every
random target selection (kills, random stops) goes through one RandomSource
owned by the GameEngine. Production sessions use a cryptographically strong
source so an opponent who commits the dilemma pool in advance cannot
predict targets; tests inject a seeded source.
"""

from __future__ import annotations

import hashlib
import random
import secrets
from typing import Sequence, TypeVar

T = TypeVar("T")


class RandomSource:
    """
    Base random source.

    Subclasses provide the underlying generator via `_rng`, which must
    expose `shuffle` and `choice` like `random.Random`.
    """

    _rng: random.Random

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy of *items*; the input is left untouched."""
        shuffled = list(items)
        self._rng.shuffle(shuffled)
        return shuffled

    def choice(self, items: Sequence[T]) -> T:
        """Return a uniformly random element from a non-empty sequence."""
        return self._rng.choice(list(items))


class SecureRandomSource(RandomSource):
    """Random source backed by the operating system CSPRNG."""

    def __init__(self) -> None:
        self._rng = secrets.SystemRandom()

    def __repr__(self) -> str:
        return "SecureRandomSource()"


class SeededRandomSource(RandomSource):
    """
    Deterministic random source for tests and development replays.

    Forking derives an independent child stream from the seed and a name,
    so two engines built from the same fork produce identical games.
    """

    def __init__(self, seed: int) -> None:
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int:
        return self._seed

    def fork(self, name: str) -> SeededRandomSource:
        digest = hashlib.sha256(f"{self._seed}:{name}".encode()).digest()
        return SeededRandomSource(int.from_bytes(digest[:8], "big"))

    def __repr__(self) -> str:
        return f"SeededRandomSource(seed={self._seed})"
