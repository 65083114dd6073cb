"""
Random number sources.

Every probabilistic roll in the battle code draws from a RandomSource
passed in by the caller, so a battle can be replayed from a seed and tests
can script exact outcomes without patching the global random module.
"""

from __future__ import annotations

import random
from typing import Iterable, Optional, Sequence, TypeVar

T = TypeVar('T')


class RandomSource:
    """Seedable wrapper around random.Random."""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def random(self) -> float:
        """Uniform sample in [0, 1)."""
        return self._random.random()

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.random()

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[min(int(self.random() * len(seq)), len(seq) - 1)]

    def seed(self, seed: Optional[int]) -> None:
        self._random.seed(seed)


class FixedRandom(RandomSource):
    """
    Replays a scripted list of samples.

    Once the script runs out the last value repeats (or `fallback` if
    given), which keeps long deterministic tests short to write.

    Usage:
        rng = FixedRandom([0.0, 0.99])  # first roll hits, second misses
    """

    def __init__(self, samples: Iterable[float], fallback: Optional[float] = None):
        super().__init__(seed=0)
        self._samples = [float(s) for s in samples]
        for s in self._samples:
            if not 0.0 <= s < 1.0:
                raise ValueError(f"Sample out of range [0, 1): {s}")
        self._index = 0
        self._fallback = fallback

    def random(self) -> float:
        if self._index < len(self._samples):
            value = self._samples[self._index]
            self._index += 1
            return value
        if self._fallback is not None:
            return self._fallback
        if not self._samples:
            return 0.0
        return self._samples[-1]

    @property
    def consumed(self) -> int:
        """Number of scripted samples drawn so far."""
        return self._index


_default_source = RandomSource()


def default_source() -> RandomSource:
    """Process-wide source used when the caller passes none."""
    return _default_source
