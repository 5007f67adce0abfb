from __future__ import annotations

from typing import Tuple

import numpy as np

UINT32_SPAN = 1 << 32


class SeededRng:
    """Seeded, advanceable bit generator handing out 32-bit pairs."""

    def __init__(self, seed: int) -> None:
        self.seed = int(seed) % (UINT32_SPAN * UINT32_SPAN)
        self._gen = np.random.Generator(np.random.PCG64(self.seed))

    @classmethod
    def from_pair(cls, pair: Tuple[int, int]) -> "SeededRng":
        hi, lo = pair
        return cls((int(hi) << 32) | int(lo))

    @classmethod
    def keyed(cls, pair: Tuple[int, int], key: int) -> "SeededRng":
        """Generator for one key of a pair; the draws do not depend on which other keys are used."""
        rng = cls.from_pair(pair)
        rng._gen = np.random.Generator(np.random.PCG64(np.random.SeedSequence([rng.seed, int(key)])))
        return rng

    def pair(self) -> Tuple[int, int]:
        hi, lo = self._gen.integers(0, UINT32_SPAN, size=2, dtype=np.uint64)
        return int(hi), int(lo)

    def random(self) -> float:
        return float(self._gen.random())

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Inclusive on both ends."""
        return int(self._gen.integers(low, high + 1))
