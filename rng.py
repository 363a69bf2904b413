# rng.py
from __future__ import annotations

import random
from typing import Any, MutableSequence, Optional, Sequence, TypeVar

T = TypeVar("T")


class BattleRng:
    """Seeded PRNG threaded through a battle.

    Every probabilistic draw in the engine goes through one instance so that
    the same seed and the same inputs replay to the same log.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def next_u32(self) -> int:
        return self._random.getrandbits(32)

    def random(self) -> float:
        return self._random.random()

    def gen_bool(self, probability: float) -> bool:
        if probability >= 1.0:
            return True
        if probability <= 0.0:
            return False
        return self._random.random() < probability

    def chance(self, percent: int) -> bool:
        """Roll a percentage in [1, 100]; always draws so the stream stays aligned."""
        roll = self._random.randint(1, 100)
        return roll <= percent

    def randint(self, low: int, high: int) -> int:
        return self._random.randint(low, high)

    def uniform(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def choice(self, seq: Sequence[T]) -> T:
        return self._random.choice(seq)

    def shuffle(self, items: MutableSequence[Any]) -> None:
        self._random.shuffle(items)

    def hex_id(self) -> str:
        return f"{self._random.getrandbits(128):032x}"

    def getstate(self) -> Any:
        return self._random.getstate()

    def setstate(self, state: Any) -> None:
        self._random.setstate(state)
