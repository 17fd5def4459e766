"""
Dice rolling tools for Celtic Realm.

Handles single die rolls, the d8 challenge roll, and advantage/disadvantage
draws. The random source is injectable so tests can script every roll.
"""

import random
from dataclasses import dataclass
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class RandomSource(Protocol):
    """Anything with the two methods of the stdlib random module we use."""

    def randint(self, a: int, b: int) -> int: ...

    def random(self) -> float: ...


@dataclass
class DrawResult:
    """Result of a two-dice advantage/disadvantage draw."""
    draws: list[int]  # Both dice rolled
    result: int  # The die that counted


class Dice:
    """
    Die roller with an optional forced value for testing.

    Args:
        rng: Random source; defaults to the random module
    """

    def __init__(self, rng: RandomSource | None = None):
        self._rng = rng if rng is not None else random
        self._forced_value: int | None = None

    def roll_die(self, sides: int) -> int:
        """Roll a single die with the given number of sides."""
        if self._forced_value is not None:
            return self._forced_value
        return self._rng.randint(1, max(1, sides))

    def roll_d8(self) -> int:
        """Roll the d8 used for challenges."""
        return self.roll_die(8)

    def roll_with_advantage(self, sides: int) -> DrawResult:
        """Roll twice, keep the higher."""
        draws = [self.roll_die(sides), self.roll_die(sides)]
        return DrawResult(draws=draws, result=max(draws))

    def roll_with_disadvantage(self, sides: int) -> DrawResult:
        """Roll twice, keep the lower."""
        draws = [self.roll_die(sides), self.roll_die(sides)]
        return DrawResult(draws=draws, result=min(draws))

    def roll_range(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], e.g. roll_range(1, 3)."""
        if high <= low:
            return low
        sides = high - low + 1
        return low - 1 + _clamp(self.roll_die(sides), 1, sides)

    def pick(self, options: Sequence[T]) -> T | None:
        """Pick one element uniformly, or None from an empty sequence."""
        if not options:
            return None
        index = _clamp(self.roll_die(len(options)), 1, len(options)) - 1
        return options[index]

    def chance(self, probability: float) -> bool:
        """True with the given probability. Never consumes a roll at 0."""
        if probability <= 0:
            return False
        if probability >= 1:
            return True
        return self._rng.random() < probability

    def set_forced_roll(self, value: int | None) -> None:
        """Force every die roll to ``value`` until cleared with None."""
        self._forced_value = value

    def reset(self) -> None:
        self._forced_value = None

    @property
    def forced_value(self) -> int | None:
        return self._forced_value
