"""Dice and shuffling.

All randomness in the engine flows through a `DiceRoller`. The roller wraps a
`[0, 1)` source, so tests can inject a seeded or scripted source instead of
patching module globals.
"""

from __future__ import annotations

import logging
import math
import random
from collections import deque
from collections.abc import Callable, Iterable, MutableSequence
from dataclasses import dataclass
from typing import TypeVar

from wretched.models import SessionState


logger = logging.getLogger(__name__)

T = TypeVar("T")

UniformSource = Callable[[], float]

_LCG_MODULUS = 2_147_483_647
_LCG_MULTIPLIER = 16_807


def lcg_source(seed: int) -> UniformSource:
    """Park-Miller minimal standard generator returning floats in [0, 1)."""

    state = seed % _LCG_MODULUS
    if state <= 0:
        state += _LCG_MODULUS - 1

    def _next() -> float:
        nonlocal state
        state = (state * _LCG_MULTIPLIER) % _LCG_MODULUS
        return (state - 1) / (_LCG_MODULUS - 1)

    return _next


def face_source(faces: Iterable[int], *, sides: int = 20) -> UniformSource:
    """Source that makes `roll_die(sides)` return each of `faces` in order."""

    queue = deque(faces)

    def _next() -> float:
        if not queue:
            raise RuntimeError("face_source ran out of scripted faces")
        face = queue.popleft()
        # Midpoint of the interval [(face - 1) / sides, face / sides).
        return (face - 0.5) / sides

    return _next


@dataclass(frozen=True, slots=True)
class ModifiedRoll:
    roll: int
    was_lucid: bool = False
    was_surreal: bool = False


class DiceRoller:
    def __init__(self, source: UniformSource | None = None):
        self._source: UniformSource = source or random.random

    @classmethod
    def seeded(cls, seed: int) -> "DiceRoller":
        return cls(lcg_source(seed))

    def random(self) -> float:
        return self._source()

    def randint(self, low: int, high: int) -> int:
        return math.floor(self._source() * (high - low + 1)) + low

    def roll_die(self, sides: int = 20) -> int:
        if sides < 1:
            raise ValueError("sides must be >= 1")
        return self.randint(1, sides)

    def roll_advantage(self, sides: int = 20) -> int:
        first = self.roll_die(sides)
        second = self.roll_die(sides)
        return max(first, second)

    def roll_disadvantage(self, sides: int = 20) -> int:
        first = self.roll_die(sides)
        second = self.roll_die(sides)
        return min(first, second)

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates, in place. Returns the same sequence for chaining."""

        index = len(items)
        while index != 0:
            pick = math.floor(self._source() * index)
            index -= 1
            items[index], items[pick] = items[pick], items[index]
        return items

    def roll_with_modifiers(self, session: SessionState, sides: int = 20) -> ModifiedRoll:
        """Roll once, consuming at most one pending modifier.

        Lucid is checked before Surreal, so Lucid wins if both are ever set.
        """

        if session.is_lucid:
            session.is_lucid = False
            roll = self.roll_advantage(sides)
            logger.debug("lucid roll -> %s", roll)
            return ModifiedRoll(roll=roll, was_lucid=True)

        if session.is_surreal:
            session.is_surreal = False
            roll = self.roll_disadvantage(sides)
            logger.debug("surreal roll -> %s", roll)
            return ModifiedRoll(roll=roll, was_surreal=True)

        return ModifiedRoll(roll=self.roll_die(sides))


class ScriptedDice(DiceRoller):
    """Dice whose faces are fixed up front, for tests and replays.

    Die rolls pop from `faces`; shuffling and other non-die randomness use
    `source` (deterministic by default).
    """

    def __init__(self, faces: Iterable[int], *, source: UniformSource | None = None):
        super().__init__(source or lcg_source(1))
        self._faces = deque(faces)

    def roll_die(self, sides: int = 20) -> int:
        if not self._faces:
            raise RuntimeError("ScriptedDice ran out of scripted faces")
        face = self._faces.popleft()
        if not 1 <= face <= sides:
            raise ValueError(f"scripted face {face} is not a valid d{sides} result")
        return face

    def push(self, *faces: int) -> None:
        self._faces.extend(faces)

    @property
    def remaining(self) -> int:
        return len(self._faces)
