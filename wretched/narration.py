"""Collaborators the engine talks to while a session is being played.

Neither is awaited by the engine itself: the driver awaits the animator between
staging a roll and applying it, and narration is fire-and-forget.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol, cast

import redis

from wretched.models import DiceRequest


logger = logging.getLogger(__name__)


class Narrator(Protocol):
    def narrate(self, text: str) -> None: ...


class DiceAnimator(Protocol):
    async def roll(self, request: DiceRequest) -> None: ...


class NullNarrator:
    def narrate(self, text: str) -> None:
        return None


@dataclass(frozen=True, slots=True)
class NarrationStream:
    slug: str

    @property
    def key(self) -> str:
        return f"narration:{self.slug}"


class StreamNarrator:
    """Append narration lines to a redis stream for a text-to-speech reader."""

    def __init__(self, *, r: redis.Redis, stream: NarrationStream):
        self._r = r
        self.stream = stream

    def narrate(self, text: str) -> None:
        if not text.strip():
            return
        try:
            self._r.xadd(self.stream.key, {"text": text})
        except redis.RedisError:
            # Narration must never interrupt play.
            logger.warning("narration dropped for %s", self.stream.key, exc_info=True)

    def read_all(self) -> list[str]:
        entries = cast(list[tuple[str, dict[str, str]]], self._r.xrange(self.stream.key))
        return [fields["text"] for _, fields in entries]


@dataclass(slots=True)
class InstantAnimator:
    """Resolves immediately; remembers what it was asked to show."""

    delay: float = 0.0
    requests: list[DiceRequest] = field(default_factory=list)

    async def roll(self, request: DiceRequest) -> None:
        self.requests.append(request)
        await asyncio.sleep(self.delay)
