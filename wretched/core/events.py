from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "GAME_STARTED",
    "ROUND_STARTED",
    "ROLL_STAGED",
    "ROLL_APPLIED",
    "CARD_DRAWN",
    "JOURNAL_RECORDED",
    "GAME_ENDED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    round: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, round: int, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, round=round, payload=payload, ts=datetime.now(timezone.utc))
