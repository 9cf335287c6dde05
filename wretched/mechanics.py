"""D20 probability tables.

Pure functions from a die result to its game effect. Every function is total
over its documented domain; anything else is logged and answered with a
conservative fallback so a bad roll never takes a session down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from wretched.models import Card, Rank


logger = logging.getLogger(__name__)


# Numerals that trigger a stability check. Aces are odd but never trigger one.
CHALLENGE_RANKS: frozenset[str] = frozenset({"3", "5", "7", "9"})

_RANK_VALUES: dict[str, int] = {"A": 1, "J": 11, "Q": 12, "K": 13}

_SALVATION_THRESHOLDS: dict[int, int] = {1: 17, 2: 14, 3: 11, 4: 0}
AUTO_SUCCESS_THRESHOLD = 0
IMPOSSIBLE_THRESHOLD = 20


@dataclass(frozen=True, slots=True)
class StabilityLoss:
    loss: int
    gained_lucid: bool = False
    gained_surreal: bool = False
    optional_gain: int = 0


@dataclass(frozen=True, slots=True)
class SalvationResult:
    token_change: int
    gained_lucid: bool = False
    gained_surreal: bool = False


def _is_d20(roll: int) -> bool:
    return 1 <= roll <= 20


def rank_value(rank: Rank | str) -> int:
    if rank in _RANK_VALUES:
        return _RANK_VALUES[rank]
    return int(rank)


def triggers_stability_check(card: Card) -> bool:
    return card.rank in CHALLENGE_RANKS


def cards_to_draw(roll: int) -> int:
    """1 -> 1, 2-5 -> 2, 6-10 -> 3, 11-15 -> 4, 16-19 -> 5, 20 -> 6."""

    if roll == 1:
        return 1
    if 2 <= roll <= 5:
        return 2
    if 6 <= roll <= 10:
        return 3
    if 11 <= roll <= 15:
        return 4
    if 16 <= roll <= 19:
        return 5
    if roll == 20:
        return 6

    logger.error("cards_to_draw: invalid roll %r", roll)
    return 3


def stability_loss(roll: int) -> StabilityLoss:
    if roll == 20:
        return StabilityLoss(loss=0, gained_lucid=True, optional_gain=1)
    if 11 <= roll <= 19:
        return StabilityLoss(loss=0)
    if 6 <= roll <= 10:
        return StabilityLoss(loss=1)
    if 2 <= roll <= 5:
        return StabilityLoss(loss=2)
    if roll == 1:
        return StabilityLoss(loss=3, gained_surreal=True)

    logger.error("stability_loss: invalid roll %r", roll)
    return StabilityLoss(loss=0)


def failure_check_loss(roll: int, rank: Rank | str) -> StabilityLoss:
    """Rank-scaled stability check used after a challenge card.

    Rolls 1-10 cost the card's rank, 11-20 cost nothing. A natural 20 restores
    one point and grants Lucid; a natural 1 grants Surreal on top of the damage.
    """

    if not _is_d20(roll):
        logger.error("failure_check_loss: invalid roll %r", roll)
        return StabilityLoss(loss=0)

    table = stability_loss(roll)
    loss = rank_value(rank) if roll <= 10 else 0
    return StabilityLoss(
        loss=loss,
        gained_lucid=table.gained_lucid,
        gained_surreal=table.gained_surreal,
        optional_gain=table.optional_gain,
    )


def salvation_threshold(aces_revealed: int) -> int:
    """Minimum roll to remove a token: 1 Ace -> 17, 2 -> 14, 3 -> 11, 4 -> auto."""

    if aces_revealed in _SALVATION_THRESHOLDS:
        return _SALVATION_THRESHOLDS[aces_revealed]
    if aces_revealed != 0:
        logger.error("salvation_threshold: invalid aces count %r", aces_revealed)
    return IMPOSSIBLE_THRESHOLD


def salvation_result(roll: int, threshold: int) -> SalvationResult:
    if threshold == AUTO_SUCCESS_THRESHOLD:
        return SalvationResult(token_change=-1)
    if roll == 20:
        return SalvationResult(token_change=-2, gained_lucid=True)
    if threshold <= roll <= 19:
        return SalvationResult(token_change=-1)
    if 6 <= roll < threshold:
        return SalvationResult(token_change=0)
    if 2 <= roll <= 5:
        return SalvationResult(token_change=1)
    if roll == 1:
        return SalvationResult(token_change=2, gained_surreal=True)

    logger.error("salvation_result: unexpected roll %r (threshold %r)", roll, threshold)
    return SalvationResult(token_change=0)


def final_damage(roll: int, aces_revealed: int) -> int:
    """Final d6 damage once the last token is gone; each revealed Ace absorbs a point."""

    if not 1 <= roll <= 6:
        logger.error("final_damage: invalid roll %r", roll)
        return 0
    return max(roll - aces_revealed, 0)


def initial_damage(roll: int) -> int:
    if not 1 <= roll <= 6:
        logger.error("initial_damage: invalid roll %r", roll)
        return 0
    return roll
