"""Redis-backed save slots.

One save per game slug, stored as a single JSON document. The engine itself
knows nothing about saving; this module reads and writes the session record
directly.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import redis
from pydantic import BaseModel, ValidationError

from wretched.game_setup import overwrite_session
from wretched.infra.redis_client import get_save_prefix
from wretched.lock import session_lock
from wretched.models import Phase, SessionState


logger = logging.getLogger(__name__)

SAVE_VERSION = "1.0"

# Screens outside a running game are never saved.
SAVABLE_PHASES: frozenset[Phase] = frozenset(
    {
        Phase.intro,
        Phase.initial_damage_roll,
        Phase.start_round,
        Phase.roll_for_tasks,
        Phase.draw_card,
        Phase.failure_check,
        Phase.log,
        Phase.success_check,
        Phase.final_damage_roll,
    }
)


class SaveMetadata(BaseModel):
    version: str
    saved_at: datetime
    slug: str
    player_name: str | None = None
    round: int = 0
    stability: int = 0
    tokens: int = 0


class SaveRecord(SaveMetadata):
    session: SessionState


def _now() -> datetime:
    return datetime.now(tz=UTC)


def save_key(slug: str) -> str:
    if not slug:
        raise ValueError("slug is required for save operations")
    return f"{get_save_prefix()}:{slug}"


def _record_for(session: SessionState, *, slug: str) -> SaveRecord:
    return SaveRecord(
        version=SAVE_VERSION,
        saved_at=_now(),
        slug=slug,
        player_name=session.player.name if session.player else None,
        round=session.round,
        stability=session.stability,
        tokens=session.tokens,
        session=session,
    )


def serialize_session(session: SessionState, *, slug: str = "local") -> str:
    return _record_for(session, slug=slug).model_dump_json()


def restore_session(target: SessionState, payload: str | SaveRecord) -> SessionState:
    """Overwrite every field of `target` with the saved session, verbatim."""

    record = payload if isinstance(payload, SaveRecord) else SaveRecord.model_validate_json(payload)
    overwrite_session(target, record.session)
    logger.info("session restored (phase=%s, round=%s)", target.phase.value, target.round)
    return target


def save_session(*, r: redis.Redis, session: SessionState, slug: str) -> bool:
    if session.phase not in SAVABLE_PHASES:
        logger.debug("skipping save for %s: phase %s is not savable", slug, session.phase.value)
        return False

    key = save_key(slug)
    with session_lock(r=r, slug=slug):
        r.set(key, serialize_session(session, slug=slug))
    logger.info("session saved for %s", slug)
    return True


def _read_record(*, r: redis.Redis, slug: str) -> SaveRecord | None:
    raw = r.get(save_key(slug))
    if not raw:
        logger.debug("no saved session for %s", slug)
        return None

    try:
        meta = SaveMetadata.model_validate_json(raw)
        if meta.version != SAVE_VERSION:
            logger.warning("save version mismatch for %s (%s != %s), clearing", slug, meta.version, SAVE_VERSION)
            clear_session(r=r, slug=slug)
            return None
        return SaveRecord.model_validate_json(raw)
    except ValidationError:
        logger.exception("corrupt save for %s, clearing", slug)
        clear_session(r=r, slug=slug)
        return None


def load_session(*, r: redis.Redis, slug: str, target: SessionState | None = None) -> SessionState | None:
    """Load the save for `slug` into `target` (or a new session).

    Returns None when there is no usable save; stale or corrupt saves are
    removed on the way.
    """

    record = _read_record(r=r, slug=slug)
    if record is None:
        return None
    logger.info("loaded save for %s from %s", slug, record.saved_at.isoformat())
    return restore_session(target if target is not None else SessionState(), record)


def has_saved_session(*, r: redis.Redis, slug: str) -> bool:
    return bool(r.exists(save_key(slug)))


def get_save_metadata(*, r: redis.Redis, slug: str) -> SaveMetadata | None:
    raw = r.get(save_key(slug))
    if not raw:
        return None
    try:
        return SaveMetadata.model_validate_json(raw)
    except ValidationError:
        logger.exception("unreadable save metadata for %s", slug)
        return None


def clear_session(*, r: redis.Redis, slug: str) -> bool:
    removed = bool(r.delete(save_key(slug)))
    logger.info("save cleared for %s", slug)
    return removed
