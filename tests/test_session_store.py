from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import fakeredis
import pytest

from wretched.lock import SessionBusy
from wretched.models import (
    Card,
    JournalEntry,
    LogEntry,
    Phase,
    SessionState,
    StabilityCheckUpdate,
    Suit,
)
from wretched.session_store import (
    SAVE_VERSION,
    clear_session,
    get_save_metadata,
    has_saved_session,
    load_session,
    restore_session,
    save_key,
    save_session,
    serialize_session,
)


@pytest.fixture()
def populated(make_session: Callable[..., SessionState]) -> SessionState:
    seven = Card(rank="7", suit=Suit.diamonds, description="Something moves in the vents.")
    return make_session(
        Phase.failure_check,
        round=3,
        stability=14,
        tokens=8,
        cards_to_draw=2,
        dice_roll=11,
        deck=[Card(rank="2", suit=Suit.clubs), Card(rank="K", suit=Suit.hearts)],
        source_deck=[Card(rank="2", suit=Suit.clubs)],
        log=[
            LogEntry(id="0.initial", round=1, kind="initial_damage", dice_roll=3, damage_dealt=3, stability=17),
            LogEntry(id="3.1", round=3, card=seven),
        ],
        journal_entries=[
            JournalEntry(id=1, round=1, text="Day one.", recorded_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)),
        ],
        aces_revealed=2,
        kings_revealed=1,
        king_of_clubs=True,
        is_surreal=True,
        status="keep going",
        pending=StabilityCheckUpdate(dice_roll=6, damage=7, log_entry_id="3.1"),
    )


def test_restore_reproduces_every_field(populated: SessionState) -> None:
    restored = restore_session(SessionState(), serialize_session(populated))

    assert restored == populated
    for name in SessionState.model_fields:
        assert getattr(restored, name) == getattr(populated, name), name


def test_save_and_load(r: fakeredis.FakeRedis, populated: SessionState) -> None:
    assert save_session(r=r, session=populated, slug="tower") is True
    assert has_saved_session(r=r, slug="tower")

    loaded = load_session(r=r, slug="tower")
    assert loaded == populated

    target = SessionState()
    assert load_session(r=r, slug="tower", target=target) is target
    assert target == populated


def test_metadata_without_full_load(r: fakeredis.FakeRedis, populated: SessionState) -> None:
    save_session(r=r, session=populated, slug="tower")

    meta = get_save_metadata(r=r, slug="tower")

    assert meta is not None
    assert meta.version == SAVE_VERSION
    assert (meta.player_name, meta.round, meta.stability, meta.tokens) == ("Ada", 3, 14, 8)
    assert get_save_metadata(r=r, slug="missing") is None


def test_only_running_games_are_saved(r: fakeredis.FakeRedis, make_session: Callable[..., SessionState]) -> None:
    for phase in (Phase.load_game, Phase.options, Phase.game_over, Phase.final_log, Phase.exit_game, Phase.error_screen):
        assert save_session(r=r, session=make_session(phase), slug="tower") is False
    assert not has_saved_session(r=r, slug="tower")


def test_version_mismatch_clears_the_save(r: fakeredis.FakeRedis, populated: SessionState) -> None:
    stale = serialize_session(populated, slug="tower").replace(f'"version":"{SAVE_VERSION}"', '"version":"0.9"')
    r.set(save_key("tower"), stale)

    assert load_session(r=r, slug="tower") is None
    assert not has_saved_session(r=r, slug="tower")


def test_corrupt_save_is_cleared(r: fakeredis.FakeRedis) -> None:
    r.set(save_key("tower"), "{not json")

    assert load_session(r=r, slug="tower") is None
    assert not has_saved_session(r=r, slug="tower")


def test_clear_session(r: fakeredis.FakeRedis, populated: SessionState) -> None:
    save_session(r=r, session=populated, slug="tower")

    assert clear_session(r=r, slug="tower") is True
    assert not has_saved_session(r=r, slug="tower")
    assert load_session(r=r, slug="tower") is None
    assert clear_session(r=r, slug="tower") is False


def test_save_key_uses_configured_prefix() -> None:
    assert save_key("tower") == "test-save:tower"
    with pytest.raises(ValueError):
        save_key("")


def test_busy_slot_is_not_overwritten(r: fakeredis.FakeRedis, populated: SessionState) -> None:
    r.set("lock:save:tower", "1")

    with pytest.raises(SessionBusy):
        save_session(r=r, session=populated, slug="tower")
    assert not has_saved_session(r=r, slug="tower")
