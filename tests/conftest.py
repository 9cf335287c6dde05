from __future__ import annotations

from collections.abc import Callable
from typing import Any

import fakeredis
import pytest

from wretched.models import Phase, Player, SessionState


@pytest.fixture(autouse=True)
def _isolated_save_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep save keys in tests apart from anything a developer has configured."""

    monkeypatch.setenv("WRETCHED_SAVE_PREFIX", "test-save")


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def make_session() -> Callable[..., SessionState]:
    """Build a session already sitting in `phase`, as if play had reached it.

    Shared here so test modules don't import helpers from each other.
    """

    def _make(phase: Phase, **fields: Any) -> SessionState:
        fields.setdefault("player", Player(name="Ada"))
        fields.setdefault("round", 1)
        return SessionState(phase=phase, **fields)

    return _make
