from __future__ import annotations

from collections.abc import Callable

import pytest

from wretched.models import Card, Phase, SessionState, Suit
from wretched.turn_processing.validators import (
    DEFAULT_ACTION_PIPELINES,
    GameOverError,
    ValidationContext,
    pipeline_for_action,
    validate_action,
)


def test_phase_validator_denies_wrong_phase(make_session: Callable[..., SessionState]) -> None:
    session = make_session(Phase.log)
    ctx = ValidationContext(action="draw_card", player="Ada")

    with pytest.raises(ValueError) as e:
        pipeline_for_action("draw_card").validate(ctx=ctx, session=session)

    assert "not allowed" in str(e.value)
    assert "log" in str(e.value)


def test_game_over_checked_before_phase(make_session: Callable[..., SessionState]) -> None:
    session = make_session(Phase.game_over, game_over=True)

    with pytest.raises(GameOverError) as e:
        validate_action(action="salvation_check", session=session)

    assert "game is over" in str(e.value)


def test_unknown_action_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_action("nope")
    assert "Unknown action" in str(e.value)


def test_draw_requires_confirmed_card_and_cards_left(make_session: Callable[..., SessionState]) -> None:
    showing = make_session(Phase.draw_card, cards_to_draw=2, current_card=Card(rank="6", suit=Suit.spades))
    with pytest.raises(ValueError) as e:
        validate_action(action="draw_card", session=showing)
    assert "6 of spades" in str(e.value)

    spent = make_session(Phase.draw_card, cards_to_draw=0)
    with pytest.raises(ValueError) as e:
        validate_action(action="draw_card", session=spent)
    assert "cards left" in str(e.value)


def test_salvation_locked_until_unlocked(make_session: Callable[..., SessionState]) -> None:
    locked = make_session(Phase.success_check)
    with pytest.raises(ValueError) as e:
        validate_action(action="salvation_check", session=locked)
    assert "Ace of Hearts" in str(e.value)

    validate_action(action="salvation_check", session=make_session(Phase.success_check, ace_of_hearts_revealed=True))


def test_final_log_accepts_journal_after_game_over(make_session: Callable[..., SessionState]) -> None:
    session = make_session(Phase.final_log, game_over=True)
    validate_action(action="record_round", session=session)


def test_every_pipeline_names_a_phase_check() -> None:
    for action, pipe in DEFAULT_ACTION_PIPELINES.items():
        kinds = {type(v).__name__ for v in pipe.validators}
        assert "PhaseValidator" in kinds, action
