"""Player-facing game actions.

Roll-driven actions come in pairs. The first call rolls, derives every delta
and stages it on `session.pending` without touching resources or the phase;
the caller then plays its dice animation from the returned update; the second
call (`apply_pending_*`) commits the staged deltas, checks win/loss and moves
the phase on. Applying with nothing staged is a logged no-op, so a doubled UI
call never applies a roll twice. A pending Lucid or Surreal modifier is spent
when the roll is staged and handed back by `discard_pending`.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TypeVar

from wretched.fsm import commit_transition, require_transition
from wretched.mechanics import (
    cards_to_draw,
    failure_check_loss,
    final_damage,
    initial_damage,
    salvation_result,
    salvation_threshold,
    stability_loss,
    triggers_stability_check,
)
from wretched.models import (
    MAX_STABILITY,
    Card,
    FinalDamageUpdate,
    InitialDamageUpdate,
    JournalEntry,
    LogEntry,
    PendingUpdate,
    Phase,
    SalvationCheckUpdate,
    SessionState,
    StabilityCheckUpdate,
    Suit,
    TaskRollUpdate,
)
from wretched.rng import DiceRoller
from wretched.turn_processing.validators import GameOverError, validate_action


logger = logging.getLogger(__name__)

U = TypeVar("U", TaskRollUpdate, StabilityCheckUpdate, SalvationCheckUpdate, InitialDamageUpdate, FinalDamageUpdate)

DAMAGE_DIE_SIDES = 6


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _clamp_stability(value: int) -> int:
    return max(0, min(MAX_STABILITY, value))


def _stage(session: SessionState, update: U) -> U:
    if session.pending is not None:
        logger.debug("replacing staged %s with %s", session.pending.kind, update.kind)
    session.pending = update
    logger.debug("staged %s roll=%s", update.kind, update.dice_roll)
    return update


def _take_pending(session: SessionState, kind: type[U]) -> U | None:
    staged = session.pending
    if staged is None:
        logger.warning("apply %s: nothing staged", kind.__name__)
        return None
    if not isinstance(staged, kind):
        logger.warning("apply %s: staged roll is %s, leaving it in place", kind.__name__, staged.kind)
        return None
    if session.game_over:
        raise GameOverError(f"The game is over; staged {staged.kind} roll cannot be applied")
    return staged


def _end_game(session: SessionState, *, win: bool, status: str) -> None:
    session.game_over = True
    session.win = win
    session.status = status
    commit_transition(session=session, to=Phase.game_over)
    logger.info("game over (win=%s): %s", win, status)


def _start_next_round(session: SessionState) -> None:
    require_transition(session=session, to=Phase.start_round)
    session.round += 1
    session.cards_to_draw = 0
    commit_transition(session=session, to=Phase.start_round)


def begin_round(*, session: SessionState) -> Phase:
    """Leave the intro or round-start screen for the next roll."""

    validate_action(action="begin_round", session=session)
    if session.phase == Phase.intro and session.options.initial_damage:
        commit_transition(session=session, to=Phase.initial_damage_roll)
    else:
        commit_transition(session=session, to=Phase.roll_for_tasks)
    return session.phase


# Task roll


def roll_for_tasks(*, session: SessionState, dice: DiceRoller) -> TaskRollUpdate:
    validate_action(action="roll_for_tasks", session=session)

    rolled = dice.roll_with_modifiers(session)
    update = TaskRollUpdate(
        dice_roll=rolled.roll,
        was_lucid=rolled.was_lucid,
        was_surreal=rolled.was_surreal,
        cards_to_draw=cards_to_draw(rolled.roll),
        grants_lucid=rolled.roll == 20,
        grants_surreal=rolled.roll == 1,
    )
    return _stage(session, update)


def apply_pending_task_roll(*, session: SessionState) -> bool:
    update = _take_pending(session, TaskRollUpdate)
    if update is None:
        return False
    require_transition(session=session, to=Phase.draw_card)

    session.pending = None
    session.dice_roll = update.dice_roll
    session.cards_to_draw = update.cards_to_draw
    if update.grants_lucid:
        session.is_lucid = True
    if update.grants_surreal:
        session.is_surreal = True

    commit_transition(session=session, to=Phase.draw_card)
    return True


# Cards


def draw_card(*, session: SessionState) -> Card | None:
    """Reveal the top card.

    The card stays in `current_card` until `confirm_card`, so the phase only
    moves on once it has been shown. An empty deck or a fourth King ends the
    game immediately.
    """

    validate_action(action="draw_card", session=session)

    if not session.deck:
        _end_game(session, win=False, status=session.labels.deck_exhausted_loss)
        return None

    card = session.deck.pop()
    session.cards_to_draw -= 1

    ordinal = len(session.current_round_cards()) + 1
    session.log.append(LogEntry(id=f"{session.round}.{ordinal}", round=session.round, card=card))
    session.current_card = card
    logger.debug("drew %s, %s left to draw", card.label, session.cards_to_draw)

    if card.rank == "K":
        session.kings_revealed += 1
        setattr(session, f"king_of_{card.suit.value}", True)
    elif card.rank == "A":
        session.aces_revealed += 1
        if card.suit == Suit.hearts:
            session.ace_of_hearts_revealed = True

    if session.kings_revealed >= 4:
        _end_game(session, win=False, status=session.labels.failure_counter_loss)

    return card


def confirm_card(*, session: SessionState) -> Phase:
    validate_action(action="confirm_card", session=session)

    card = session.current_card
    session.current_card = None
    if card is None or session.game_over:
        return session.phase

    if triggers_stability_check(card):
        commit_transition(session=session, to=Phase.failure_check)
    elif session.cards_to_draw > 0:
        commit_transition(session=session, to=Phase.draw_card)
    else:
        commit_transition(session=session, to=Phase.log)
    return session.phase


# Stability (failure) check


def get_failure_check_roll(*, session: SessionState, dice: DiceRoller) -> StabilityCheckUpdate:
    validate_action(action="failure_check", session=session)

    entry = session.last_card_entry()
    rolled = dice.roll_with_modifiers(session)
    if entry is not None and entry.card is not None:
        outcome = failure_check_loss(rolled.roll, entry.card.rank)
    else:
        logger.warning("failure check without a drawn card, using the flat table")
        outcome = stability_loss(rolled.roll)

    update = StabilityCheckUpdate(
        dice_roll=rolled.roll,
        was_lucid=rolled.was_lucid,
        was_surreal=rolled.was_surreal,
        damage=outcome.loss,
        gain=outcome.optional_gain,
        grants_lucid=outcome.gained_lucid,
        grants_surreal=outcome.gained_surreal,
        log_entry_id=entry.id if entry is not None else None,
    )
    return _stage(session, update)


def apply_pending_failure_check(*, session: SessionState) -> bool:
    update = _take_pending(session, StabilityCheckUpdate)
    if update is None:
        return False

    stability = _clamp_stability(session.stability - update.damage + update.gain)
    if stability <= 0:
        target = Phase.game_over
    elif session.cards_to_draw > 0:
        target = Phase.draw_card
    else:
        target = Phase.log
    require_transition(session=session, to=target)

    session.pending = None
    session.dice_roll = update.dice_roll
    session.stability = stability
    if update.grants_lucid:
        session.is_lucid = True
    if update.grants_surreal:
        session.is_surreal = True

    if update.log_entry_id is not None:
        for idx, entry in enumerate(session.log):
            if entry.id == update.log_entry_id:
                session.log[idx] = entry.model_copy(update={"dice_roll": update.dice_roll, "damage_dealt": update.damage})
                break

    if stability <= 0:
        _end_game(session, win=False, status=session.labels.failure_check_loss)
    else:
        commit_transition(session=session, to=target)
    return True


# Journal


def record_round(*, session: SessionState, text: str | None) -> JournalEntry:
    if text is None or not text.strip():
        raise ValueError("No journal entry provided for this round")
    validate_action(action="record_round", session=session)

    if session.phase == Phase.log:
        if session.ace_of_hearts_revealed and session.tokens > 0:
            target = Phase.success_check
        else:
            target = Phase.start_round
        require_transition(session=session, to=target)
    else:
        target = None

    entry = JournalEntry(id=session.round, round=session.round, text=text, recorded_at=_now())
    session.journal_entries.append(entry)

    if target == Phase.success_check:
        commit_transition(session=session, to=Phase.success_check)
    elif target == Phase.start_round:
        _start_next_round(session)
    return entry


def open_final_log(*, session: SessionState) -> None:
    validate_action(action="open_final_log", session=session)
    commit_transition(session=session, to=Phase.final_log)


# Salvation check


def get_salvation_check_roll(*, session: SessionState, dice: DiceRoller) -> SalvationCheckUpdate:
    validate_action(action="salvation_check", session=session)

    threshold = salvation_threshold(session.aces_revealed)
    rolled = dice.roll_with_modifiers(session)
    result = salvation_result(rolled.roll, threshold)

    update = SalvationCheckUpdate(
        dice_roll=rolled.roll,
        was_lucid=rolled.was_lucid,
        was_surreal=rolled.was_surreal,
        threshold=threshold,
        token_change=result.token_change,
        grants_lucid=result.gained_lucid,
        grants_surreal=result.gained_surreal,
    )
    return _stage(session, update)


def apply_pending_salvation_check(*, session: SessionState) -> bool:
    update = _take_pending(session, SalvationCheckUpdate)
    if update is None:
        return False

    tokens = max(session.tokens + update.token_change, 0)
    salvation = tokens == 0 and session.stability > 0
    if salvation:
        target = Phase.final_damage_roll if session.options.final_damage_roll else Phase.game_over
    else:
        target = Phase.start_round
    require_transition(session=session, to=target)

    session.pending = None
    session.dice_roll = update.dice_roll
    session.tokens = tokens
    if update.grants_lucid:
        session.is_lucid = True
    if update.grants_surreal:
        session.is_surreal = True

    if target == Phase.game_over:
        _end_game(session, win=True, status=session.labels.success_check_win)
    elif target == Phase.final_damage_roll:
        commit_transition(session=session, to=Phase.final_damage_roll)
    else:
        _start_next_round(session)
    return True


# Optional damage rolls


def perform_initial_damage_roll(*, session: SessionState, dice: DiceRoller) -> InitialDamageUpdate:
    validate_action(action="initial_damage", session=session)

    roll = dice.roll_die(DAMAGE_DIE_SIDES)
    return _stage(session, InitialDamageUpdate(dice_roll=roll, damage=initial_damage(roll)))


def apply_pending_initial_damage_roll(*, session: SessionState) -> bool:
    update = _take_pending(session, InitialDamageUpdate)
    if update is None:
        return False

    stability = _clamp_stability(session.stability - update.damage)
    target = Phase.game_over if stability <= 0 else Phase.roll_for_tasks
    require_transition(session=session, to=target)

    session.pending = None
    session.dice_roll = update.dice_roll
    session.stability = stability
    session.log.append(
        LogEntry(
            id="0.initial",
            round=0,
            kind="initial_damage",
            dice_roll=update.dice_roll,
            damage_dealt=update.damage,
            stability=stability,
            message=f"Initial setup: Lost {update.damage} stability to instability",
        )
    )

    if stability <= 0:
        _end_game(session, win=False, status=session.labels.failure_check_loss)
    else:
        commit_transition(session=session, to=Phase.roll_for_tasks)
    return True


def perform_final_damage_roll(*, session: SessionState, dice: DiceRoller) -> FinalDamageUpdate:
    validate_action(action="final_damage", session=session)

    roll = dice.roll_die(DAMAGE_DIE_SIDES)
    return _stage(session, FinalDamageUpdate(dice_roll=roll, damage=final_damage(roll, session.aces_revealed)))


def apply_pending_final_damage_roll(*, session: SessionState) -> bool:
    update = _take_pending(session, FinalDamageUpdate)
    if update is None:
        return False
    require_transition(session=session, to=Phase.game_over)

    stability = _clamp_stability(session.stability - update.damage)
    session.pending = None
    session.dice_roll = update.dice_roll
    session.stability = stability
    session.log.append(
        LogEntry(
            id=f"{session.round}.final",
            round=session.round,
            kind="final_damage",
            dice_roll=update.dice_roll,
            damage_dealt=update.damage,
            stability=stability,
        )
    )

    if stability > 0:
        _end_game(session, win=True, status=session.labels.success_check_win)
    else:
        _end_game(session, win=False, status=session.labels.final_damage_roll_loss)
    return True


# Screens outside the round loop


def discard_pending(*, session: SessionState) -> PendingUpdate | None:
    """Explicitly drop a staged roll whose animation was cancelled."""

    staged = session.pending
    if staged is None:
        return None
    logger.warning("discarding staged %s roll=%s", staged.kind, staged.dice_roll)
    session.pending = None
    # The roll never took effect, so the modifier it used is still owed.
    if staged.was_lucid:
        session.is_lucid = True
    if staged.was_surreal:
        session.is_surreal = True
    return staged


def show_error_screen(*, session: SessionState, message: str) -> None:
    session.status = message
    commit_transition(session=session, to=Phase.error_screen)
    logger.error("error screen: %s", message)


def return_to_start(*, session: SessionState) -> None:
    commit_transition(session=session, to=Phase.load_game)
