from __future__ import annotations

import logging

from statemachine import State, StateMachine

from wretched.models import Phase, SessionState
from wretched.transitions import EMERGENCY_EXITS, TRANSITIONS, valid_targets


logger = logging.getLogger(__name__)


class InvalidTransition(ValueError):
    def __init__(self, from_phase: Phase, to_phase: Phase, targets: frozenset[Phase]):
        self.from_phase = from_phase
        self.to_phase = to_phase
        self.valid_targets = targets
        listed = ", ".join(sorted(p.value for p in targets)) or "none"
        super().__init__(f"Invalid transition: {from_phase.value} -> {to_phase.value} (valid from {from_phase.value}: {listed})")


class SessionFSM(StateMachine):
    """FSM wrapper around SessionState.

    One `to_<phase>` event per target phase; its sources mirror `TRANSITIONS`.
    Rules live in the action layer, the FSM only guards the moves.
    """

    load_game = State(Phase.load_game.value, value=Phase.load_game.value, initial=True)
    options_screen = State(Phase.options.value, value=Phase.options.value)
    intro = State(Phase.intro.value, value=Phase.intro.value)
    initial_damage = State(Phase.initial_damage_roll.value, value=Phase.initial_damage_roll.value)
    round_start = State(Phase.start_round.value, value=Phase.start_round.value)
    task_roll = State(Phase.roll_for_tasks.value, value=Phase.roll_for_tasks.value)
    card_draw = State(Phase.draw_card.value, value=Phase.draw_card.value)
    failure_check = State(Phase.failure_check.value, value=Phase.failure_check.value)
    journal = State(Phase.log.value, value=Phase.log.value)
    success_check = State(Phase.success_check.value, value=Phase.success_check.value)
    final_damage = State(Phase.final_damage_roll.value, value=Phase.final_damage_roll.value)
    game_over = State(Phase.game_over.value, value=Phase.game_over.value)
    final_journal = State(Phase.final_log.value, value=Phase.final_log.value)
    exit_screen = State(Phase.exit_game.value, value=Phase.exit_game.value)
    error_screen = State(Phase.error_screen.value, value=Phase.error_screen.value)

    to_options = load_game.to(options_screen) | exit_screen.to(options_screen)
    to_intro = options_screen.to(intro) | game_over.to(intro) | final_journal.to(intro)
    to_initial_damage_roll = intro.to(initial_damage)
    to_start_round = journal.to(round_start) | success_check.to(round_start)
    to_roll_for_tasks = intro.to(task_roll) | initial_damage.to(task_roll) | round_start.to(task_roll)
    to_draw_card = task_roll.to(card_draw) | failure_check.to(card_draw)
    to_failure_check = card_draw.to(failure_check)
    to_log = card_draw.to(journal) | failure_check.to(journal)
    to_success_check = journal.to(success_check)
    to_final_damage_roll = success_check.to(final_damage)
    to_game_over = (
        initial_damage.to(game_over)
        | card_draw.to(game_over)
        | failure_check.to(game_over)
        | success_check.to(game_over)
        | final_damage.to(game_over)
    )
    to_final_log = game_over.to(final_journal)
    to_load_game = exit_screen.to(load_game) | error_screen.to(load_game)

    to_exit_game = (
        load_game.to(exit_screen)
        | options_screen.to(exit_screen)
        | intro.to(exit_screen)
        | initial_damage.to(exit_screen)
        | round_start.to(exit_screen)
        | task_roll.to(exit_screen)
        | card_draw.to(exit_screen)
        | failure_check.to(exit_screen)
        | journal.to(exit_screen)
        | success_check.to(exit_screen)
        | final_damage.to(exit_screen)
        | game_over.to(exit_screen)
        | final_journal.to(exit_screen)
        | error_screen.to(exit_screen)
    )
    to_error_screen = (
        load_game.to(error_screen)
        | options_screen.to(error_screen)
        | intro.to(error_screen)
        | initial_damage.to(error_screen)
        | round_start.to(error_screen)
        | task_roll.to(error_screen)
        | card_draw.to(error_screen)
        | failure_check.to(error_screen)
        | journal.to(error_screen)
        | success_check.to(error_screen)
        | final_damage.to(error_screen)
        | game_over.to(error_screen)
        | final_journal.to(error_screen)
        | exit_screen.to(error_screen)
    )

    def __init__(self, session: SessionState):
        self.session = session
        super().__init__(start_value=session.phase.value)

    def sync_phase_to_model(self) -> None:
        self.session.phase = Phase(str(self.current_state_value))


def require_transition(*, session: SessionState, to: Phase) -> None:
    """Raise InvalidTransition unless `to` is reachable from the current phase."""

    current = session.phase
    if to == current or to in EMERGENCY_EXITS:
        return
    if to not in TRANSITIONS[current]:
        raise InvalidTransition(current, to, valid_targets(current))


def commit_transition(*, session: SessionState, to: Phase) -> bool:
    """Move `session` to `to` if the graph allows it.

    Returns False for a self-move (no-op). Raises InvalidTransition, leaving the
    phase untouched, when the move is not an edge of the graph.
    """

    current = session.phase
    if to == current:
        return False

    require_transition(session=session, to=to)

    fsm = SessionFSM(session)
    fsm.send(f"to_{to.name}")
    fsm.sync_phase_to_model()
    logger.info("phase %s -> %s", current.value, session.phase.value)
    return True
