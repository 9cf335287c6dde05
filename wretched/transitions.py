from __future__ import annotations

from wretched.models import Phase


# Reachable from every phase; never checked against the graph.
EMERGENCY_EXITS: frozenset[Phase] = frozenset({Phase.exit_game, Phase.error_screen})


TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.load_game: frozenset({Phase.options}),
    Phase.options: frozenset({Phase.intro}),
    Phase.intro: frozenset({Phase.initial_damage_roll, Phase.roll_for_tasks}),
    Phase.initial_damage_roll: frozenset({Phase.roll_for_tasks, Phase.game_over}),
    Phase.start_round: frozenset({Phase.roll_for_tasks}),
    Phase.roll_for_tasks: frozenset({Phase.draw_card}),
    Phase.draw_card: frozenset({Phase.failure_check, Phase.log, Phase.game_over}),
    Phase.failure_check: frozenset({Phase.draw_card, Phase.log, Phase.game_over}),
    Phase.log: frozenset({Phase.success_check, Phase.start_round}),
    Phase.success_check: frozenset({Phase.start_round, Phase.final_damage_roll, Phase.game_over}),
    Phase.final_damage_roll: frozenset({Phase.game_over}),
    Phase.game_over: frozenset({Phase.final_log, Phase.intro}),
    Phase.final_log: frozenset({Phase.exit_game, Phase.intro}),
    Phase.exit_game: frozenset({Phase.load_game, Phase.options}),
    Phase.error_screen: frozenset({Phase.load_game}),
}


def valid_targets(phase: Phase) -> frozenset[Phase]:
    return TRANSITIONS[phase] | EMERGENCY_EXITS


def can_transition(from_phase: Phase, to_phase: Phase) -> bool:
    """True when `from_phase -> to_phase` is a legal move.

    A self-move counts as legal (callers treat it as a no-op).
    """

    if to_phase == from_phase or to_phase in EMERGENCY_EXITS:
        return True
    return to_phase in TRANSITIONS[from_phase]
