from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from wretched.models import Phase, SessionState


class GameOverError(RuntimeError):
    """Raised when an action would change resources after the game has ended."""


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and loggable.
    """

    action: str
    player: str = ""


class ActionValidator(ABC):
    """A small, composable precondition for an engine action."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class PhaseValidator(ActionValidator):
    allowed_phases: frozenset[Phase]

    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        if session.phase not in self.allowed_phases:
            allowed = ",".join(sorted(p.value for p in self.allowed_phases))
            raise ValueError(f"Action '{ctx.action}' not allowed in phase '{session.phase.value}' (allowed: {allowed})")


@dataclass(frozen=True, slots=True)
class GameOverValidator(ActionValidator):
    """Deny resource-changing actions once the game is over."""

    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        if session.game_over:
            raise GameOverError(f"The game is over; '{ctx.action}' cannot change the session")


@dataclass(frozen=True, slots=True)
class CardConfirmedValidator(ActionValidator):
    """The card on display must be confirmed before the next one is drawn."""

    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        if session.current_card is not None:
            raise ValueError(f"Confirm {session.current_card.label} before '{ctx.action}'")


@dataclass(frozen=True, slots=True)
class CardsRemainingValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        if session.cards_to_draw <= 0:
            raise ValueError(f"Action '{ctx.action}' requires cards left to draw this round")


@dataclass(frozen=True, slots=True)
class SalvationUnlockedValidator(ActionValidator):
    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        if not session.ace_of_hearts_revealed:
            raise ValueError("Salvation checks are locked until the Ace of Hearts is revealed")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, session: SessionState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, session=session)


def _phases(*phases: Phase) -> frozenset[Phase]:
    return frozenset(phases)


DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "begin_round": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.intro, Phase.start_round)),
        )
    ),
    "roll_for_tasks": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.roll_for_tasks)),
        )
    ),
    "draw_card": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.draw_card)),
            CardConfirmedValidator(),
            CardsRemainingValidator(),
        )
    ),
    # After a fourth King the card is still on display in the game over screen.
    "confirm_card": ValidatorPipeline(
        validators=(PhaseValidator(allowed_phases=_phases(Phase.draw_card, Phase.game_over)),)
    ),
    "failure_check": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.failure_check)),
        )
    ),
    "salvation_check": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.success_check)),
            SalvationUnlockedValidator(),
        )
    ),
    "initial_damage": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.initial_damage_roll)),
        )
    ),
    "final_damage": ValidatorPipeline(
        validators=(
            GameOverValidator(),
            PhaseValidator(allowed_phases=_phases(Phase.final_damage_roll)),
        )
    ),
    "record_round": ValidatorPipeline(
        validators=(PhaseValidator(allowed_phases=_phases(Phase.log, Phase.final_log)),)
    ),
    "open_final_log": ValidatorPipeline(
        validators=(PhaseValidator(allowed_phases=_phases(Phase.game_over)),)
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe


def validate_action(*, action: str, session: SessionState) -> None:
    player = session.player.name if session.player else ""
    pipeline_for_action(action).validate(ctx=ValidationContext(action=action, player=player), session=session)
