from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import redis

from wretched import actions
from wretched.core.events import EventType, GameEvent
from wretched.game_setup import start_game
from wretched.models import Card, GameOptions, PendingUpdate, Phase, Player, SessionState
from wretched.narration import DiceAnimator, InstantAnimator, Narrator, NullNarrator
from wretched.rng import DiceRoller
from wretched.session_store import clear_session, save_session


logger = logging.getLogger(__name__)

JournalWriter = Callable[[SessionState], str]

# A game is bounded by its deck; this only guards against a stuck phase.
MAX_STEPS = 2_000


def default_journal(session: SessionState) -> str:
    cards = ", ".join(e.card.label for e in session.current_round_cards() if e.card is not None) or "nothing"
    return f"Round {session.round}: drew {cards}. Stability {session.stability}, tokens {session.tokens}."


def final_journal(session: SessionState) -> str:
    return f"{session.status} Survived {session.round} rounds."


@dataclass(slots=True)
class AutoPlay:
    session: SessionState
    dice: DiceRoller
    animator: DiceAnimator
    narrator: Narrator
    journal: JournalWriter = default_journal
    r: redis.Redis | None = None
    slug: str = "autoplay"
    history: list[GameEvent] = field(default_factory=list)

    def emit(self, type: EventType, **payload: object) -> GameEvent:
        event = GameEvent.now(type=type, round=self.session.round, payload=dict(payload))
        self.history.append(event)
        logger.debug("%s %s", type, payload)
        return event

    def checkpoint(self) -> None:
        if self.r is not None:
            save_session(r=self.r, session=self.session, slug=self.slug)

    async def _roll(self, staged: PendingUpdate, apply: Callable[..., bool]) -> None:
        self.emit("ROLL_STAGED", kind=staged.kind, roll=staged.dice_roll)
        try:
            await self.animator.roll(staged.dice_request())
        except asyncio.CancelledError:
            actions.discard_pending(session=self.session)
            raise
        apply(session=self.session)
        self.emit("ROLL_APPLIED", kind=staged.kind, roll=staged.dice_roll, stability=self.session.stability, tokens=self.session.tokens)

    async def step(self) -> None:
        session = self.session
        phase = session.phase

        if phase in (Phase.intro, Phase.start_round):
            actions.begin_round(session=session)
            self.emit("ROUND_STARTED")
        elif phase == Phase.initial_damage_roll:
            await self._roll(actions.perform_initial_damage_roll(session=session, dice=self.dice), actions.apply_pending_initial_damage_roll)
        elif phase == Phase.roll_for_tasks:
            staged = actions.roll_for_tasks(session=session, dice=self.dice)
            self.narrator.narrate(f"You rolled {staged.dice_roll}. Draw {staged.cards_to_draw} cards.")
            await self._roll(staged, actions.apply_pending_task_roll)
        elif phase == Phase.draw_card:
            card = actions.draw_card(session=session)
            if card is not None:
                self.emit("CARD_DRAWN", card=card.label)
                self.narrator.narrate(card.description or card.label)
                actions.confirm_card(session=session)
        elif phase == Phase.failure_check:
            await self._roll(actions.get_failure_check_roll(session=session, dice=self.dice), actions.apply_pending_failure_check)
        elif phase == Phase.log:
            entry = actions.record_round(session=session, text=self.journal(session))
            self.emit("JOURNAL_RECORDED", text=entry.text)
        elif phase == Phase.success_check:
            await self._roll(actions.get_salvation_check_roll(session=session, dice=self.dice), actions.apply_pending_salvation_check)
        elif phase == Phase.final_damage_roll:
            await self._roll(actions.perform_final_damage_roll(session=session, dice=self.dice), actions.apply_pending_final_damage_roll)
        else:
            raise RuntimeError(f"Auto-play cannot continue from phase '{phase.value}'")

    async def run(self) -> list[GameEvent]:
        steps = 0
        while not self.session.game_over:
            steps += 1
            if steps > MAX_STEPS:
                raise RuntimeError(f"Auto-play made no progress after {MAX_STEPS} steps")
            await self.step()
            self.checkpoint()

        self.emit("GAME_ENDED", win=self.session.win, status=self.session.status)
        self.narrator.narrate(self.session.status)

        actions.open_final_log(session=self.session)
        actions.record_round(session=self.session, text=final_journal(self.session))
        if self.r is not None:
            clear_session(r=self.r, slug=self.slug)
        return self.history


async def play_session(
    *,
    session: SessionState,
    player: Player | str,
    dice: DiceRoller,
    options: GameOptions | None = None,
    deck: Sequence[Card] | None = None,
    animator: DiceAnimator | None = None,
    narrator: Narrator | None = None,
    journal: JournalWriter = default_journal,
    r: redis.Redis | None = None,
    slug: str = "autoplay",
) -> list[GameEvent]:
    """Play one full game through the public actions.

    Every roll is staged, shown through `animator`, then applied. With `r`
    set, the session is saved after each step and the save is cleared once
    the game ends.
    """

    start_game(session=session, player=player, dice=dice, options=options, deck=deck)
    play = AutoPlay(
        session=session,
        dice=dice,
        animator=animator or InstantAnimator(),
        narrator=narrator or NullNarrator(),
        journal=journal,
        r=r,
        slug=slug,
    )
    name = session.player.name if session.player else ""
    play.emit("GAME_STARTED", player=name, deck=len(session.deck))
    play.narrator.narrate(f"{name} begins. Stability {session.stability}.")
    return await play.run()
