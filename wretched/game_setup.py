from __future__ import annotations

import logging
from collections.abc import Sequence

from wretched.fsm import commit_transition
from wretched.models import Card, GameLabels, GameOptions, Phase, Player, RANKS, SessionState, Suit
from wretched.rng import DiceRoller


logger = logging.getLogger(__name__)


EASIEST_DIFFICULTY = 0


def standard_deck() -> list[Card]:
    """52 plain cards, suit by suit. Content-bearing decks come from configuration."""

    return [Card(rank=rank, suit=suit) for suit in Suit for rank in RANKS]


def _is_ace_of_hearts(card: Card) -> bool:
    return card.rank == "A" and card.suit == Suit.hearts


def overwrite_session(session: SessionState, fresh: SessionState) -> None:
    for name in SessionState.model_fields:
        setattr(session, name, getattr(fresh, name))


def _coerce_player(player: Player | str | None) -> Player:
    if isinstance(player, str):
        player = Player(name=player) if player.strip() else None
    if player is None or not player.name.strip():
        raise ValueError("Must provide a valid player")
    return player


def prepare_deck(
    *,
    deck: Sequence[Card],
    options: GameOptions,
    dice: DiceRoller,
) -> tuple[list[Card], bool]:
    """Shuffle a copy of `deck` and apply difficulty adjustments.

    Returns the playing deck and whether the Ace of Hearts was taken out
    (easiest difficulty: salvation starts unlocked).
    """

    playing = list(deck)
    dice.shuffle(playing)

    removed_ace = False
    if options.difficulty == EASIEST_DIFFICULTY:
        kept = [c for c in playing if not _is_ace_of_hearts(c)]
        removed_ace = len(kept) != len(playing)
        playing = kept
    return playing, removed_ace


def start_game(
    *,
    session: SessionState,
    player: Player | str | None,
    dice: DiceRoller,
    options: GameOptions | None = None,
    deck: Sequence[Card] | None = None,
    labels: GameLabels | None = None,
) -> SessionState:
    """Reset `session` for a new game and move it to the intro screen.

    Validation happens first; a rejected call leaves the session untouched.
    """

    player = _coerce_player(player)
    options = options or GameOptions()
    source = list(deck) if deck is not None else standard_deck()
    if not source:
        raise ValueError("Game configuration with deck is required")

    playing, removed_ace = prepare_deck(deck=source, options=options, dice=dice)
    unlocked = removed_ace or options.difficulty == EASIEST_DIFFICULTY

    fresh = SessionState(
        player=player,
        options=options,
        labels=labels or session.labels,
        tokens=options.starting_tokens,
        round=1,
        deck=playing,
        source_deck=source,
        ace_of_hearts_revealed=unlocked,
    )
    overwrite_session(session, fresh)

    commit_transition(session=session, to=Phase.options)
    commit_transition(session=session, to=Phase.intro)

    logger.info(
        "game started for %s (difficulty=%s, tokens=%s, deck=%s)",
        player.name,
        options.difficulty,
        session.tokens,
        len(session.deck),
    )
    return session


def restart_game(*, session: SessionState, dice: DiceRoller) -> SessionState:
    if session.player is None:
        raise ValueError("No game to restart")
    return start_game(
        session=session,
        player=session.player,
        dice=dice,
        options=session.options,
        deck=session.source_deck or None,
        labels=session.labels,
    )


def exit_game(*, session: SessionState) -> SessionState:
    """Leave the game: keep only who was playing, reset everything else."""

    commit_transition(session=session, to=Phase.exit_game)
    overwrite_session(session, SessionState(player=session.player, phase=Phase.exit_game))
    return session
