from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


MAX_STABILITY = 20


class Phase(StrEnum):
    load_game = "loadGame"
    options = "options"
    intro = "intro"
    initial_damage_roll = "initialDamageRoll"
    start_round = "startRound"
    roll_for_tasks = "rollForTasks"
    draw_card = "drawCard"
    failure_check = "failureCheck"
    log = "log"
    success_check = "successCheck"
    final_damage_roll = "finalDamageRoll"
    game_over = "gameOver"
    final_log = "finalLog"
    exit_game = "exitGame"
    error_screen = "errorScreen"


class Suit(StrEnum):
    hearts = "hearts"
    diamonds = "diamonds"
    clubs = "clubs"
    spades = "spades"


Rank = Literal["A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K"]

RANKS: tuple[Rank, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    rank: Rank
    suit: Suit
    description: str = ""
    story: str = ""
    modifier: str | None = None

    @property
    def label(self) -> str:
        return f"{self.rank} of {self.suit.value}"


class LogEntry(BaseModel):
    # "{round}.{ordinal}" for cards, "{round}.final" / "0.initial" for damage rolls.
    id: str
    round: int
    kind: Literal["card", "initial_damage", "final_damage"] = "card"
    card: Card | None = None
    dice_roll: int | None = None
    damage_dealt: int | None = None
    stability: int | None = None
    message: str = ""


class JournalEntry(BaseModel):
    id: int
    round: int
    text: str
    recorded_at: datetime


class Player(BaseModel):
    name: str = Field(..., min_length=1)


class GameOptions(BaseModel):
    # 0 is the easiest level: the Ace of Hearts is removed and salvation starts unlocked.
    difficulty: int = Field(1, ge=0, le=4)
    starting_tokens: int = Field(10, ge=1)
    initial_damage: bool = False
    final_damage_roll: bool = False


class GameLabels(BaseModel):
    failure_check_loss: str = "You have failed to complete your quest."
    failure_counter_loss: str = "You have suffered a catastrophic failure."
    deck_exhausted_loss: str = "The deck ran out before salvation arrived."
    success_check_win: str = "Congratulations! You have succeeded in your quest!"
    final_damage_roll_loss: str = "So close... Victory was within reach, but the final test proved too much."


class DiceRequest(BaseModel):
    """What the dice animation needs to show a staged roll."""

    final_value: int
    is_lucid: bool = False
    is_surreal: bool = False


class _StagedRoll(BaseModel):
    dice_roll: int
    was_lucid: bool = False
    was_surreal: bool = False

    def dice_request(self) -> DiceRequest:
        return DiceRequest(final_value=self.dice_roll, is_lucid=self.was_lucid, is_surreal=self.was_surreal)


class TaskRollUpdate(_StagedRoll):
    kind: Literal["task_roll"] = "task_roll"
    cards_to_draw: int
    grants_lucid: bool = False
    grants_surreal: bool = False


class StabilityCheckUpdate(_StagedRoll):
    kind: Literal["stability_check"] = "stability_check"
    damage: int = 0
    gain: int = 0
    grants_lucid: bool = False
    grants_surreal: bool = False
    log_entry_id: str | None = None


class SalvationCheckUpdate(_StagedRoll):
    kind: Literal["salvation_check"] = "salvation_check"
    threshold: int
    token_change: int
    grants_lucid: bool = False
    grants_surreal: bool = False


class InitialDamageUpdate(_StagedRoll):
    kind: Literal["initial_damage"] = "initial_damage"
    damage: int


class FinalDamageUpdate(_StagedRoll):
    kind: Literal["final_damage"] = "final_damage"
    damage: int


PendingUpdate = Annotated[
    TaskRollUpdate | StabilityCheckUpdate | SalvationCheckUpdate | InitialDamageUpdate | FinalDamageUpdate,
    Field(discriminator="kind"),
]


class SessionState(BaseModel):
    """The single mutable record of one game.

    Actions take it explicitly and mutate it in place; nothing in the engine
    reads a module-level session.
    """

    model_config = ConfigDict(validate_assignment=True)

    phase: Phase = Phase.load_game

    player: Player | None = None
    options: GameOptions = Field(default_factory=GameOptions)
    labels: GameLabels = Field(default_factory=GameLabels)

    stability: int = Field(MAX_STABILITY, ge=0, le=MAX_STABILITY)
    tokens: int = Field(10, ge=0)

    round: int = Field(0, ge=0)
    cards_to_draw: int = Field(0, ge=0)
    dice_roll: int = 0

    deck: list[Card] = Field(default_factory=list)
    # Deck as handed over by configuration, kept for restart.
    source_deck: list[Card] = Field(default_factory=list)
    log: list[LogEntry] = Field(default_factory=list)
    current_card: Card | None = None
    journal_entries: list[JournalEntry] = Field(default_factory=list)

    aces_revealed: int = Field(0, ge=0, le=4)
    ace_of_hearts_revealed: bool = False
    kings_revealed: int = Field(0, ge=0, le=4)
    king_of_hearts: bool = False
    king_of_diamonds: bool = False
    king_of_clubs: bool = False
    king_of_spades: bool = False

    # Single-use roll modifiers: Lucid = advantage, Surreal = disadvantage.
    is_lucid: bool = False
    is_surreal: bool = False

    game_over: bool = False
    win: bool = False
    status: str = ""

    pending: PendingUpdate | None = None

    def current_round_cards(self) -> list[LogEntry]:
        return [e for e in self.log if e.kind == "card" and e.round == self.round]

    def last_card_entry(self) -> LogEntry | None:
        return next((e for e in reversed(self.log) if e.kind == "card"), None)

    @property
    def has_won(self) -> bool:
        return self.tokens == 0 and self.stability > 0

    @property
    def has_lost(self) -> bool:
        return self.stability <= 0 or self.kings_revealed >= 4
