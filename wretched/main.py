from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence

from dotenv import load_dotenv

from wretched.game_loop import play_session
from wretched.infra.redis_client import create_redis
from wretched.models import GameOptions, SessionState
from wretched.narration import NarrationStream, StreamNarrator
from wretched.rng import DiceRoller


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wretched", description="Play one solo journaling game automatically.")
    parser.add_argument("--player", required=True, help="Name recorded for the session")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a reproducible game")
    parser.add_argument("--difficulty", type=int, default=1, choices=range(0, 5))
    parser.add_argument("--tokens", type=int, default=10, help="Starting salvation tokens")
    parser.add_argument("--initial-damage", action="store_true", help="Roll a d6 off stability before round 1")
    parser.add_argument("--final-damage", action="store_true", help="Roll a final d6 once the last token is gone")
    parser.add_argument("--save", metavar="SLUG", default=None, help="Checkpoint to redis under this slug ($REDIS_URL)")
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv(override=False)
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    dice = DiceRoller.seeded(args.seed) if args.seed is not None else DiceRoller()
    options = GameOptions(
        difficulty=args.difficulty,
        starting_tokens=args.tokens,
        initial_damage=args.initial_damage,
        final_damage_roll=args.final_damage,
    )

    r = create_redis() if args.save else None
    narrator = StreamNarrator(r=r, stream=NarrationStream(slug=args.save)) if r is not None else None

    session = SessionState()
    events = asyncio.run(
        play_session(
            session=session,
            player=args.player,
            dice=dice,
            options=options,
            narrator=narrator,
            r=r,
            slug=args.save or "autoplay",
        )
    )

    outcome = "won" if session.win else "lost"
    print(f"{session.player.name if session.player else args.player} {outcome} after {session.round} rounds: {session.status}")
    print(f"stability={session.stability} tokens={session.tokens} cards drawn={sum(1 for e in events if e.type == 'CARD_DRAWN')}")
    return 0 if session.win else 1


if __name__ == "__main__":
    raise SystemExit(main())
