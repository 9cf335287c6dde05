from __future__ import annotations

import pytest

from wretched.main import build_parser, main


def test_cli_plays_a_seeded_game(capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--player", "Ada", "--seed", "3", "--log-level", "WARNING"])

    out = capsys.readouterr().out
    assert code in (0, 1)
    assert out.startswith("Ada ")
    assert ("won" in out) == (code == 0)


def test_cli_rejects_unknown_difficulty() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--player", "Ada", "--difficulty", "9"])
