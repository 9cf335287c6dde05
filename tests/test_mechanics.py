from __future__ import annotations

import logging

import pytest

from wretched.mechanics import (
    cards_to_draw,
    failure_check_loss,
    final_damage,
    initial_damage,
    rank_value,
    salvation_result,
    salvation_threshold,
    stability_loss,
    triggers_stability_check,
)
from wretched.models import Card, Suit


@pytest.mark.parametrize(
    ("roll", "expected"),
    [(1, 1), (2, 2), (5, 2), (6, 3), (10, 3), (11, 4), (15, 4), (16, 5), (19, 5), (20, 6)],
)
def test_cards_to_draw_table(roll: int, expected: int) -> None:
    assert cards_to_draw(roll) == expected


def test_cards_to_draw_expected_value_is_three_and_a_half() -> None:
    values = [cards_to_draw(roll) for roll in range(1, 21)]
    assert all(1 <= v <= 6 for v in values)
    assert sum(values) / 20 == 3.5


def test_stability_loss_table() -> None:
    top = stability_loss(20)
    assert (top.loss, top.gained_lucid, top.optional_gain) == (0, True, 1)
    assert stability_loss(11).loss == 0
    assert stability_loss(19).loss == 0
    assert stability_loss(6).loss == 1
    assert stability_loss(10).loss == 1
    assert stability_loss(2).loss == 2
    bottom = stability_loss(1)
    assert (bottom.loss, bottom.gained_surreal) == (3, True)


def test_failure_check_loss_scales_with_rank() -> None:
    assert failure_check_loss(5, "7").loss == 7
    assert failure_check_loss(10, "3").loss == 3
    assert failure_check_loss(11, "9").loss == 0

    natural_20 = failure_check_loss(20, "9")
    assert (natural_20.loss, natural_20.optional_gain, natural_20.gained_lucid) == (0, 1, True)

    natural_1 = failure_check_loss(1, "5")
    assert (natural_1.loss, natural_1.gained_surreal) == (5, True)


def test_salvation_threshold_improves_with_aces() -> None:
    thresholds = [salvation_threshold(aces) for aces in range(5)]
    assert thresholds == [20, 17, 14, 11, 0]
    assert all(a >= b for a, b in zip(thresholds, thresholds[1:]))


@pytest.mark.parametrize(
    ("roll", "threshold", "change", "lucid", "surreal"),
    [
        (15, 11, -1, False, False),
        (11, 11, -1, False, False),
        (10, 11, 0, False, False),
        (6, 17, 0, False, False),
        (5, 11, 1, False, False),
        (2, 14, 1, False, False),
        (20, 11, -2, True, False),
        (1, 11, 2, False, True),
        (1, 0, -1, False, False),
    ],
)
def test_salvation_result_bands(roll: int, threshold: int, change: int, lucid: bool, surreal: bool) -> None:
    result = salvation_result(roll, threshold)
    assert (result.token_change, result.gained_lucid, result.gained_surreal) == (change, lucid, surreal)


def test_bad_rolls_fall_back_and_log(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="wretched.mechanics"):
        assert cards_to_draw(0) == 3
        assert stability_loss(25).loss == 0
        assert failure_check_loss(21, "K").loss == 0
        assert salvation_threshold(7) == 20
        assert final_damage(9, 0) == 0
        assert initial_damage(0) == 0

    assert len([rec for rec in caplog.records if rec.levelno == logging.ERROR]) == 6


def test_zero_aces_is_not_an_error(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="wretched.mechanics"):
        assert salvation_threshold(0) == 20
    assert caplog.records == []


def test_final_damage_absorbed_by_aces() -> None:
    assert final_damage(5, 2) == 3
    assert final_damage(2, 4) == 0
    assert initial_damage(6) == 6


@pytest.mark.parametrize("rank", ["3", "5", "7", "9"])
def test_odd_numerals_trigger_a_check(rank: str) -> None:
    assert triggers_stability_check(Card(rank=rank, suit=Suit.clubs))


@pytest.mark.parametrize("rank", ["A", "2", "10", "J", "Q", "K"])
def test_aces_evens_and_faces_are_safe(rank: str) -> None:
    assert not triggers_stability_check(Card(rank=rank, suit=Suit.hearts))


def test_rank_value() -> None:
    assert [rank_value(r) for r in ("A", "7", "10", "J", "Q", "K")] == [1, 7, 10, 11, 12, 13]
