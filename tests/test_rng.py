from __future__ import annotations

import pytest

from wretched.models import SessionState
from wretched.rng import DiceRoller, ScriptedDice, face_source


def test_seeded_rolls_are_reproducible_and_in_range() -> None:
    a = DiceRoller.seeded(42)
    b = DiceRoller.seeded(42)

    rolls = [a.roll_die(20) for _ in range(500)]
    assert rolls == [b.roll_die(20) for _ in range(500)]
    assert all(1 <= x <= 20 for x in rolls)
    # 500 rolls of a fair d20 cover every face.
    assert set(rolls) == set(range(1, 21))


def test_face_source_drives_exact_faces() -> None:
    dice = DiceRoller(face_source([20, 1, 7]))
    assert [dice.roll_die(), dice.roll_die(), dice.roll_die()] == [20, 1, 7]


def test_advantage_and_disadvantage_keep_the_extreme() -> None:
    assert DiceRoller(face_source([4, 17])).roll_advantage() == 17
    assert DiceRoller(face_source([4, 17])).roll_disadvantage() == 4
    # Equal pairs are not rerolled.
    assert DiceRoller(face_source([9, 9])).roll_advantage() == 9


def test_roll_die_rejects_sideless_die() -> None:
    with pytest.raises(ValueError):
        DiceRoller.seeded(1).roll_die(0)


def test_shuffle_is_an_in_place_permutation() -> None:
    items = list(range(52))
    out = DiceRoller.seeded(3).shuffle(items)

    assert out is items
    assert sorted(items) == list(range(52))
    assert items != list(range(52))


def test_roll_with_modifiers_consumes_lucid_before_surreal() -> None:
    session = SessionState(is_lucid=True, is_surreal=True)
    dice = DiceRoller(face_source([3, 15, 12, 5, 8]))

    first = dice.roll_with_modifiers(session)
    assert (first.roll, first.was_lucid, first.was_surreal) == (15, True, False)
    assert session.is_lucid is False
    assert session.is_surreal is True

    second = dice.roll_with_modifiers(session)
    assert (second.roll, second.was_lucid, second.was_surreal) == (5, False, True)
    assert session.is_surreal is False

    third = dice.roll_with_modifiers(session)
    assert (third.roll, third.was_lucid, third.was_surreal) == (8, False, False)


def test_scripted_dice_pops_faces_and_fails_loudly() -> None:
    dice = ScriptedDice([6, 2])
    assert dice.roll_die(6) == 6
    assert dice.remaining == 1

    with pytest.raises(ValueError):
        dice.roll_die(1)

    dice.push(1)
    assert dice.roll_die(6) == 1
    with pytest.raises(RuntimeError):
        dice.roll_die()
