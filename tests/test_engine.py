"""Unit tests for the game engine."""

import random

import pytest
from game.engine import (
    apply_kill,
    assign_factions,
    check_player_count,
    clear_all_votes,
    evaluate_winner,
    get_winner,
)
from game.errors import PlayerCountError
from game.roster import Roster
from game.rules import Faction, Verdict, saboteur_count


def _make_roster(n: int) -> Roster:
    roster = Roster()
    for i in range(n):
        roster.join(f"P{i}", f"c{i}")
    return roster


@pytest.mark.parametrize(
    "n, expected",
    [(2, 1), (3, 1), (4, 1), (5, 1), (6, 2), (7, 2), (8, 2), (9, 3)],
)
def test_assign_factions_saboteur_count(n, expected):
    roster = _make_roster(n)
    saboteurs = assign_factions(roster.all(), random.Random(n))
    assert len(saboteurs) == expected == saboteur_count(n)
    assert len(roster.living_of(Faction.SABOTEUR)) == expected
    assert all(p.faction is not None for p in roster.all())


def test_assign_factions_resets_alive_and_votes():
    roster = _make_roster(4)
    p0 = roster.get("P0")
    p0.is_alive = False
    p0.accusation_vote = "P1"
    p0.verdict_vote = Verdict.YES
    assign_factions(roster.all(), random.Random(1))
    assert p0.is_alive
    assert p0.accusation_vote is None
    assert p0.verdict_vote is None


def test_assign_factions_deterministic_with_seed():
    a = [p.display_name for p in assign_factions(_make_roster(9).all(), random.Random(3))]
    b = [p.display_name for p in assign_factions(_make_roster(9).all(), random.Random(3))]
    assert a == b


@pytest.mark.parametrize("n", [0, 1, 10])
def test_player_count_bounds(n):
    with pytest.raises(PlayerCountError):
        check_player_count(n)


def test_assign_factions_out_of_bounds_leaves_state():
    roster = _make_roster(1)
    with pytest.raises(PlayerCountError):
        assign_factions(roster.all(), random.Random(0))
    assert roster.get("P0").faction is None


def test_evaluate_winner():
    assert evaluate_winner(1, 1) == Faction.SABOTEUR
    assert evaluate_winner(0, 3) == Faction.ORDINARY
    assert evaluate_winner(1, 3) is None
    assert evaluate_winner(2, 1) == Faction.SABOTEUR
    # Saboteur parity is checked first
    assert evaluate_winner(0, 0) == Faction.SABOTEUR


def test_apply_kill_and_get_winner():
    roster = _make_roster(3)
    roster.get("P0").faction = Faction.SABOTEUR
    roster.get("P1").faction = Faction.ORDINARY
    roster.get("P2").faction = Faction.ORDINARY
    assert get_winner(roster) is None

    killed = apply_kill(roster, "P1")
    assert killed is roster.get("P1")
    assert not killed.is_alive
    assert get_winner(roster) == Faction.SABOTEUR


def test_apply_kill_dead_or_missing():
    roster = _make_roster(2)
    apply_kill(roster, "P0")
    assert apply_kill(roster, "P0") is None
    assert apply_kill(roster, "nobody") is None


def test_clear_all_votes():
    roster = _make_roster(2)
    p = roster.get("P0")
    p.accusation_vote = "P1"
    p.night_target_vote = "P1"
    clear_all_votes(roster)
    assert p.accusation_vote is None and p.night_target_vote is None
