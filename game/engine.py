"""Game engine: faction assignment, vote resets, kills and win evaluation. No I/O."""

import logging
import random
from typing import Optional

from game.errors import PlayerCountError
from game.rules import MAX_PLAYERS, MIN_PLAYERS, Faction, saboteur_count
from game.roster import Roster
from game.state import Participant

logger = logging.getLogger(__name__)


def check_player_count(num_players: int) -> None:
    """Raise PlayerCountError unless MIN_PLAYERS <= num_players <= MAX_PLAYERS."""
    if num_players < MIN_PLAYERS:
        raise PlayerCountError(f"At least {MIN_PLAYERS} players are needed to start")
    if num_players > MAX_PLAYERS:
        raise PlayerCountError(f"At most {MAX_PLAYERS} players can play")


def assign_factions(participants: list[Participant], rng: random.Random) -> list[Participant]:
    """
    Reset every participant for a new game and hand the saboteur faction to a
    shuffled prefix of them. Returns the saboteurs in assignment order.
    """
    check_player_count(len(participants))
    shuffled = list(participants)
    rng.shuffle(shuffled)
    n_saboteurs = saboteur_count(len(shuffled))
    for i, p in enumerate(shuffled):
        p.faction = Faction.SABOTEUR if i < n_saboteurs else Faction.ORDINARY
        p.is_alive = True
        p.clear_votes()
    return shuffled[:n_saboteurs]


def clear_accusation_votes(roster: Roster) -> None:
    for p in roster.all():
        p.accusation_vote = None


def clear_verdict_votes(roster: Roster) -> None:
    for p in roster.all():
        p.verdict_vote = None


def clear_night_votes(roster: Roster) -> None:
    for p in roster.all():
        p.night_target_vote = None


def clear_all_votes(roster: Roster) -> None:
    for p in roster.all():
        p.clear_votes()


def apply_kill(roster: Roster, display_name: str) -> Optional[Participant]:
    """Mark a living participant dead. Returns them, or None if absent or already dead."""
    p = roster.get(display_name)
    if p is None or not p.is_alive:
        logger.info("Kill skipped: %s is not a living participant", display_name)
        return None
    p.is_alive = False
    return p


def evaluate_winner(living_saboteurs: int, living_ordinary: int) -> Optional[Faction]:
    """Saboteurs win at parity or better; ordinary wins when no saboteur lives."""
    if living_saboteurs >= living_ordinary:
        return Faction.SABOTEUR
    if living_saboteurs == 0:
        return Faction.ORDINARY
    return None


def get_winner(roster: Roster) -> Optional[Faction]:
    """evaluate_winner over the roster's living members."""
    saboteurs = len(roster.living_of(Faction.SABOTEUR))
    ordinary = len(roster.living_of(Faction.ORDINARY))
    winner = evaluate_winner(saboteurs, ordinary)
    logger.debug("Win check: %d saboteur vs %d ordinary -> %s", saboteurs, ordinary, winner)
    return winner
