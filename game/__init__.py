"""Game engine for Saboteur Night."""

from game.engine import (
    assign_factions,
    apply_kill,
    evaluate_winner,
    get_winner,
)
from game.errors import (
    GameError,
    RejectionError,
    ConfigurationError,
    InvariantViolation,
    RoomClosedError,
)
from game.rules import Faction, Lifecycle, Phase, SubPhase, Verdict, GameTimings, BotDelays
from game.state import Participant, RoomState, NightTarget
from game.roster import Roster
from game.tally import tally_accusation, tally_verdict, resolve_night_target
from game.timer import PhaseTimer

__all__ = [
    "assign_factions",
    "apply_kill",
    "evaluate_winner",
    "get_winner",
    "GameError",
    "RejectionError",
    "ConfigurationError",
    "InvariantViolation",
    "RoomClosedError",
    "Faction",
    "Lifecycle",
    "Phase",
    "SubPhase",
    "Verdict",
    "GameTimings",
    "BotDelays",
    "Participant",
    "RoomState",
    "NightTarget",
    "Roster",
    "tally_accusation",
    "tally_verdict",
    "resolve_night_target",
    "PhaseTimer",
]
