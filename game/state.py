"""Game state types for Saboteur Night."""

from dataclasses import dataclass, field
from typing import Optional

from game.rules import Faction, Lifecycle, Phase, SubPhase, Verdict


@dataclass
class Participant:
    """A roster entry. display_name is the identity; connection_id is replaceable."""

    display_name: str
    connection_id: Optional[str] = None
    is_host: bool = False
    is_simulated: bool = False
    faction: Optional[Faction] = None
    is_alive: bool = True
    accusation_vote: Optional[str] = None
    verdict_vote: Optional[Verdict] = None
    night_target_vote: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.connection_id is not None

    def clear_votes(self) -> None:
        self.accusation_vote = None
        self.verdict_vote = None
        self.night_target_vote = None

    def to_public(self, reveal_faction: bool = False) -> dict:
        """Roster entry as shown to the room; faction only when reveal_faction."""
        entry = {
            "display_name": self.display_name,
            "is_host": self.is_host,
            "is_alive": self.is_alive,
            "is_simulated": self.is_simulated,
            "connected": self.connected or self.is_simulated,
        }
        if reveal_faction:
            entry["faction"] = self.faction.value if self.faction else None
        return entry


@dataclass
class NightTarget:
    """Saboteur faction's shared night choice; the last write wins."""

    target: Optional[str] = None
    chosen_by: Optional[str] = None

    def set(self, chooser: str, target: Optional[str]) -> None:
        self.target = target
        self.chosen_by = chooser if target is not None else None

    def clear(self) -> None:
        self.target = None
        self.chosen_by = None


@dataclass
class AccusationTally:
    """Result of the accusation vote."""

    nominee: Optional[str]
    counts: dict[str, int]
    tie: bool
    reason: str
    details: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class VerdictTally:
    """Result of the execution vote, before it is applied."""

    yes: int
    no: int
    executed: bool
    ballots: list[tuple[str, Verdict]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.yes + self.no


@dataclass
class VerdictOutcome:
    """Stored outcome of a day's verdict, replayed to reconnecting players."""

    target: str
    executed: bool
    yes: int
    no: int
    faction: Optional[Faction] = None
    ballots: list[tuple[str, Verdict]] = field(default_factory=list)

    def to_public(self) -> dict:
        data = {
            "target": self.target,
            "executed": self.executed,
            "yes": self.yes,
            "no": self.no,
            "votes": [{"display_name": v, "vote": b.value} for v, b in self.ballots],
        }
        if self.executed and self.faction is not None:
            data["faction"] = self.faction.value
        return data


@dataclass
class RoomState:
    """Mutable per-room game state (the roster is held separately)."""

    room_id: str
    lifecycle: Lifecycle = Lifecycle.WAITING
    day: int = 1
    phase: Phase = Phase.DAY
    sub_phase: Optional[SubPhase] = None
    remaining_seconds: int = 0
    accused: Optional[str] = None
    night_target: NightTarget = field(default_factory=NightTarget)
    last_verdict: Optional[VerdictOutcome] = None
    winner: Optional[Faction] = None

    def lifecycle_payload(self) -> dict:
        return {
            "state": self.lifecycle.value,
            "day": self.day,
            "phase": self.phase.value,
            "sub_phase": self.sub_phase.value if self.sub_phase else None,
            "winner": self.winner.value if self.winner else None,
        }
