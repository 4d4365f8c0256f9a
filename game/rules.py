"""Game rules and constants for Saboteur Night."""

import logging
import os
from dataclasses import dataclass, fields
from enum import Enum

logger = logging.getLogger(__name__)


class Faction(str, Enum):
    """Secret side a participant plays for."""

    SABOTEUR = "saboteur"
    ORDINARY = "ordinary"


class Lifecycle(str, Enum):
    """Room lifecycle state."""

    WAITING = "waiting"
    ROLE_REVEAL = "role_reveal"
    ACTIVE = "active"
    CONCLUDED = "concluded"


class Phase(str, Enum):
    """Day or night."""

    DAY = "day"
    NIGHT = "night"


class SubPhase(str, Enum):
    """Step within the day phase."""

    DISCUSSION = "discussion"
    ACCUSATION = "accusation"
    DEFENSE = "defense"
    VERDICT = "verdict"
    RESULT = "result"


class Verdict(str, Enum):
    """Execution vote value."""

    YES = "yes"
    NO = "no"


MIN_PLAYERS = 2
MAX_PLAYERS = 9

# Chat payload limit
MAX_CHAT_LENGTH = 500

# Shortest phase or delay, in timer ticks
MIN_STEP_SECONDS = 1


def saboteur_count(num_players: int) -> int:
    """Saboteurs for a room of num_players: 1 up to 5, 2 up to 8, otherwise 3."""
    if num_players <= 5:
        return 1
    if num_players <= 8:
        return 2
    return 3


# Env var names for timing overrides
ENV_DISCUSSION_SECONDS = "PHASE_DISCUSSION_SECONDS"
ENV_ACCUSATION_SECONDS = "PHASE_ACCUSATION_SECONDS"
ENV_DEFENSE_SECONDS = "PHASE_DEFENSE_SECONDS"
ENV_VERDICT_SECONDS = "PHASE_VERDICT_SECONDS"
ENV_RESULT_SECONDS = "PHASE_RESULT_SECONDS"
ENV_NIGHT_SECONDS = "PHASE_NIGHT_SECONDS"
ENV_ROLE_REVEAL_DELAY = "ROLE_REVEAL_DELAY_SECONDS"
ENV_ANNOUNCEMENT_DELAY = "ANNOUNCEMENT_DELAY_SECONDS"
ENV_NIGHT_RESULT_DELAY = "NIGHT_RESULT_DELAY_SECONDS"
ENV_TICK_INTERVAL = "TIMER_TICK_INTERVAL"

_ENV_BY_FIELD = {
    "discussion": ENV_DISCUSSION_SECONDS,
    "accusation": ENV_ACCUSATION_SECONDS,
    "defense": ENV_DEFENSE_SECONDS,
    "verdict": ENV_VERDICT_SECONDS,
    "result": ENV_RESULT_SECONDS,
    "night": ENV_NIGHT_SECONDS,
    "role_reveal_delay": ENV_ROLE_REVEAL_DELAY,
    "announcement_delay": ENV_ANNOUNCEMENT_DELAY,
    "night_result_delay": ENV_NIGHT_RESULT_DELAY,
    "tick_interval": ENV_TICK_INTERVAL,
}


@dataclass(frozen=True)
class GameTimings:
    """Phase durations and fixed delays, in seconds."""

    discussion: int = 120
    accusation: int = 20
    defense: int = 15
    verdict: int = 12
    result: int = 10
    night: int = 30
    role_reveal_delay: int = 5
    announcement_delay: int = 4
    night_result_delay: int = 5
    tick_interval: float = 1.0

    def __post_init__(self) -> None:
        # Every step lasts at least one tick; a zero-length step would chain
        # the next transition inline
        for f in fields(self):
            if f.name == "tick_interval":
                continue
            value = getattr(self, f.name)
            if value < MIN_STEP_SECONDS:
                logger.warning("Clamping %s=%s to %d", f.name, value, MIN_STEP_SECONDS)
                object.__setattr__(self, f.name, MIN_STEP_SECONDS)
        if self.tick_interval < 0:
            object.__setattr__(self, "tick_interval", 0.0)

    @classmethod
    def from_env(cls) -> "GameTimings":
        """Build timings from env vars; unset or invalid values keep the default, short ones are clamped."""
        values = {}
        for f in fields(cls):
            raw = os.environ.get(_ENV_BY_FIELD[f.name])
            if raw is None or not raw.strip():
                continue
            try:
                value = float(raw) if f.type in (float, "float") else int(raw)
            except ValueError:
                logger.warning("Ignoring invalid %s=%r", _ENV_BY_FIELD[f.name], raw)
                continue
            values[f.name] = value
        return cls(**values)


@dataclass(frozen=True)
class BotDelays:
    """Timer ticks into a step before simulated participants act."""

    discussion: int = 2
    accusation: int = 1
    defense: int = 2
    verdict: int = 1
    night: int = 3

    def for_step(self, sub_phase: SubPhase | None) -> int | None:
        """Delay for the step, or None when bots do nothing in it."""
        if sub_phase is None:
            return self.night
        return getattr(self, sub_phase.value, None)
