"""Shared fixtures and helpers for Saboteur Night tests."""

import random
from typing import Optional

import pytest
import pytest_asyncio

from bots.simulator import BotSimulator
from game.room import Broadcaster, Room
from game.rules import BotDelays, Faction, GameTimings, Lifecycle

# Long enough that no real timer fires during a test; transitions use advance()
SLOW_TIMINGS = GameTimings(
    discussion=100,
    accusation=100,
    defense=100,
    verdict=100,
    result=100,
    night=100,
    role_reveal_delay=100,
    announcement_delay=100,
    night_result_delay=100,
    tick_interval=3600,
)

IMMEDIATE_BOTS = BotDelays(discussion=0, accusation=0, defense=0, verdict=0, night=0)


class RecordingBroadcaster(Broadcaster):
    """Captures outbound messages instead of sending them."""

    def __init__(self) -> None:
        self.public: list[dict] = []
        self.private: list[tuple[str, dict]] = []

    async def broadcast(self, room_id: str, message: dict) -> None:
        self.public.append(message)

    async def send_to(self, room_id: str, connection_id: str, message: dict) -> None:
        self.private.append((connection_id, message))

    def of_type(self, event: str) -> list:
        return [m["data"] for m in self.public if m["type"] == event]

    def last(self, event: str) -> Optional[dict]:
        found = self.of_type(event)
        return found[-1] if found else None

    def private_for(self, connection_id: str, event: Optional[str] = None) -> list:
        return [
            m["data"]
            for cid, m in self.private
            if cid == connection_id and (event is None or m["type"] == event)
        ]

    def clear(self) -> None:
        self.public.clear()
        self.private.clear()


def conn(name: str) -> str:
    """Connection id used for a named test player."""
    return f"conn-{name}"


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest_asyncio.fixture
async def room(broadcaster):
    """Empty room with slow timers and a seeded RNG; closed after the test."""
    r = Room(
        "r1",
        broadcaster,
        timings=SLOW_TIMINGS,
        rng=random.Random(7),
        bots=BotSimulator(rng=random.Random(11)),
        bot_delays=IMMEDIATE_BOTS,
    )
    yield r
    await r.close()


async def join_all(room: Room, names: list[str]) -> None:
    """Join names in order; the first one is the host."""
    for i, name in enumerate(names):
        await room.join(name, conn(name), as_host=(i == 0))


def set_factions(room: Room, saboteurs: list[str]) -> None:
    """Override the random assignment so tests know who is who."""
    for p in room.roster.all():
        p.faction = Faction.SABOTEUR if p.display_name in saboteurs else Faction.ORDINARY


async def start_active(room: Room, names: list[str], saboteurs: list[str]) -> None:
    """Join, start, fix factions, and skip the role reveal: day 1 discussion."""
    await join_all(room, names)
    await room.start_game(names[0])
    set_factions(room, saboteurs)
    await room.advance()
    assert room.state.lifecycle == Lifecycle.ACTIVE
