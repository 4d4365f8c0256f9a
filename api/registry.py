"""In-memory room registry. Rooms live only as long as they have participants."""

import logging
import random
from datetime import datetime, timezone
from typing import Callable, Optional

from bots.simulator import BotSimulator
from game.errors import RoomClosedError
from game.room import Broadcaster, Room
from game.rules import MAX_PLAYERS, BotDelays, GameTimings, Lifecycle
from game.state import Participant

logger = logging.getLogger(__name__)

# Attempts before giving up on a room that keeps closing under a join
MAX_JOIN_ATTEMPTS = 3


class RoomRegistry:
    """room_id -> Room. Lookup-or-create has no await in between, so it is atomic on the loop."""

    def __init__(
        self,
        broadcaster: Broadcaster,
        timings: Optional[GameTimings] = None,
        rng_factory: Optional[Callable[[], random.Random]] = None,
        bot_factory: Optional[Callable[[], BotSimulator]] = None,
        bot_delays: Optional[BotDelays] = None,
    ) -> None:
        self.broadcaster = broadcaster
        self.timings = timings or GameTimings()
        self.rng_factory = rng_factory or random.Random
        self.bot_factory = bot_factory or BotSimulator
        self.bot_delays = bot_delays or BotDelays()
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def get_or_create(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None or room.closed:
            room = Room(
                room_id,
                self.broadcaster,
                timings=self.timings,
                rng=self.rng_factory(),
                bots=self.bot_factory(),
                bot_delays=self.bot_delays,
            )
            self._rooms[room_id] = room
            logger.info("Created room %s (%d open)", room_id, len(self._rooms))
        return room

    async def join(
        self, room_id: str, display_name: str, connection_id: Optional[str] = None, as_host: bool = False
    ) -> tuple[Room, Participant]:
        """Join (or reconnect to) a room, creating it on first use."""
        for attempt in range(MAX_JOIN_ATTEMPTS):
            room = self.get_or_create(room_id)
            try:
                participant = await room.join(display_name, connection_id, as_host)
                return room, participant
            except RoomClosedError:
                # Emptied and closed while this join waited on its lock
                logger.info("Room %s closed during join (attempt %d); retrying", room_id, attempt + 1)
                self._drop(room_id, room)
        raise RoomClosedError(f"Room {room_id} could not be joined")

    async def leave(self, room_id: str, display_name: str) -> bool:
        """Remove a participant. Returns True if the room was destroyed."""
        room = self._rooms.get(room_id)
        if room is None:
            return False
        closed = await room.leave(display_name)
        if closed:
            self._drop(room_id, room)
        return closed

    async def disconnect(self, room_id: str, display_name: str, connection_id: str) -> None:
        room = self._rooms.get(room_id)
        if room is None or room.closed:
            return
        try:
            await room.disconnect(display_name, connection_id)
        except RoomClosedError:
            self._drop(room_id, room)

    async def close_all(self) -> None:
        for room_id, room in list(self._rooms.items()):
            await room.close()
            self._drop(room_id, room)

    def find_available_room(self, display_name: Optional[str] = None) -> Optional[str]:
        """
        First waiting room with a free seat, at least one connected human, and
        nobody called display_name.
        """
        for room_id, room in self._rooms.items():
            if room.closed or room.lifecycle != Lifecycle.WAITING:
                continue
            if len(room) >= MAX_PLAYERS or not room.has_connected_human():
                continue
            if display_name and display_name in room.roster:
                continue
            return room_id
        return None

    def stats(self) -> dict:
        counts = {"waiting": 0, "playing": 0, "concluded": 0}
        for room in self._rooms.values():
            if room.closed:
                continue
            if room.lifecycle == Lifecycle.WAITING:
                counts["waiting"] += 1
            elif room.lifecycle == Lifecycle.CONCLUDED:
                counts["concluded"] += 1
            else:
                counts["playing"] += 1
        counts["total"] = counts["waiting"] + counts["playing"] + counts["concluded"]
        counts["timestamp"] = datetime.now(timezone.utc).isoformat()
        return counts

    def _drop(self, room_id: str, room: Room) -> None:
        # A newer room may already sit under this id
        if self._rooms.get(room_id) is room:
            del self._rooms[room_id]
            logger.info("Destroyed room %s (%d open)", room_id, len(self._rooms))
