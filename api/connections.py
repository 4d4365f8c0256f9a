"""Websocket connections per room; the production Broadcaster."""

import logging
from typing import Optional

from fastapi import WebSocket

from game.room import Broadcaster

logger = logging.getLogger(__name__)


class ConnectionManager(Broadcaster):
    """
    Tracks open sockets per room, keyed by connection id. Sockets that fail
    to send are dropped; the endpoint's own disconnect path tells the room.
    """

    def __init__(self) -> None:
        # {room_id: {connection_id: WebSocket}}
        self._rooms: dict[str, dict[str, WebSocket]] = {}

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def connect(self, room_id: str, connection_id: str, ws: WebSocket) -> None:
        self._rooms.setdefault(room_id, {})[connection_id] = ws
        logger.debug("[%s] %s connected (%d total)", room_id, connection_id, self.count(room_id))

    def disconnect(self, room_id: str, connection_id: str) -> None:
        conns = self._rooms.get(room_id, {})
        conns.pop(connection_id, None)
        if not conns:
            self._rooms.pop(room_id, None)

    def count(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, {}))

    def is_connected(self, room_id: str, connection_id: str) -> bool:
        return connection_id in self._rooms.get(room_id, {})

    # ── Sending ───────────────────────────────────────────────────────────────

    async def send_to(self, room_id: str, connection_id: str, message: dict) -> None:
        """Send a private message to one connection."""
        ws = self._rooms.get(room_id, {}).get(connection_id)
        if ws is None:
            return
        try:
            await ws.send_json(message)
        except Exception as exc:
            logger.warning("[%s] send_to %s failed: %s", room_id, connection_id, exc)
            self.disconnect(room_id, connection_id)

    async def broadcast(self, room_id: str, message: dict, exclude: Optional[str] = None) -> None:
        """Send a message to every connection in the room."""
        for cid, ws in list(self._rooms.get(room_id, {}).items()):
            if cid == exclude:
                continue
            try:
                await ws.send_json(message)
            except Exception as exc:
                logger.warning("[%s] broadcast to %s failed: %s", room_id, cid, exc)
                self.disconnect(room_id, cid)
