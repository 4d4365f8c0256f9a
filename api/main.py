"""FastAPI app: room websocket, room stats and lookup routes."""

import json
import logging
import os
import random
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from api.connections import ConnectionManager
from api.models import (
    AccusationVoteAction,
    AvailableRoomResponse,
    ChatAction,
    FindRoomAction,
    InboundMessage,
    JoinAction,
    NightTargetAction,
    RoomSnapshotResponse,
    RoomStatsResponse,
    VerdictVoteAction,
)
from api.registry import RoomRegistry
from bots.simulator import BotSimulator
from game.errors import ConfigurationError, InvariantViolation, RejectionError
from game.room import Room
from game.rules import GameTimings

ENV_ALLOWED_ORIGINS = "ALLOWED_ORIGINS"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_BOT_SEED = "BOT_SEED"
ENV_PORT = "PORT"

logging.basicConfig(
    level=os.environ.get(ENV_LOG_LEVEL, "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _bot_factory() -> Callable[[], BotSimulator]:
    """Bots share one seeded RNG when BOT_SEED is set, else each gets its own."""
    raw = os.environ.get(ENV_BOT_SEED)
    if not raw:
        return BotSimulator
    try:
        rng = random.Random(int(raw))
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", ENV_BOT_SEED, raw)
        return BotSimulator
    return lambda: BotSimulator(rng=rng)


def _allowed_origins() -> list[str]:
    raw = os.environ.get(ENV_ALLOWED_ORIGINS, "*")
    return [o.strip() for o in raw.split(",") if o.strip()] or ["*"]


manager = ConnectionManager()
registry = RoomRegistry(manager, timings=GameTimings.from_env(), bot_factory=_bot_factory())


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Saboteur Night server starting up")
    yield
    await registry.close_all()
    logger.info("Server shutting down")


app = FastAPI(title="Saboteur Night API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── HTTP ──────────────────────────────────────────────────────────────────────


@app.get("/health", tags=["Health"], summary="Health check")
def health():
    return {"status": "ok", "rooms": len(registry)}


@app.get("/api/room-stats", response_model=RoomStatsResponse, tags=["Rooms"], summary="Room counts by state")
def room_stats():
    return registry.stats()


@app.get("/api/rooms/available", response_model=AvailableRoomResponse, tags=["Rooms"], summary="Find a joinable room")
def available_room(display_name: Optional[str] = None):
    """First waiting room with a free seat; room_id is null when there is none."""
    return {"room_id": registry.find_available_room(display_name)}


@app.get("/api/rooms/{room_id}", response_model=RoomSnapshotResponse, tags=["Rooms"], summary="Get room state")
def get_room(room_id: str):
    """Public room snapshot. Factions stay hidden until the game is over."""
    room = registry.get(room_id)
    if room is None or room.closed:
        raise HTTPException(404, "Room not found")
    return room.snapshot()


# ── Websocket ─────────────────────────────────────────────────────────────────


@dataclass
class Session:
    """One websocket connection and the name it joined as."""

    room_id: str
    connection_id: str
    ws: WebSocket
    display_name: Optional[str] = None

    async def reply(self, event: str, data: Any = None) -> None:
        await self.ws.send_json({"type": event, "data": data})

    def room(self) -> Room:
        if self.display_name is None:
            raise RejectionError("Join the room first")
        room = registry.get(self.room_id)
        if room is None or room.closed:
            raise RejectionError("The room no longer exists")
        return room


Handler = Callable[[Session, dict], Awaitable[None]]


async def _handle_join(session: Session, data: dict) -> None:
    body = JoinAction.model_validate(data)
    if session.display_name is not None and session.display_name != body.display_name:
        raise RejectionError(f"Already joined as {session.display_name}")
    manager.connect(session.room_id, session.connection_id, session.ws)
    try:
        _, participant = await registry.join(
            session.room_id, body.display_name, session.connection_id, body.as_host
        )
    except RejectionError as e:
        if session.display_name is None:
            manager.disconnect(session.room_id, session.connection_id)
        logger.info("[%s] Join as %r rejected: %s", session.room_id, body.display_name, e.reason)
        await session.reply("join_rejected", {"reason": e.reason, "code": e.code})
        return
    session.display_name = participant.display_name
    await session.reply(
        "joined",
        {"room_id": session.room_id, "display_name": participant.display_name, "is_host": participant.is_host},
    )


async def _handle_leave(session: Session, data: dict) -> None:
    name = session.display_name
    if name is None:
        raise RejectionError("Join the room first")
    await registry.leave(session.room_id, name)
    manager.disconnect(session.room_id, session.connection_id)
    session.display_name = None


async def _handle_start_game(session: Session, data: dict) -> None:
    await session.room().start_game(session.display_name)


async def _handle_add_simulated(session: Session, data: dict) -> None:
    await session.room().add_simulated(session.display_name)


async def _handle_remove_simulated(session: Session, data: dict) -> None:
    await session.room().remove_simulated(session.display_name)


async def _handle_accusation_vote(session: Session, data: dict) -> None:
    body = AccusationVoteAction.model_validate(data)
    await session.room().submit_accusation_vote(session.display_name, body.target)


async def _handle_verdict_vote(session: Session, data: dict) -> None:
    body = VerdictVoteAction.model_validate(data)
    await session.room().submit_verdict_vote(session.display_name, body.vote)


async def _handle_night_target(session: Session, data: dict) -> None:
    body = NightTargetAction.model_validate(data)
    await session.room().submit_night_target(session.display_name, body.target)


async def _handle_chat(session: Session, data: dict) -> None:
    body = ChatAction.model_validate(data)
    await session.room().send_chat(
        session.display_name, body.content, body.is_faction_channel, claimed_sender=body.sender
    )


async def _handle_find_room(session: Session, data: dict) -> None:
    body = FindRoomAction.model_validate(data)
    await session.reply("available_room", {"room_id": registry.find_available_room(body.display_name)})


async def _handle_room_stats(session: Session, data: dict) -> None:
    await session.reply("room_stats", registry.stats())


async def _handle_ping(session: Session, data: dict) -> None:
    await session.reply("pong", None)


HANDLERS: dict[str, Handler] = {
    "join": _handle_join,
    "leave": _handle_leave,
    "start_game": _handle_start_game,
    "add_simulated_participant": _handle_add_simulated,
    "remove_simulated_participant": _handle_remove_simulated,
    "submit_accusation_vote": _handle_accusation_vote,
    "submit_verdict_vote": _handle_verdict_vote,
    "submit_night_target": _handle_night_target,
    "send_chat": _handle_chat,
    "find_available_room": _handle_find_room,
    "request_room_stats": _handle_room_stats,
    "ping": _handle_ping,
}


async def _dispatch_message(session: Session, raw: str) -> None:
    """Route one client message; failures are reported to this connection only."""
    try:
        message = InboundMessage.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError):
        await session.reply("error", {"reason": "Malformed message"})
        return

    handler = HANDLERS.get(message.type)
    if handler is None:
        await session.reply("error", {"reason": f"Unknown message type {message.type!r}"})
        return

    try:
        await handler(session, message.data)
    except ValidationError as e:
        logger.info("[%s] Invalid %s payload: %s", session.room_id, message.type, e.error_count())
        await session.reply("error", {"reason": f"Invalid {message.type} payload"})
    except (RejectionError, ConfigurationError) as e:
        logger.info("[%s] %s from %s rejected: %s", session.room_id, message.type, session.display_name, e.reason)
        await session.reply("system_message", {"message": e.reason, "code": e.code})
    except InvariantViolation as e:
        logger.warning("[%s] %s dropped: %s", session.room_id, message.type, e.reason)
        await session.reply("error", {"reason": e.reason})
    except Exception:
        logger.exception("[%s] Failed to handle %s", session.room_id, message.type)
        await session.reply("error", {"reason": "Internal error"})


@app.websocket("/ws/{room_id}")
async def room_socket(ws: WebSocket, room_id: str):
    await ws.accept()
    session = Session(room_id=room_id, connection_id=uuid.uuid4().hex, ws=ws)
    logger.debug("[%s] Socket %s opened", room_id, session.connection_id)
    try:
        while True:
            raw = await ws.receive_text()
            await _dispatch_message(session, raw)
    except WebSocketDisconnect:
        logger.debug("[%s] Socket %s closed", room_id, session.connection_id)
    finally:
        manager.disconnect(room_id, session.connection_id)
        if session.display_name is not None:
            await registry.disconnect(room_id, session.display_name, session.connection_id)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=int(os.environ.get(ENV_PORT, "8000")))
