"""Pydantic models for websocket actions and HTTP responses."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from game.rules import MAX_CHAT_LENGTH, Verdict

# Validation constants (no magic numbers in validation)
MAX_DISPLAY_NAME_LENGTH = 20


class InboundMessage(BaseModel):
    """Envelope for every client message: {"type": ..., "data": {...}}."""

    type: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class JoinAction(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=MAX_DISPLAY_NAME_LENGTH)
    as_host: bool = False

    @field_validator("display_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display_name must not be blank")
        return v


class AccusationVoteAction(BaseModel):
    """target=None retracts the vote."""

    target: Optional[str] = None


class VerdictVoteAction(BaseModel):
    """vote=None retracts the vote."""

    vote: Optional[Verdict] = None


class NightTargetAction(BaseModel):
    target: Optional[str] = None


class ChatAction(BaseModel):
    sender: Optional[str] = Field(default=None, description="Ignored; the joined name is used")
    content: str = Field(..., min_length=1)
    is_faction_channel: bool = False

    @field_validator("content")
    @classmethod
    def limit_content(cls, v: str) -> str:
        return v[:MAX_CHAT_LENGTH]


class FindRoomAction(BaseModel):
    display_name: Optional[str] = None


class ParticipantPublic(BaseModel):
    """Roster entry as shown to clients; faction only once the game is over."""

    display_name: str
    is_host: bool
    is_alive: bool
    is_simulated: bool
    connected: bool
    faction: Optional[str] = None


class RoomSnapshotResponse(BaseModel):
    room_id: str
    state: str
    day: int
    phase: str
    sub_phase: Optional[str] = None
    winner: Optional[str] = None
    remaining_seconds: int
    accused: Optional[str] = None
    participants: list[ParticipantPublic]


class RoomStatsResponse(BaseModel):
    waiting: int
    playing: int
    concluded: int
    total: int
    timestamp: str


class AvailableRoomResponse(BaseModel):
    room_id: Optional[str] = None
