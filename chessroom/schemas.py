"""Pydantic data schemas for everything that crosses the wire.

Field names are snake_case in Python; the browser client expects the
camelCase spelling, so models are dumped with ``by_alias=True`` through
:func:`dump`.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import SEAT_CAPACITY


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(by_alias=True)


# -----------------------------
# Game state
# -----------------------------

class GameResult(WireModel):
    reason: str
    # "w" | "b" | "draw"
    winner: str


class Clocks(WireModel):
    white: int
    black: int


class SeatOccupancy(WireModel):
    white: bool = False
    black: bool = False


class RoomState(WireModel):
    """Full snapshot of one room, pushed as the ``state`` event."""

    id: str
    fen: str
    turn: str  # "w" | "b"
    status: str  # waiting | playing | ended
    clocks: Clocks
    players: SeatOccupancy
    draw_offered_by: Optional[str] = Field(default=None, alias="drawOfferedBy")
    result: Optional[GameResult] = None
    check: bool = False


class ClockUpdate(WireModel):
    """Lightweight per-tick update; position is unchanged so it is omitted."""

    white: int
    black: int
    turn: str
    status: str
    result: Optional[GameResult] = None


class LegalMove(WireModel):
    to: str
    promotion: bool = False


# -----------------------------
# Lobby
# -----------------------------

class LobbyOccupancy(WireModel):
    joined: int
    capacity: int = SEAT_CAPACITY


class LobbySummary(WireModel):
    id: str
    status: str
    players: LobbyOccupancy
    created_at: int = Field(alias="createdAt")


# -----------------------------
# Session protocol replies
# -----------------------------

class Joined(WireModel):
    room_id: str = Field(alias="roomId")
    side: str  # white | black | spectator


class NewRoomResponse(WireModel):
    id: str
    url: str


class ActionResult(WireModel):
    """Ack-style reply to a client request: success with payload, or failure with a reason."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    ok: bool = True
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def success(cls, **payload: Any) -> "ActionResult":
        return cls(ok=True, **payload)

    @classmethod
    def failure(cls, error: str, code: Optional[str] = None) -> "ActionResult":
        return cls(ok=False, error=error, code=code)

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"ok": self.ok}
        if not self.ok:
            data["error"] = self.error
            if self.code:
                data["code"] = self.code
        data.update(self.model_extra or {})
        return data


__all__ = [
    "dump",
    "GameResult",
    "Clocks",
    "SeatOccupancy",
    "RoomState",
    "ClockUpdate",
    "LegalMove",
    "LobbyOccupancy",
    "LobbySummary",
    "Joined",
    "NewRoomResponse",
    "ActionResult",
]
