from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, Request

from ..dispatcher import SessionDispatcher
from ..exceptions import InvalidRoomId
from ..registry import RoomRegistry, normalize_code
from ..schemas import LobbySummary, NewRoomResponse, RoomState

router = APIRouter(prefix="/api", tags=["rooms"])


@router.post("/new", response_model=NewRoomResponse)
async def create_room(request: Request):
    dispatcher: SessionDispatcher = request.app.state.dispatcher
    result = await dispatcher.create_room()
    room_id = result.model_extra["roomId"]
    return NewRoomResponse(id=room_id, url=f"/?room={room_id}")


# ---------------------------------------------------------------------------
# Lobby listing
# ---------------------------------------------------------------------------


@router.get("/rooms", response_model=List[LobbySummary])
async def list_rooms(request: Request):
    return request.app.state.lobby.summaries()


@router.get("/rooms/{room_id}", response_model=RoomState)
async def get_room(room_id: str, request: Request):
    registry: RoomRegistry = request.app.state.registry
    try:
        code = normalize_code(room_id)
    except InvalidRoomId as err:
        raise HTTPException(status_code=400, detail=err.message)
    room = registry.get(code)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room.snapshot()
