"""Utility helpers for maintaining and broadcasting the live lobby list."""
from __future__ import annotations

from typing import Any, Dict, List

from .connections import Connection, ConnectionManager
from .registry import RoomRegistry
from .schemas import LobbyOccupancy, LobbySummary, dump


class LobbyBroadcaster:
    """Pushes the cross-room summary to *every* connected client, not just room subscribers."""

    def __init__(self, registry: RoomRegistry, connections: ConnectionManager):
        self.registry = registry
        self.connections = connections

    def summaries(self) -> List[LobbySummary]:
        return [
            LobbySummary(
                id=room.room_id,
                status=room.status.value,
                players=LobbyOccupancy(joined=room.occupancy()),
                created_at=room.created_at,
            )
            for room in self.registry.ordered()
        ]

    def payload(self) -> List[Dict[str, Any]]:
        return [dump(s) for s in self.summaries()]

    async def broadcast(self) -> None:
        if not len(self.connections):
            return
        await self.connections.broadcast("lobby_state", self.payload())

    async def send_to(self, conn: Connection) -> None:
        await conn.send("lobby_state", self.payload())


__all__ = ["LobbyBroadcaster"]
