"""Open websocket connections and the envelope every server push uses."""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Iterator, Optional

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class Connection:
    """One client socket plus the room it is currently associated with."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex
        self.websocket = websocket
        self.room_id: Optional[str] = None

    async def send(self, event: str, data: Any = None) -> bool:
        """Push ``{"type": event, "data": data}``. Returns False if the socket is already gone."""
        try:
            await self.websocket.send_json({"type": event, "data": {} if data is None else data})
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.debug("dropped %s for connection %s: %r", event, self.id, exc)
            return False
        return True

    async def reply(self, ack: Any, data: Dict[str, Any]) -> bool:
        """Answer an ack-style request."""
        try:
            await self.websocket.send_json({"type": "ack", "ack": ack, "data": data})
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.debug("dropped ack %r for connection %s: %r", ack, self.id, exc)
            return False
        return True

    def __repr__(self) -> str:
        return f"Connection({self.id!r}, room={self.room_id!r})"


class ConnectionManager:
    """Every open connection, whether or not it is in a room (the lobby audience)."""

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}

    def add(self, conn: Connection) -> None:
        self._connections[conn.id] = conn

    def remove(self, conn: Connection) -> None:
        self._connections.pop(conn.id, None)

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def __len__(self) -> int:
        return len(self._connections)

    async def broadcast(self, event: str, data: Any = None) -> None:
        await asyncio.gather(*(conn.send(event, data) for conn in self))


__all__ = ["Connection", "ConnectionManager"]
