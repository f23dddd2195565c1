"""Session protocol: maps client actions onto room transitions.

Every handler is a guarded transition against one room. Guards raise a
:class:`~chessroom.exceptions.RoomError`, which :meth:`SessionDispatcher.handle_message`
reports to the requester alone; nothing is broadcast for a refused action.
Successful mutations broadcast the room's full snapshot to all of its
subscribers, and the lobby whenever membership or status changed.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from .clock import NowFn
from .connections import Connection, ConnectionManager
from .constants import SPECTATOR, RoomStatus
from .exceptions import NotYourTurn, RoomError
from .lobby import LobbyBroadcaster
from .registry import RoomRegistry, normalize_code
from .room import Room
from .schemas import ActionResult, Joined, dump

logger = logging.getLogger(__name__)


class SessionDispatcher:
    def __init__(
        self,
        registry: RoomRegistry,
        connections: ConnectionManager,
        lobby: LobbyBroadcaster,
        now_ms: Optional[NowFn] = None,
    ):
        self.registry = registry
        self.connections = connections
        self.lobby = lobby
        self.now_ms = now_ms or registry.now_ms

    # ---------------------------------------------------------------------
    # Connection lifecycle
    # ---------------------------------------------------------------------

    async def connect(self, conn: Connection) -> None:
        self.connections.add(conn)
        await self.lobby.send_to(conn)

    async def disconnect(self, conn: Connection) -> None:
        """A dropped socket is an ordinary leave."""
        await self.leave(conn, notify=False)
        self.connections.remove(conn)

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------

    def _target(self, conn: Connection, room_id: Any) -> Room:
        """Room named by *room_id*, falling back to the connection's current room."""
        code = normalize_code(room_id) if room_id else conn.room_id
        return self.registry.require(code)

    async def _broadcast_state(self, room: Room) -> None:
        await room.broadcast("state", dump(room.snapshot()))

    # ---------------------------------------------------------------------
    # Membership
    # ---------------------------------------------------------------------

    async def create_room(self, conn: Optional[Connection] = None) -> ActionResult:
        room = self.registry.create()
        await self.lobby.broadcast()
        return ActionResult.success(roomId=room.room_id)

    async def join(self, conn: Connection, room_id: Any) -> ActionResult:
        code = normalize_code(room_id)
        if conn.room_id and conn.room_id != code:
            await self.leave(conn, notify=False)

        room, _ = self.registry.get_or_create(code)
        async with room.lock:
            room.subscribe(conn)
            conn.room_id = code
            side = room.take_seat(conn.id)
            if room.ready_to_start():
                room.start_game(self.now_ms())
            side_name = side.value if side else SPECTATOR
            await conn.send("joined", dump(Joined(room_id=code, side=side_name)))
            await self._broadcast_state(room)

        logger.info("connection %s joined room %s as %s", conn.id, code, side_name)
        await self.lobby.broadcast()
        return ActionResult.success(roomId=code, side=side_name)

    async def leave(self, conn: Connection, notify: bool = True) -> ActionResult:
        code = conn.room_id
        if not code:
            return ActionResult.success()
        conn.room_id = None
        room = self.registry.get(code)
        if room is not None:
            async with room.lock:
                room.unsubscribe(conn.id)
                side = room.vacate(conn.id)
                await self._broadcast_state(room)
            logger.info("connection %s left room %s (seat: %s)", conn.id, code, side)
        if notify:
            await conn.send("left_room")
        await self.lobby.broadcast()
        return ActionResult.success()

    # ---------------------------------------------------------------------
    # Reads
    # ---------------------------------------------------------------------

    async def get_state(self, conn: Connection, room_id: Any) -> ActionResult:
        room = self._target(conn, room_id)
        return ActionResult.success(state=dump(room.snapshot()))

    async def request_moves(self, conn: Connection, room_id: Any, square: Any) -> ActionResult:
        room = self._target(conn, room_id)
        moves = room.rules.legal_moves(room.position, square)
        return ActionResult.success(square=square, moves=[dump(m) for m in moves])

    # ---------------------------------------------------------------------
    # Play
    # ---------------------------------------------------------------------

    async def move(
        self,
        conn: Connection,
        room_id: Any,
        from_square: Any,
        to_square: Any,
        promotion: Any = None,
    ) -> ActionResult:
        room = self._target(conn, room_id)
        # Stamped on arrival, so waiting for the lock is not charged to the mover.
        arrived = self.now_ms()
        async with room.lock:
            room.require_status(RoomStatus.PLAYING)
            side = room.require_seat(conn.id)
            if room.turn is not side:
                raise NotYourTurn()

            # Time already spent is charged whether or not the move is legal.
            flagged = room.reconcile_clock(arrived)
            if not flagged:
                room.apply_move(side, from_square, to_square, promotion)
            await self._broadcast_state(room)

        if room.status is RoomStatus.ENDED:
            await self.lobby.broadcast()
        if flagged:
            return ActionResult.failure("Time expired", code="timeout")
        return ActionResult.success()

    async def offer_draw(self, conn: Connection, room_id: Any) -> ActionResult:
        room = self._target(conn, room_id)
        async with room.lock:
            room.require_status(RoomStatus.PLAYING)
            side = room.require_seat(conn.id)
            if room.offer_draw(side):
                await self._broadcast_state(room)
        return ActionResult.success()

    async def accept_draw(self, conn: Connection, room_id: Any) -> ActionResult:
        room = self._target(conn, room_id)
        async with room.lock:
            room.require_status(RoomStatus.PLAYING)
            side = room.require_seat(conn.id)
            room.accept_draw(side)
            await self._broadcast_state(room)
        await self.lobby.broadcast()
        return ActionResult.success()

    async def resign(self, conn: Connection, room_id: Any) -> ActionResult:
        room = self._target(conn, room_id)
        async with room.lock:
            room.require_status(RoomStatus.PLAYING)
            side = room.require_seat(conn.id)
            room.resign(side)
            await self._broadcast_state(room)
        await self.lobby.broadcast()
        return ActionResult.success()

    async def request_rematch(self, conn: Connection, room_id: Any) -> ActionResult:
        room = self._target(conn, room_id)
        async with room.lock:
            room.require_status(RoomStatus.ENDED)
            side = room.require_seat(conn.id)
            started = room.vote_rematch(side, self.now_ms())
            await self._broadcast_state(room)
        if started:
            await self.lobby.broadcast()
        return ActionResult.success()

    # ---------------------------------------------------------------------
    # Primary dispatcher used by the websocket endpoint
    # ---------------------------------------------------------------------

    async def handle_message(self, conn: Connection, data: Any) -> ActionResult:
        """Route one inbound ``{"type": ..., "ack": ..., ...payload}`` message.

        Requests carrying an ``ack`` id get an ``ack`` reply; refusals of
        requests without one are pushed as ``error_message``.
        """
        if not isinstance(data, dict):
            data = {}
        msg_type = data.get("type")
        ack = data.get("ack")
        room_id = data.get("roomId")

        try:
            if msg_type == "create_room":
                result = await self.create_room(conn)
            elif msg_type == "join":
                result = await self.join(conn, room_id)
            elif msg_type == "leave_room":
                result = await self.leave(conn)
            elif msg_type == "request_moves":
                result = await self.request_moves(conn, room_id, data.get("square"))
            elif msg_type == "move":
                result = await self.move(conn, room_id, data.get("from"), data.get("to"), data.get("promotion"))
            elif msg_type == "offer_draw":
                result = await self.offer_draw(conn, room_id)
            elif msg_type == "accept_draw":
                result = await self.accept_draw(conn, room_id)
            elif msg_type == "resign":
                result = await self.resign(conn, room_id)
            elif msg_type == "request_rematch":
                result = await self.request_rematch(conn, room_id)
            elif msg_type == "get_state":
                result = await self.get_state(conn, room_id)
            else:
                logger.warning("connection %s sent unknown message type %r", conn.id, msg_type)
                result = ActionResult.failure("Unknown action", code="unknown_action")
        except RoomError as err:
            logger.warning("connection %s: %s refused: %s", conn.id, msg_type, err.message)
            result = ActionResult.failure(err.message, code=err.code)

        if ack is not None:
            await conn.reply(ack, result.to_wire())
        elif not result.ok:
            await conn.send("error_message", {"message": result.error})
        return result


__all__ = ["SessionDispatcher"]
