"""Background clock tick.

Once per interval every room in play has the side to move charged for the
time that passed, and its subscribers get a ``clock`` update. Rooms are
reconciled concurrently so a slow client in one room never delays another.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional

from .clock import NowFn
from .constants import RoomStatus
from .lobby import LobbyBroadcaster
from .registry import RoomRegistry
from .room import Room
from .schemas import dump

logger = logging.getLogger(__name__)


class TickLoop:
    def __init__(
        self,
        registry: RoomRegistry,
        lobby: LobbyBroadcaster,
        interval: float = 1.0,
        now_ms: Optional[NowFn] = None,
    ):
        self.registry = registry
        self.lobby = lobby
        self.interval = interval
        self.now_ms = now_ms or registry.now_ms
        self._task: Optional[asyncio.Task] = None

    async def _tick_room(self, room: Room) -> bool:
        async with room.lock:
            # The room may have ended while we waited for the lock.
            if room.status is not RoomStatus.PLAYING:
                return False
            now = self.now_ms()
            if now <= room.clock.last_tick:
                return False
            ended = room.reconcile_clock(now)
            await room.broadcast("clock", dump(room.clock_update()))
        return ended

    async def tick(self) -> List[Room]:
        """Reconcile every room in play once. Returns the rooms whose game ran out of time."""
        rooms = self.registry.playing()
        if not rooms:
            return []
        outcomes = await asyncio.gather(*(self._tick_room(r) for r in rooms), return_exceptions=True)

        timed_out: List[Room] = []
        for room, outcome in zip(rooms, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("clock tick failed for room %s", room.room_id, exc_info=outcome)
            elif outcome:
                timed_out.append(room)
        if timed_out:
            await self.lobby.broadcast()
        return timed_out

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except Exception:
                logger.exception("clock tick failed")

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


__all__ = ["TickLoop"]
