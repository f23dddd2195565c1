"""Process-wide collection of rooms, keyed by their public code."""
from __future__ import annotations

import itertools
import logging
import re
import secrets
from typing import Dict, List, Optional, Tuple

from .clock import NowFn, epoch_ms, monotonic_ms
from .constants import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH, ROOM_CODE_PATTERN, RoomStatus
from .exceptions import InvalidRoomId, RoomNotFound
from .room import Room
from .rules import ChessRules

logger = logging.getLogger(__name__)

_CODE_RE = re.compile(ROOM_CODE_PATTERN)


def normalize_code(raw: object) -> str:
    """Trim and upper-case a user supplied room code, rejecting anything malformed."""
    if not isinstance(raw, str):
        raise InvalidRoomId()
    code = raw.strip().upper()
    if not _CODE_RE.match(code):
        raise InvalidRoomId()
    return code


class RoomRegistry:
    """Owns every :class:`Room`. Rooms live for the lifetime of the process."""

    def __init__(
        self,
        initial_ms: int,
        now_ms: NowFn = monotonic_ms,
        rules: Optional[ChessRules] = None,
        wall_ms: NowFn = epoch_ms,
    ):
        self.initial_ms = initial_ms
        self.now_ms = now_ms
        self.wall_ms = wall_ms
        self.rules = rules or ChessRules()
        self._rooms: Dict[str, Room] = {}
        self._sequence = itertools.count()

    def generate_code(self) -> str:
        while True:
            code = "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self._rooms:
                return code

    def create(self, code: Optional[str] = None) -> Room:
        code = code or self.generate_code()
        if code in self._rooms:
            return self._rooms[code]
        room = Room(
            code,
            self.rules,
            self.initial_ms,
            now=self.now_ms(),
            created_at=self.wall_ms(),
            sequence=next(self._sequence),
        )
        self._rooms[code] = room
        logger.info("room %s created", code)
        return room

    def get(self, code: str) -> Optional[Room]:
        return self._rooms.get(code)

    def require(self, code: Optional[str]) -> Room:
        room = self._rooms.get(code) if code else None
        if room is None:
            raise RoomNotFound(code)
        return room

    def get_or_create(self, code: str) -> Tuple[Room, bool]:
        room = self._rooms.get(code)
        if room is not None:
            return room, False
        return self.create(code), True

    def ordered(self) -> List[Room]:
        """All rooms, oldest first."""
        return sorted(self._rooms.values(), key=lambda r: r.sequence)

    def playing(self) -> List[Room]:
        return [room for room in self._rooms.values() if room.status is RoomStatus.PLAYING]

    def __contains__(self, code: object) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)


__all__ = ["RoomRegistry", "normalize_code"]
