"""Shared enumerations and fixed values for the room engine."""
from __future__ import annotations

from enum import StrEnum


class Side(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def code(self) -> str:
        """One-letter form used on the wire (``w`` / ``b``)."""
        return self.value[0]

    @property
    def opponent(self) -> "Side":
        return Side.BLACK if self is Side.WHITE else Side.WHITE


class RoomStatus(StrEnum):
    WAITING = "waiting"
    PLAYING = "playing"
    ENDED = "ended"


class EndReason(StrEnum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    THREEFOLD_REPETITION = "threefold_repetition"
    FIFTY_MOVE_RULE = "fifty_move_rule"
    DRAW = "draw"
    DRAW_AGREED = "draw_agreed"
    RESIGNATION = "resignation"
    TIMEOUT = "timeout"


# Result winner used when nobody won.
DRAW = "draw"

# Room codes avoid 0/O and 1/I so they can be read aloud and typed.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
# Accepted shape for user supplied codes (after upper-casing).
ROOM_CODE_PATTERN = r"^[A-Z0-9_-]{1,32}$"

SEAT_CAPACITY = 2

SPECTATOR = "spectator"

__all__ = [
    "Side",
    "RoomStatus",
    "EndReason",
    "DRAW",
    "ROOM_CODE_ALPHABET",
    "ROOM_CODE_LENGTH",
    "ROOM_CODE_PATTERN",
    "SEAT_CAPACITY",
    "SPECTATOR",
]
