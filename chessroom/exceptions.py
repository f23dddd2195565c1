"""Refusals raised by room operations.

Every error here is local and recoverable: the dispatcher catches
:class:`RoomError` and reports it to the acting connection only.
"""
from __future__ import annotations


class RoomError(Exception):
    code = "room_error"
    default_message = "Request refused"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRoomId(RoomError):
    code = "invalid_room_id"
    default_message = "Invalid room id"


class RoomNotFound(RoomError):
    code = "room_not_found"
    default_message = "Room not found"

    def __init__(self, room_id: str | None = None):
        self.room_id = room_id
        super().__init__()


class InvalidSquare(RoomError):
    code = "invalid_square"
    default_message = "Invalid square"


class IllegalMove(RoomError):
    code = "illegal_move"
    default_message = "Illegal move"


class NotYourTurn(RoomError):
    code = "not_your_turn"
    default_message = "Not your turn"


class SpectatorForbidden(RoomError):
    code = "spectator_forbidden"
    default_message = "Spectators cannot do that"


class WrongGameStatus(RoomError):
    code = "wrong_game_status"
    default_message = "Game not in playing state"


class NoOpenOffer(RoomError):
    code = "no_draw_offer"
    default_message = "No draw offer to accept"


class SelfAcceptForbidden(RoomError):
    code = "self_accept_forbidden"
    default_message = "Cannot accept your own draw offer"


__all__ = [
    "RoomError",
    "InvalidRoomId",
    "RoomNotFound",
    "InvalidSquare",
    "IllegalMove",
    "NotYourTurn",
    "SpectatorForbidden",
    "WrongGameStatus",
    "NoOpenOffer",
    "SelfAcceptForbidden",
]
