from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set, Union

import chess

from .clock import GameClock
from .connections import Connection
from .constants import DRAW, SEAT_CAPACITY, EndReason, RoomStatus, Side
from .exceptions import (
    IllegalMove,
    NoOpenOffer,
    SelfAcceptForbidden,
    SpectatorForbidden,
    WrongGameStatus,
)
from .rules import ChessRules
from .schemas import ClockUpdate, Clocks, GameResult, RoomState, SeatOccupancy

logger = logging.getLogger(__name__)


@dataclass
class Outcome:
    reason: EndReason
    # A Side, or DRAW
    winner: Union[Side, str]

    def to_schema(self) -> GameResult:
        winner = self.winner.code if isinstance(self.winner, Side) else DRAW
        return GameResult(reason=self.reason.value, winner=winner)


class Room:
    """Authoritative state of one match plus the connections watching it.

    Mutating methods are plain synchronous calls and never suspend; callers
    hold :attr:`lock` across a mutation and the broadcast that announces it.
    """

    def __init__(
        self,
        room_id: str,
        rules: ChessRules,
        initial_ms: int,
        now: int,
        created_at: int = 0,
        sequence: int = 0,
    ):
        self.room_id = room_id
        self.rules = rules
        self.position = rules.new_position()
        self.seats: Dict[Side, Optional[str]] = {Side.WHITE: None, Side.BLACK: None}
        self.status = RoomStatus.WAITING
        self.clock = GameClock(initial_ms, now)
        self.draw_offer: Optional[Side] = None
        self.rematch_votes: Set[Side] = set()
        self.result: Optional[Outcome] = None
        self.created_at = created_at
        self.sequence = sequence
        # connection id -> Connection, seated players and spectators alike
        self.subscribers: Dict[str, Connection] = {}
        self.lock = asyncio.Lock()

    # ---------------------------------------------------------------------
    # Membership
    # ---------------------------------------------------------------------

    def subscribe(self, conn: Connection) -> None:
        self.subscribers[conn.id] = conn

    def unsubscribe(self, connection_id: str) -> None:
        self.subscribers.pop(connection_id, None)

    def seat_of(self, connection_id: str) -> Optional[Side]:
        for side, occupant in self.seats.items():
            if occupant == connection_id:
                return side
        return None

    def take_seat(self, connection_id: str) -> Optional[Side]:
        """Seat *connection_id* on the first free side; ``None`` means spectator.

        A connection that already holds a side keeps it.
        """
        current = self.seat_of(connection_id)
        if current is not None:
            return current
        for side in (Side.WHITE, Side.BLACK):
            if self.seats[side] is None:
                self.seats[side] = connection_id
                return side
        return None

    def vacate(self, connection_id: str) -> Optional[Side]:
        """Free the seat of *connection_id*. Status and result are left as they are."""
        side = self.seat_of(connection_id)
        if side is None:
            return None
        self.seats[side] = None
        self.rematch_votes.discard(side)
        if self.draw_offer is side:
            self.draw_offer = None
        return side

    def occupancy(self) -> int:
        return sum(1 for occupant in self.seats.values() if occupant is not None)

    def is_full(self) -> bool:
        return self.occupancy() == SEAT_CAPACITY

    def ready_to_start(self) -> bool:
        return self.status is RoomStatus.WAITING and self.is_full()

    # ---------------------------------------------------------------------
    # Guards
    # ---------------------------------------------------------------------

    def require_status(self, status: RoomStatus) -> None:
        if self.status is not status:
            if status is RoomStatus.PLAYING:
                raise WrongGameStatus()
            raise WrongGameStatus(f"Game is not {status.value}")

    def require_seat(self, connection_id: str) -> Side:
        side = self.seat_of(connection_id)
        if side is None:
            raise SpectatorForbidden()
        return side

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    @property
    def turn(self) -> Side:
        return self.rules.turn_to_move(self.position)

    def start_game(self, now: int) -> None:
        self.position = self.rules.new_position()
        self.status = RoomStatus.PLAYING
        self.clock.reset(now)
        self.draw_offer = None
        self.rematch_votes.clear()
        self.result = None
        logger.info("room %s: game started", self.room_id)

    def end_game(self, reason: EndReason, winner: Union[Side, str] = DRAW) -> None:
        self.status = RoomStatus.ENDED
        self.result = Outcome(reason=reason, winner=winner)
        self.draw_offer = None
        logger.info("room %s: game ended (%s, winner=%s)", self.room_id, reason.value, winner)

    def reconcile_clock(self, now: int) -> bool:
        """Charge the side to move for elapsed time. Returns True if that flagged it and ended the game."""
        if self.status is not RoomStatus.PLAYING:
            return False
        side = self.turn
        self.clock.reconcile(side, now)
        if self.clock.expired(side):
            self.end_game(EndReason.TIMEOUT, side.opponent)
            return True
        return False

    def apply_move(self, side: Side, from_square: str, to_square: str, promotion: Optional[str] = None) -> chess.Move:
        move = self.rules.apply_move(self.position, from_square, to_square, promotion)
        if move is None:
            raise IllegalMove()
        self.draw_offer = None
        terminal = self.rules.terminal_condition(self.position, side)
        if terminal is not None:
            self.end_game(*terminal)
        return move

    # -------------------- Negotiation -------------------- #

    def offer_draw(self, side: Side) -> bool:
        """Open a draw offer for *side*. First offer wins; returns False if one is already open."""
        self.require_status(RoomStatus.PLAYING)
        if self.draw_offer is not None:
            return False
        self.draw_offer = side
        return True

    def accept_draw(self, side: Side) -> None:
        self.require_status(RoomStatus.PLAYING)
        if self.draw_offer is None:
            raise NoOpenOffer()
        if self.draw_offer is side:
            raise SelfAcceptForbidden()
        self.end_game(EndReason.DRAW_AGREED)

    def resign(self, side: Side) -> None:
        self.require_status(RoomStatus.PLAYING)
        self.end_game(EndReason.RESIGNATION, side.opponent)

    def vote_rematch(self, side: Side, now: int) -> bool:
        """Record a rematch vote. Returns True when both votes are in and a new game started."""
        self.require_status(RoomStatus.ENDED)
        self.rematch_votes.add(side)
        if self.rematch_votes >= {Side.WHITE, Side.BLACK}:
            self.start_game(now)
            return True
        return False

    # ---------------------------------------------------------------------
    # Views
    # ---------------------------------------------------------------------

    def snapshot(self) -> RoomState:
        return RoomState(
            id=self.room_id,
            fen=self.rules.fen(self.position),
            turn=self.turn.code,
            status=self.status.value,
            clocks=Clocks(**self.clock.as_dict()),
            players=SeatOccupancy(
                white=self.seats[Side.WHITE] is not None,
                black=self.seats[Side.BLACK] is not None,
            ),
            draw_offered_by=self.draw_offer.code if self.draw_offer else None,
            result=self.result.to_schema() if self.result else None,
            check=self.rules.is_check(self.position),
        )

    def clock_update(self) -> ClockUpdate:
        return ClockUpdate(
            white=self.clock[Side.WHITE],
            black=self.clock[Side.BLACK],
            turn=self.turn.code,
            status=self.status.value,
            result=self.result.to_schema() if self.result else None,
        )

    # -------------------- Broadcasting helpers -------------------- #

    async def broadcast(self, event: str, payload: Any = None) -> None:
        """Send *payload* to every subscriber of the room at once; a slow socket only delays itself."""
        await asyncio.gather(*(conn.send(event, payload) for conn in list(self.subscribers.values())))


__all__ = ["Room", "Outcome"]
