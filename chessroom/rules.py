"""Adapter around python-chess.

The room engine never reasons about chess itself. Everything it needs to know
about a position goes through :class:`ChessRules`, which also turns the
library's parsing errors into the room error taxonomy.
"""
from __future__ import annotations

from typing import List, Optional, Tuple, Union

import chess

from .constants import DRAW, EndReason, Side
from .exceptions import InvalidSquare
from .schemas import LegalMove

Position = chess.Board


def _parse_square(square: object) -> int:
    if not isinstance(square, str):
        raise InvalidSquare()
    try:
        return chess.parse_square(square.strip().lower())
    except ValueError:
        raise InvalidSquare() from None


def _parse_promotion(promotion: object) -> Optional[int]:
    if not promotion or not isinstance(promotion, str):
        return None
    symbol = promotion.strip().lower()
    if symbol not in ("q", "r", "b", "n"):
        return None
    return chess.PIECE_SYMBOLS.index(symbol)


class ChessRules:
    """Stateless oracle over an opaque :class:`chess.Board` position."""

    def new_position(self) -> Position:
        return chess.Board()

    # -------------------- Queries -------------------- #

    def legal_moves(self, position: Position, square: str) -> List[LegalMove]:
        """Legal destinations from *square*; one entry per target even when four promotions exist."""
        origin = _parse_square(square)
        moves: List[LegalMove] = []
        seen: set[int] = set()
        for move in position.legal_moves:
            if move.from_square != origin or move.to_square in seen:
                continue
            seen.add(move.to_square)
            moves.append(
                LegalMove(to=chess.square_name(move.to_square), promotion=move.promotion is not None)
            )
        return moves

    def turn_to_move(self, position: Position) -> Side:
        return Side.WHITE if position.turn == chess.WHITE else Side.BLACK

    def fen(self, position: Position) -> str:
        return position.fen()

    def is_check(self, position: Position) -> bool:
        return position.is_check()

    def is_checkmate(self, position: Position) -> bool:
        return position.is_checkmate()

    def is_stalemate(self, position: Position) -> bool:
        return position.is_stalemate()

    def is_insufficient_material(self, position: Position) -> bool:
        return position.is_insufficient_material()

    def is_threefold_repetition(self, position: Position) -> bool:
        return position.is_repetition(3)

    def is_fifty_move_draw(self, position: Position) -> bool:
        return position.is_fifty_moves()

    def is_draw(self, position: Position) -> bool:
        return (
            self.is_stalemate(position)
            or self.is_insufficient_material(position)
            or self.is_threefold_repetition(position)
            or self.is_fifty_move_draw(position)
            or position.is_seventyfive_moves()
            or position.is_fivefold_repetition()
        )

    # -------------------- Mutation -------------------- #

    def apply_move(
        self,
        position: Position,
        from_square: str,
        to_square: str,
        promotion: Optional[str] = None,
    ) -> Optional[chess.Move]:
        """Play the move on *position* in place. Returns ``None`` when the move is not legal."""
        try:
            origin = _parse_square(from_square)
            target = _parse_square(to_square)
        except InvalidSquare:
            return None

        piece = _parse_promotion(promotion)
        candidates = [chess.Move(origin, target, promotion=piece)]
        if piece is not None:
            # A promotion choice sent along with an ordinary move is ignored.
            candidates.append(chess.Move(origin, target))
        for move in candidates:
            if position.is_legal(move):
                position.push(move)
                return move
        return None

    def terminal_condition(self, position: Position, mover: Side) -> Optional[Tuple[EndReason, Union[Side, str]]]:
        """First terminal condition that holds after *mover* played, as ``(reason, winner)``."""
        if self.is_checkmate(position):
            return EndReason.CHECKMATE, mover
        if self.is_stalemate(position):
            return EndReason.STALEMATE, DRAW
        if self.is_insufficient_material(position):
            return EndReason.INSUFFICIENT_MATERIAL, DRAW
        if self.is_threefold_repetition(position):
            return EndReason.THREEFOLD_REPETITION, DRAW
        if self.is_fifty_move_draw(position):
            return EndReason.FIFTY_MOVE_RULE, DRAW
        if self.is_draw(position):
            return EndReason.DRAW, DRAW
        return None


__all__ = ["ChessRules", "Position"]
