"""Unit tests for chessroom/rules.py (the python-chess adapter)"""

import chess
import pytest

from chessroom.constants import DRAW, EndReason, Side
from chessroom.exceptions import InvalidSquare
from chessroom.rules import ChessRules

FOOLS_MATE = [("f2", "f3"), ("e7", "e5"), ("g2", "g4"), ("d8", "h4")]


@pytest.fixture
def rules() -> ChessRules:
    return ChessRules()


def play(rules: ChessRules, board: chess.Board, moves: list[tuple[str, str]]) -> None:
    for from_sq, to_sq in moves:
        assert rules.apply_move(board, from_sq, to_sq) is not None


# --- LEGAL MOVES ---
def test_legal_moves_from_a_pawn_on_its_start_square(rules: ChessRules) -> None:
    board = rules.new_position()
    moves = rules.legal_moves(board, "e2")
    assert sorted(m.to for m in moves) == ["e3", "e4"]
    assert not any(m.promotion for m in moves)


def test_legal_moves_from_an_empty_square_is_empty(rules: ChessRules) -> None:
    assert rules.legal_moves(rules.new_position(), "e4") == []


@pytest.mark.parametrize("square", ["z9", "e", "", None, 42])
def test_legal_moves_rejects_malformed_squares(rules: ChessRules, square: object) -> None:
    with pytest.raises(InvalidSquare):
        rules.legal_moves(rules.new_position(), square)  # type: ignore[arg-type]


def test_promotion_targets_are_listed_once(rules: ChessRules) -> None:
    board = chess.Board("8/P7/8/8/8/8/8/k6K w - - 0 1")
    moves = rules.legal_moves(board, "a7")
    assert len(moves) == 1
    assert moves[0].to == "a8"
    assert moves[0].promotion is True


# --- APPLY MOVE ---
def test_apply_legal_move_updates_position_and_turn(rules: ChessRules) -> None:
    board = rules.new_position()
    move = rules.apply_move(board, "e2", "e4")
    assert move == chess.Move.from_uci("e2e4")
    assert rules.turn_to_move(board) is Side.BLACK


def test_apply_illegal_move_returns_none_and_leaves_position(rules: ChessRules) -> None:
    board = rules.new_position()
    before = board.fen()
    assert rules.apply_move(board, "e2", "e5") is None
    assert rules.apply_move(board, "zz", "e4") is None
    assert board.fen() == before


def test_promotion_requires_a_choice(rules: ChessRules) -> None:
    board = chess.Board("8/P7/8/8/8/8/8/k6K w - - 0 1")
    assert rules.apply_move(board, "a7", "a8") is None
    assert rules.apply_move(board, "a7", "a8", "n") is not None
    assert board.piece_at(chess.A8) == chess.Piece(chess.KNIGHT, chess.WHITE)


def test_promotion_choice_on_an_ordinary_move_is_ignored(rules: ChessRules) -> None:
    board = rules.new_position()
    assert rules.apply_move(board, "e2", "e4", "q") == chess.Move.from_uci("e2e4")


# --- TERMINAL CONDITIONS ---
def test_checkmate_is_won_by_the_mover(rules: ChessRules) -> None:
    board = rules.new_position()
    play(rules, board, FOOLS_MATE)
    assert rules.is_check(board)
    assert rules.terminal_condition(board, Side.BLACK) == (EndReason.CHECKMATE, Side.BLACK)


def test_stalemate(rules: ChessRules) -> None:
    board = chess.Board("k7/8/1Q6/8/8/8/8/7K b - - 0 1")
    assert rules.terminal_condition(board, Side.WHITE) == (EndReason.STALEMATE, DRAW)


def test_insufficient_material(rules: ChessRules) -> None:
    board = chess.Board("k7/8/8/8/8/8/8/7K w - - 0 1")
    assert rules.terminal_condition(board, Side.BLACK) == (EndReason.INSUFFICIENT_MATERIAL, DRAW)


def test_threefold_repetition(rules: ChessRules) -> None:
    board = rules.new_position()
    shuffle = [("g1", "f3"), ("g8", "f6"), ("f3", "g1"), ("f6", "g8")]
    play(rules, board, shuffle)
    assert rules.terminal_condition(board, Side.BLACK) is None
    play(rules, board, shuffle)
    assert rules.terminal_condition(board, Side.BLACK) == (EndReason.THREEFOLD_REPETITION, DRAW)


def test_fifty_move_rule(rules: ChessRules) -> None:
    board = chess.Board("k7/8/8/8/8/8/8/1R5K w - - 100 80")
    assert rules.terminal_condition(board, Side.BLACK) == (EndReason.FIFTY_MOVE_RULE, DRAW)


def test_ongoing_game_has_no_terminal_condition(rules: ChessRules) -> None:
    board = rules.new_position()
    rules.apply_move(board, "e2", "e4")
    assert rules.terminal_condition(board, Side.WHITE) is None
    assert not rules.is_draw(board)
