"""
Heuristic position evaluation for display and agent context.

Everything here is a pure function of a board snapshot: material balance,
center control, development, king safety and game phase. None of it is used
to choose moves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

import chess

from .models import Color


class GamePhase(str, Enum):
    OPENING = "opening"
    MIDDLEGAME = "middlegame"
    ENDGAME = "endgame"


# Piece values for material evaluation, keyed by lowercase piece letter
PIECE_VALUES = {"p": 1, "n": 3, "b": 3, "r": 5, "q": 9, "k": 0}

CENTER_SQUARES = frozenset(["d4", "d5", "e4", "e5"])
EXTENDED_CENTER = frozenset([
    "c3", "c4", "c5", "c6",
    "d3", "d6", "e3", "e6",
    "f3", "f4", "f5", "f6",
])

OPENING_MOVES = 10
ENDGAME_PIECES = 12
QUEENLESS_ENDGAME_PIECES = 16


@dataclass
class BoardSnapshot:
    """Piece placement plus the few game facts the heuristics need."""

    pieces: Dict[str, str]        # Square name -> piece symbol ("P" white, "p" black)
    side_to_move: Color = Color.WHITE
    move_number: int = 1
    in_check: bool = False

    @classmethod
    def from_board(cls, board: chess.Board) -> BoardSnapshot:
        return cls(
            pieces={
                chess.square_name(square): piece.symbol()
                for square, piece in board.piece_map().items()
            },
            side_to_move=Color.WHITE if board.turn == chess.WHITE else Color.BLACK,
            move_number=board.fullmove_number,
            in_check=board.is_check(),
        )


@dataclass
class SideScore:
    white: int = 0
    black: int = 0

    def add(self, color: Color, amount: int) -> None:
        if color is Color.WHITE:
            self.white += amount
        else:
            self.black += amount


@dataclass
class PositionAnalysis:
    """Read-only strategic snapshot of a position."""

    material_balance: int
    center_control: SideScore
    development: SideScore
    king_safety: SideScore
    phase: GamePhase
    threats: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "material_balance": self.material_balance,
            "center_control": {"white": self.center_control.white, "black": self.center_control.black},
            "development": {"white": self.development.white, "black": self.development.black},
            "king_safety": {"white": self.king_safety.white, "black": self.king_safety.black},
            "phase": self.phase.value,
            "threats": list(self.threats),
        }

    def summary(self) -> str:
        """One-line description for prompts and status bars."""
        return (
            f"phase {self.phase.value}, material {self.material_balance:+d}, "
            f"center {self.center_control.white}/{self.center_control.black}, "
            f"development {self.development.white}/{self.development.black}, "
            f"king safety {self.king_safety.white}/{self.king_safety.black}"
        )


def _color_of(symbol: str) -> Color:
    return Color.WHITE if symbol.isupper() else Color.BLACK


def _rank_of(square: str) -> int:
    """Zero-based rank index of a square name ("e1" -> 0)."""
    return int(square[1]) - 1


def _relative_rank(square: str, color: Color) -> int:
    """Rank counted from the given side's own back rank."""
    rank = _rank_of(square)
    return rank if color is Color.WHITE else 7 - rank


def detect_phase(pieces: Dict[str, str], move_number: int) -> GamePhase:
    if move_number <= OPENING_MOVES:
        return GamePhase.OPENING

    total = len(pieces)
    queens = sum(1 for symbol in pieces.values() if symbol.lower() == "q")
    if total <= ENDGAME_PIECES or (queens == 0 and total <= QUEENLESS_ENDGAME_PIECES):
        return GamePhase.ENDGAME
    return GamePhase.MIDDLEGAME


def evaluate_position(snapshot: BoardSnapshot) -> PositionAnalysis:
    """
    Compute the heuristic signals for a position.

    Args:
        snapshot: Board snapshot to evaluate

    Returns:
        PositionAnalysis (threats left empty; see ``analyze_board``)
    """
    material = SideScore()
    center = SideScore()
    development = SideScore()
    king_safety = SideScore()

    for square, symbol in snapshot.pieces.items():
        color = _color_of(symbol)
        kind = symbol.lower()

        material.add(color, PIECE_VALUES[kind])

        if square in CENTER_SQUARES:
            center.add(color, 2)
        elif square in EXTENDED_CENTER:
            center.add(color, 1)

        if kind not in ("p", "k") and _relative_rank(square, color) != 0:
            development.add(color, 1)

        if kind == "k" and _relative_rank(square, color) <= 1:
            king_safety.add(color, 3)

    if snapshot.in_check:
        king_safety.add(snapshot.side_to_move, -5)

    return PositionAnalysis(
        material_balance=material.white - material.black,
        center_control=center,
        development=development,
        king_safety=king_safety,
        phase=detect_phase(snapshot.pieces, snapshot.move_number),
    )


def analyze_board(board: chess.Board) -> PositionAnalysis:
    """Evaluate a python-chess board and list the immediate threats."""
    analysis = evaluate_position(BoardSnapshot.from_board(board))

    side = "white" if board.turn == chess.WHITE else "black"
    if board.is_check():
        analysis.threats.append(f"{side} king is in check")

    captures = [move for move in board.legal_moves if board.is_capture(move)]
    high_value = 0
    for move in captures:
        target = board.piece_at(move.to_square)
        if target and PIECE_VALUES[target.symbol().lower()] >= 3:
            high_value += 1
    if high_value:
        analysis.threats.append(
            f"{len(captures)} capturing moves available ({high_value} high-value)"
        )

    return analysis
