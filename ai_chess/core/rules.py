"""
Rules engine adapter built on python-chess.

This module wraps a ``chess.Board`` behind the narrow interface the orchestrator
consumes: legal moves in SAN, move application, terminal detection, and PGN
serialization. It is the only owner of the board for a game session.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

import chess
import chess.pgn as chess_pgn

from .models import Color, TerminalStatus
from .evaluator import BoardSnapshot

logger = logging.getLogger(__name__)


class RulesContractError(Exception):
    """Raised when the rules engine reports an inconsistent state."""
    pass


@dataclass
class MoveApplication:
    """Result of applying a SAN move."""

    applied: bool
    san: str = ""
    captured: Optional[str] = None   # Piece letter, lowercase ("p", "n", ...)
    error: Optional[str] = None


_TERMINATION_STATUS = {
    chess.Termination.CHECKMATE: TerminalStatus.CHECKMATE,
    chess.Termination.STALEMATE: TerminalStatus.STALEMATE,
    chess.Termination.INSUFFICIENT_MATERIAL: TerminalStatus.DRAW_BY_INSUFFICIENT_MATERIAL,
    chess.Termination.THREEFOLD_REPETITION: TerminalStatus.DRAW_BY_REPETITION,
    chess.Termination.FIVEFOLD_REPETITION: TerminalStatus.DRAW_BY_REPETITION,
    chess.Termination.FIFTY_MOVES: TerminalStatus.DRAW_BY_FIFTY_MOVE,
    chess.Termination.SEVENTYFIVE_MOVES: TerminalStatus.DRAW_BY_FIFTY_MOVE,
}


class ChessRules:
    """
    Legality checking and state encoding for one game.

    Draws that a player could claim (threefold repetition, fifty-move rule)
    end the game immediately.
    """

    def __init__(self, fen: Optional[str] = None):
        """
        Initialize the adapter.

        Args:
            fen: Starting position (standard start if None)
        """
        self._board = chess.Board(fen) if fen else chess.Board()
        self._san_history: List[str] = []
        self._headers: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def legal_moves(self) -> List[str]:
        """Legal moves for the side to move, in SAN, in generation order."""
        return [self._board.san(move) for move in self._board.legal_moves]

    def side_to_move(self) -> Color:
        return Color.WHITE if self._board.turn == chess.WHITE else Color.BLACK

    def is_terminal(self) -> bool:
        return self._board.is_game_over(claim_draw=True)

    def terminal_reason(self) -> TerminalStatus:
        """Map the python-chess outcome onto the terminal-status taxonomy."""
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None:
            return TerminalStatus.IN_PROGRESS
        try:
            return _TERMINATION_STATUS[outcome.termination]
        except KeyError:
            raise RulesContractError(f"Unsupported termination: {outcome.termination}")

    def winner(self) -> Optional[str]:
        """'white', 'black', 'draw', or None while the game is running."""
        outcome = self._board.outcome(claim_draw=True)
        if outcome is None:
            return None
        if outcome.winner is None:
            return "draw"
        return Color.WHITE.value if outcome.winner == chess.WHITE else Color.BLACK.value

    def in_check(self) -> bool:
        return self._board.is_check()

    def fen(self) -> str:
        return self._board.fen()

    def ascii(self) -> str:
        return str(self._board)

    def history(self) -> List[str]:
        """SAN transcript of every move applied so far."""
        return list(self._san_history)

    def last_move(self) -> Optional[str]:
        return self._san_history[-1] if self._san_history else None

    @property
    def move_number(self) -> int:
        """Full-move number (starts at 1, increments after Black moves)."""
        return self._board.fullmove_number

    @property
    def ply(self) -> int:
        """Number of half-moves applied through this adapter."""
        return len(self._san_history)

    @property
    def board(self) -> chess.Board:
        """A copy of the underlying board, for rendering and analysis."""
        return self._board.copy()

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    def snapshot(self) -> BoardSnapshot:
        """Piece-by-square snapshot for the position evaluator."""
        return BoardSnapshot.from_board(self._board)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply_move(self, san: str) -> MoveApplication:
        """
        Apply a SAN move if it is legal.

        Args:
            san: Move in Standard Algebraic Notation

        Returns:
            MoveApplication describing whether the move was applied
        """
        try:
            move = self._board.parse_san(san)
        except ValueError as e:
            logger.debug(f"Rejected move {san!r}: {e}")
            return MoveApplication(applied=False, error=str(e))

        canonical = self._board.san(move)
        captured = None
        if self._board.is_en_passant(move):
            captured = chess.piece_symbol(chess.PAWN)
        elif self._board.is_capture(move):
            piece = self._board.piece_at(move.to_square)
            captured = chess.piece_symbol(piece.piece_type) if piece else None

        self._board.push(move)
        self._san_history.append(canonical)
        return MoveApplication(applied=True, san=canonical, captured=captured)

    def set_header(self, key: str, value: str) -> None:
        self._headers[key] = value

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """Encode the game (headers and moves) as PGN."""
        game = chess_pgn.Game.from_board(self._board)
        game.headers["Date"] = datetime.utcnow().strftime("%Y.%m.%d")
        for key, value in self._headers.items():
            game.headers[key] = value
        if "Result" not in self._headers:
            game.headers["Result"] = self._board.result(claim_draw=True)
        exporter = chess_pgn.StringExporter(headers=True, variations=False, comments=False)
        return game.accept(exporter)

    @classmethod
    def deserialize(cls, pgn: str) -> ChessRules:
        """
        Rebuild an adapter from PGN text.

        Raises:
            ValueError: If the text holds no game or an illegal move
        """
        game = chess_pgn.read_game(io.StringIO(pgn))
        if game is None:
            raise ValueError("No game found in PGN text")
        if game.errors:
            raise ValueError(f"Failed to parse PGN: {game.errors[0]}")

        start = game.board()
        rules = cls(start.fen() if start.fen() != chess.STARTING_FEN else None)
        for key, value in game.headers.items():
            rules._headers[key] = value

        board = game.board()
        for move in game.mainline_moves():
            san = board.san(move)
            board.push(move)
            result = rules.apply_move(san)
            if not result.applied:
                raise ValueError(f"Illegal move in PGN: {san}")
        return rules
