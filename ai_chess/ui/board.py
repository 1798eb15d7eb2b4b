"""
Chess board visualization for the AI Chess terminal.

This module renders positions with Unicode pieces, colored squares and
last-move highlighting, plus the small side panels shown next to the board
(players, move history, captured material).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set

import chess
from rich.align import Align
from rich.box import ROUNDED
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class PieceStyle(Enum):
    """Chess piece display styles."""
    UNICODE = "unicode"
    LETTERS = "letters"


@dataclass
class BoardColors:
    """Color scheme for chess board rendering."""
    white_square: str = "white"
    black_square: str = "grey23"
    white_piece: str = "bright_white"
    black_piece: str = "grey0"
    highlight_check: str = "red"
    highlight_last_move: str = "green"
    border: str = "cyan"
    coordinates: str = "dim white"


RESULT_LABELS = {
    "1-0": "🏆 White wins",
    "0-1": "🏆 Black wins",
    "1/2-1/2": "🤝 Draw",
    "*": "🎮 In progress",
}


class ChessBoardRenderer:
    """
    Chess board renderer with Unicode pieces and colors.

    The board is drawn from White's side unless ``flip_board`` is set, which
    the presenter does when the human plays Black.
    """

    UNICODE_PIECES = {
        chess.PAWN: {"white": "♙", "black": "♟"},
        chess.ROOK: {"white": "♖", "black": "♜"},
        chess.KNIGHT: {"white": "♘", "black": "♞"},
        chess.BISHOP: {"white": "♗", "black": "♝"},
        chess.QUEEN: {"white": "♕", "black": "♛"},
        chess.KING: {"white": "♔", "black": "♚"},
    }

    LETTER_PIECES = {
        chess.PAWN: {"white": "P", "black": "p"},
        chess.ROOK: {"white": "R", "black": "r"},
        chess.KNIGHT: {"white": "N", "black": "n"},
        chess.BISHOP: {"white": "B", "black": "b"},
        chess.QUEEN: {"white": "Q", "black": "q"},
        chess.KING: {"white": "K", "black": "k"},
    }

    STARTING_COUNTS = {
        chess.PAWN: 8,
        chess.KNIGHT: 2,
        chess.BISHOP: 2,
        chess.ROOK: 2,
        chess.QUEEN: 1,
    }

    def __init__(
        self,
        piece_style: PieceStyle = PieceStyle.UNICODE,
        colors: Optional[BoardColors] = None,
        flip_board: bool = False,
        show_coordinates: bool = True,
    ):
        """
        Initialize the chess board renderer.

        Args:
            piece_style: Style for chess pieces
            colors: Color scheme for the board
            flip_board: If True, display from black's perspective
            show_coordinates: Whether to show file/rank labels
        """
        self.piece_style = piece_style
        self.colors = colors or BoardColors()
        self.flip_board = flip_board
        self.show_coordinates = show_coordinates
        self.pieces = self.UNICODE_PIECES if piece_style == PieceStyle.UNICODE else self.LETTER_PIECES

    def render_board(self, board: chess.Board, last_move_san: Optional[str] = None) -> Panel:
        """
        Render the position as a Rich Panel.

        Args:
            board: Chess position to render (its move stack drives highlighting)
            last_move_san: Last move in SAN, for the title

        Returns:
            Rich Panel containing the rendered board
        """
        highlighted: Set[chess.Square] = set()
        if board.move_stack:
            last = board.move_stack[-1]
            highlighted.update((last.from_square, last.to_square))

        checked_king = board.king(board.turn) if board.is_check() else None

        table = Table.grid(padding=0)
        if self.show_coordinates:
            table.add_column(justify="center", width=2)
        for _ in range(8):
            table.add_column(justify="center", width=3)
        if self.show_coordinates:
            table.add_column(justify="center", width=2)

        if self.show_coordinates:
            table.add_row(*self._file_row())

        ranks = range(8, 0, -1) if not self.flip_board else range(1, 9)
        for rank in ranks:
            row_parts = []
            if self.show_coordinates:
                row_parts.append(Text(str(rank), style=self.colors.coordinates))

            files = range(8) if not self.flip_board else range(7, -1, -1)
            for file in files:
                square = chess.square(file, rank - 1)
                row_parts.append(self._render_square(board, square, highlighted, checked_king))

            if self.show_coordinates:
                row_parts.append(Text(str(rank), style=self.colors.coordinates))
            table.add_row(*row_parts)

        if self.show_coordinates:
            table.add_row(*self._file_row())

        return Panel(
            Align.center(table),
            title=self._create_board_title(board, last_move_san),
            border_style=self.colors.border,
            box=ROUNDED,
            padding=(0, 1),
        )

    def _file_row(self) -> List:
        files = "abcdefgh" if not self.flip_board else "hgfedcba"
        return ["  "] + [Text(f, style=self.colors.coordinates) for f in files] + ["  "]

    def _render_square(
        self,
        board: chess.Board,
        square: chess.Square,
        highlighted: Set[chess.Square],
        checked_king: Optional[chess.Square],
    ) -> Text:
        """Render a single chess square with piece and background."""
        piece = board.piece_at(square)
        is_light_square = (chess.square_file(square) + chess.square_rank(square)) % 2 == 1

        if square == checked_king:
            bg_color = self.colors.highlight_check
        elif square in highlighted:
            bg_color = self.colors.highlight_last_move
        elif is_light_square:
            bg_color = self.colors.white_square
        else:
            bg_color = self.colors.black_square

        if piece:
            piece_char = self._get_piece_char(piece)
            piece_color = self.colors.white_piece if piece.color == chess.WHITE else self.colors.black_piece
        else:
            piece_char = " "
            piece_color = "white"

        return Text(f" {piece_char} ", style=f"{piece_color} on {bg_color}")

    def _get_piece_char(self, piece: chess.Piece) -> str:
        color_key = "white" if piece.color == chess.WHITE else "black"
        return self.pieces[piece.piece_type][color_key]

    def _create_board_title(self, board: chess.Board, last_move_san: Optional[str]) -> str:
        turn = "White" if board.turn == chess.WHITE else "Black"
        title_parts = [f"Move {board.fullmove_number}"]

        if last_move_san:
            title_parts.append(f"Last: {last_move_san}")

        title_parts.append(f"To play: {turn}")

        if board.is_checkmate():
            winner = "Black" if board.turn == chess.WHITE else "White"
            title_parts.append(f"Checkmate - {winner} wins!")
        elif board.is_stalemate():
            title_parts.append("Stalemate")
        elif board.is_check():
            title_parts.append("Check!")
        elif board.is_insufficient_material():
            title_parts.append("Insufficient material")

        return " | ".join(title_parts)

    def render_move_list(self, history: List[str], max_moves: int = 20) -> Panel:
        """
        Render the most recent moves as numbered pairs.

        Args:
            history: SAN transcript of the game
            max_moves: Maximum number of plies to show

        Returns:
            Rich Panel with move list
        """
        if not history:
            return Panel("No moves yet", title="📜 Move History", border_style=self.colors.border)

        start = max(0, len(history) - max_moves)
        if start % 2 == 1:
            start -= 1

        lines = []
        for i in range(start, len(history), 2):
            move_num = i // 2 + 1
            white_move = history[i]
            black_move = history[i + 1] if i + 1 < len(history) else ""
            lines.append(f"{move_num}. {white_move} {black_move}".rstrip())

        return Panel(
            "\n".join(lines),
            title="📜 Move History",
            border_style=self.colors.border,
            padding=(0, 1),
        )

    def render_game_info(
        self,
        white_name: str,
        black_name: str,
        result: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> Panel:
        """
        Render game information panel.

        Args:
            white_name: Name of white player
            black_name: Name of black player
            result: PGN result token if finished
            mode: Game mode tag

        Returns:
            Rich Panel with game information
        """
        info_lines = [
            f"⚪ White: {white_name}",
            f"⚫ Black: {black_name}",
        ]
        if mode:
            info_lines.append(f"🎯 Mode: {mode}")
        if result:
            info_lines.append(RESULT_LABELS.get(result, f"Result: {result}"))

        return Panel(
            "\n".join(info_lines),
            title="ℹ️ Game Info",
            border_style=self.colors.border,
            padding=(0, 1),
        )

    def captured_pieces(self, board: chess.Board) -> Dict[str, str]:
        """Pieces each side has captured, as glyph strings keyed by capturing color."""
        captured = {"white": "", "black": ""}
        for piece_type, start_count in self.STARTING_COUNTS.items():
            for color, capturer in ((chess.BLACK, "white"), (chess.WHITE, "black")):
                missing = start_count - len(board.pieces(piece_type, color))
                if missing > 0:
                    glyph = self._get_piece_char(chess.Piece(piece_type, color))
                    captured[capturer] += glyph * missing
        return captured

    def render_captured(self, board: chess.Board) -> Panel:
        captured = self.captured_pieces(board)
        content = (
            f"White took: {captured['white'] or '-'}\n"
            f"Black took: {captured['black'] or '-'}"
        )
        return Panel(content, title="⚔️ Captured", border_style=self.colors.border, padding=(0, 1))
