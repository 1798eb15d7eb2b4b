"""
UI package for AI Chess.

Rich-based terminal rendering: the board renderer and the presenter that
receives game events from the orchestrator.
"""

from .board import BoardColors, ChessBoardRenderer, PieceStyle
from .dashboard import (
    TerminalPresenter,
    UiMode,
    extract_memory_summary,
    format_working_memory,
)

__all__ = [
    "BoardColors",
    "ChessBoardRenderer",
    "PieceStyle",
    "TerminalPresenter",
    "UiMode",
    "extract_memory_summary",
    "format_working_memory",
]
