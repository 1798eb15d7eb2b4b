"""
Terminal presentation for AI Chess games.

This module provides the Rich-based presenter that receives orchestrator
events and prints the board, move history, fallback notices and the agents'
working memory. It also owns the keyboard input used by human players and
the small UI state machine around it.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import Color, GameResult, MemoryRecord, TurnOutcome
from ..core.orchestrator import GameView, PresentationSink
from .board import ChessBoardRenderer

logger = logging.getLogger(__name__)

QUIT_COMMANDS = frozenset(["quit", "exit", "q"])
CONFIRM_ANSWERS = frozenset(["y", "yes"])


class UiMode(str, Enum):
    """What the terminal is currently waiting for."""

    NORMAL = "normal"
    AWAITING_MOVE_INPUT = "awaiting-move-input"
    CONFIRMING_QUIT = "confirming-quit"


def format_working_memory(content: str) -> Text:
    """Color a working-memory document by line type."""
    if not content or not content.strip():
        return Text("No working memory available yet...", style="grey50")

    text = Text()
    for line in content.splitlines():
        if line.startswith("# "):
            text.append(line, style="bold cyan")
        elif line.startswith("## "):
            text.append(line, style="bold yellow")
        elif line.startswith("### "):
            text.append(line, style="bold green")
        elif line.startswith("- "):
            text.append(line, style="white")
        elif ":" in line:
            key, value = line.split(":", 1)
            text.append(key + ":", style="grey50")
            text.append(value, style="white")
        else:
            text.append(line)
        text.append("\n")
    text.rstrip()
    return text


def extract_memory_summary(content: str, limit: int = 3) -> str:
    """First few bullets of the Strategic Plan section."""
    if not content:
        return "Analyzing position..."

    summary: List[str] = []
    in_plan = False
    for line in content.splitlines():
        if "Strategic Plan" in line:
            in_plan = True
        elif in_plan and line.startswith("## "):
            break
        elif in_plan and line.startswith("- ") and len(summary) < limit:
            summary.append(line.strip())

    return "\n".join(summary) if summary else "Thinking..."


class TerminalPresenter(PresentationSink):
    """
    Rich console presenter.

    Prints one block per turn rather than running a live display, so human
    input prompts and agent output interleave cleanly.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        flip_board: bool = False,
        show_full_memory: bool = False,
        mode_label: Optional[str] = None,
    ):
        """
        Initialize the presenter.

        Args:
            console: Rich console instance (creates new if None)
            flip_board: Draw the board from Black's side
            show_full_memory: Print whole working memories instead of plan summaries
            mode_label: Game mode shown in the info panel
        """
        self.console = console or Console()
        self.board_renderer = ChessBoardRenderer(flip_board=flip_board)
        self.show_full_memory = show_full_memory
        self.mode_label = mode_label
        self.ui_mode = UiMode.NORMAL

    # ------------------------------------------------------------------
    # Orchestrator events
    # ------------------------------------------------------------------

    def on_turn_start(self, view: GameView) -> None:
        self.console.print(self.render_view(view))

    def on_turn_end(self, view: GameView, outcome: TurnOutcome) -> None:
        player = view.white if outcome.side is Color.WHITE else view.black
        line = Text()
        line.append(f"{outcome.ply}. ", style="dim")
        line.append(f"{player} ", style="bold")
        line.append(f"played {outcome.move}", style="bold green")
        if outcome.captured:
            line.append(f" (captures {outcome.captured.upper()})", style="magenta")
        self.console.print(line)

        if outcome.notice:
            self.console.print(Text(f"⚠️  {outcome.move} {outcome.notice}", style="yellow"))

    def on_game_over(self, result: GameResult) -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Result", result.result_string)
        table.add_row("Winner", "Draw" if result.is_draw else result.winner.title())
        table.add_row("Reason", result.reason.value.replace("-", " "))
        table.add_row("Moves", str(result.move_count))

        self.console.print(Panel(
            table,
            title="🏁 Game Over",
            border_style="bright_magenta",
            padding=(1, 2),
        ))

    def on_message(self, text: str) -> None:
        self.console.print(Text(text, style="cyan"))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_view(self, view: GameView) -> Group:
        """Board, side panels and memory for one turn."""
        board_panel = self.board_renderer.render_board(view.board, view.last_move)
        side_panel = Group(
            self.board_renderer.render_game_info(view.white, view.black, mode=self.mode_label),
            self.board_renderer.render_move_list(view.history),
            self.board_renderer.render_captured(view.board),
        )

        layout = Table.grid(expand=True)
        layout.add_column(ratio=3)
        layout.add_column(ratio=2)
        layout.add_row(board_panel, side_panel)

        parts = [layout]
        if view.analysis is not None:
            parts.append(Text(f"📊 {view.analysis.summary()}", style="dim"))
            for threat in view.analysis.threats:
                parts.append(Text(f"   ⚠️  {threat}", style="yellow"))

        parts.extend(self._render_memory(view))

        to_play = view.white if view.side_to_move is Color.WHITE else view.black
        parts.append(Text(f"{to_play} ({view.side_to_move.value}) to play...", style="bold"))
        return Group(*parts)

    def _render_memory(self, view: GameView) -> List[Panel]:
        names: Dict[Color, str] = {Color.WHITE: view.white, Color.BLACK: view.black}
        panels = []
        for color, record in view.memory.items():
            panels.append(self.render_memory_panel(names[color], record))
        return panels

    def render_memory_panel(self, name: str, record: MemoryRecord) -> Panel:
        if self.show_full_memory:
            body = format_working_memory(record.content)
        else:
            body = Text(extract_memory_summary(record.content))
        return Panel(
            body,
            title=f"🧠 {name} (memory from move {record.last_updated_turn})",
            border_style="blue",
            padding=(0, 1),
        )

    # ------------------------------------------------------------------
    # Human input
    # ------------------------------------------------------------------

    async def read_move(self, prompt: str) -> Optional[str]:
        """
        Input channel for a HumanPlayer.

        Returns the typed line, or None once the person confirmed they want
        to quit (or closed the input).
        """
        try:
            while True:
                self.ui_mode = UiMode.AWAITING_MOVE_INPUT
                try:
                    line = await asyncio.to_thread(
                        self.console.input, f"[bold]{prompt}[/bold] (or 'quit') > "
                    )
                except (EOFError, KeyboardInterrupt):
                    logger.info("Input closed by user")
                    return None

                if line.strip().lower() not in QUIT_COMMANDS:
                    return line

                self.ui_mode = UiMode.CONFIRMING_QUIT
                try:
                    answer = await asyncio.to_thread(
                        self.console.input, "[yellow]Quit this game? (y/N)[/yellow] "
                    )
                except (EOFError, KeyboardInterrupt):
                    return None
                if answer.strip().lower() in CONFIRM_ANSWERS:
                    return None
        finally:
            self.ui_mode = UiMode.NORMAL

    def show_error(self, text: str) -> None:
        self.console.print(Text(text, style="bold red"))
