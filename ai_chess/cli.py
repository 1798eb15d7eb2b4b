"""
Command-line interface for AI Chess.

This module provides the main entry point and argument parsing, wiring the
players, memory stores, presenter and persistence into a game orchestrator.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .agents import GameCancelled, PlayerCreationError, create_players
from .core.memory import (
    InMemoryMemoryStore,
    MemoryJournal,
    MemoryStoreError,
    SQLiteMemoryStore,
    memory_db_path,
)
from .core.models import Color, Config, GameMode
from .core.orchestrator import GameOrchestrator
from .core.persistence import PgnGameStore
from .llm.models import DEFAULT_MODEL, MODEL_REGISTRY, print_available_models
from .ui.board import ChessBoardRenderer
from .ui.dashboard import TerminalPresenter


def setup_logging(level=logging.WARNING, log_file: Optional[str] = None):
    """
    Setup logging that doesn't interfere with the Rich terminal output.

    Console handlers are removed; records go to the diagnostic log file when
    one is given and are discarded otherwise.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        ))
        root_logger.addHandler(file_handler)
    else:
        root_logger.addHandler(logging.NullHandler())
    root_logger.setLevel(level)


# Initialize with null handler to avoid console interference
setup_logging()
logger = logging.getLogger(__name__)

console = Console()


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="ai-chess",
        description="♟️  AI Chess - play against, or watch, agents that keep a working memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
🎯 Quick Start Examples:
  # Play White against Claude Haiku (default)
  %(prog)s play

  # Play Black against Sonnet
  %(prog)s play --color black --model sonnet

  # Watch two agents play each other
  %(prog)s play --mode agent-vs-agent --white-model opus --black-model gemini-3

  # Reproducible baseline game, no API keys needed
  %(prog)s play --mode agent-vs-agent --white-model random --black-model random --seed 7

📂 Saved games:
  %(prog)s list
  %(prog)s load chess-game-2025-01-01T12-00-00.pgn

🔑 API keys are read from the environment (or a .env file):
  ANTHROPIC_API_KEY, OPENAI_API_KEY, GEMINI_API_KEY
        """
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    play = subparsers.add_parser("play", help="Start a new game (default)")
    play.add_argument(
        "--mode",
        choices=[mode.value for mode in GameMode],
        default=GameMode.HUMAN_VS_AGENT.value,
        help="Who plays (default: %(default)s)"
    )
    play.add_argument(
        "--color",
        choices=[color.value for color in Color],
        default=Color.WHITE.value,
        help="Your color in human-vs-agent mode (default: %(default)s)"
    )
    play.add_argument(
        "--model",
        choices=list(MODEL_REGISTRY),
        help=f"Opponent model in human-vs-agent mode (default: {DEFAULT_MODEL})"
    )
    play.add_argument("--white-model", type=str, help="Model for White in agent-vs-agent mode")
    play.add_argument("--black-model", type=str, help="Model for Black in agent-vs-agent mode")
    play.add_argument("--seed", type=int, help="Seed for fallback moves and the random baseline")
    play.add_argument("--games-dir", type=str, default="games", help="Where PGN files are saved (default: %(default)s)")
    play.add_argument("--memory-dir", type=str, default="memory", help="Where agent memory databases live (default: %(default)s)")
    play.add_argument("--memory-log-dir", type=str, default="memory-logs", help="Where memory journals are written (default: %(default)s)")
    play.add_argument("--error-log", type=str, default="chess-errors.log", help="Diagnostic log file (default: %(default)s)")
    play.add_argument("--delay", type=float, default=0.0, help="Seconds to pause between plies (default: %(default)s)")
    play.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for each agent reply (default: %(default)s)")
    play.add_argument("--full-memory", action="store_true", help="Show whole working memories instead of plan summaries")
    play.add_argument("--verbose", "-v", action="store_true", help="Log debug details to the diagnostic log")

    list_parser = subparsers.add_parser("list", help="List saved games")
    list_parser.add_argument("--games-dir", type=str, default="games", help="Where PGN files are saved (default: %(default)s)")

    load = subparsers.add_parser("load", help="Show a saved game")
    load.add_argument("file", type=str, help="PGN file name or path")
    load.add_argument("--games-dir", type=str, default="games", help="Where PGN files are saved (default: %(default)s)")

    subparsers.add_parser("models", help="List available models")

    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Build the game configuration from parsed ``play`` arguments."""
    mode = GameMode(args.mode)
    white_model = args.white_model or DEFAULT_MODEL
    black_model = args.black_model or DEFAULT_MODEL

    if mode is GameMode.HUMAN_VS_AGENT and args.model:
        if args.color == Color.WHITE.value:
            black_model = args.model
        else:
            white_model = args.model

    return Config(
        mode=mode.value,
        human_color=args.color,
        white_model=white_model,
        black_model=black_model,
        seed=args.seed,
        turn_delay=args.delay,
        llm_timeout=args.timeout,
        games_dir=args.games_dir,
        memory_dir=args.memory_dir,
        memory_log_dir=args.memory_log_dir,
        error_log=args.error_log,
        log_level="DEBUG" if args.verbose else Config.log_level,
    )


async def play_game(config: Config, show_full_memory: bool = False) -> int:
    """Run one game from configuration; returns a process exit code."""
    human_is_black = config.game_mode is GameMode.HUMAN_VS_AGENT and config.human_color == Color.BLACK.value
    presenter = TerminalPresenter(
        console,
        flip_board=human_is_black,
        show_full_memory=show_full_memory,
        mode_label=config.mode,
    )

    try:
        white, black = create_players(config, presenter.read_move, presenter.show_error)
    except PlayerCreationError as e:
        console.print(f"[bold red]Could not create players: {e}[/bold red]")
        return 1

    orchestrator = GameOrchestrator(
        presenter=presenter,
        persistence=PgnGameStore(config.games_dir),
        journal=MemoryJournal(Path(config.memory_log_dir)),
        seed=config.seed,
        turn_delay=config.turn_delay,
    )
    for player in (white, black):
        if player.uses_memory:
            db_path = memory_db_path(Path(config.memory_dir), player.name)
            try:
                store = SQLiteMemoryStore(db_path)
            except (MemoryStoreError, OSError) as e:
                logger.error(f"Memory database unavailable for {player.name}, keeping memory in-process: {e}")
                console.print(f"[yellow]Memory for {player.name} will not be saved: {escape(str(e))}[/yellow]")
                store = InMemoryMemoryStore()
            orchestrator.register_memory_store(player.player_id, store)

    session = orchestrator.create_session(white, black, mode=config.game_mode)
    logger.info(f"Starting {config.mode} game {session.game_id}: {white} vs {black}")

    try:
        await orchestrator.play(session)
    except GameCancelled:
        path = session.record.path if session.record else None
        console.print(f"\n[bold yellow]Game abandoned.[/bold yellow] Saved to: [bold]{path}[/bold]")
        return 0
    except asyncio.CancelledError:
        if not session.is_terminal:
            orchestrator.abandon(session)
        raise
    finally:
        for player in (white, black):
            await player.close()

    if session.record and session.record.path:
        console.print(f"Game saved to: [bold]{session.record.path}[/bold]")
    return 0


def list_games(games_dir: str) -> int:
    store = PgnGameStore(games_dir)
    games = store.list_saved_games()
    if not games:
        console.print(f"[yellow]No saved games in {games_dir}[/yellow]")
        return 0

    table = Table(title="Saved Games", title_style="bold cyan")
    table.add_column("File", style="bold")
    table.add_column("White")
    table.add_column("Black")
    table.add_column("Mode", style="magenta")
    table.add_column("Result", justify="center")
    table.add_column("Termination", style="dim")

    for path in games:
        try:
            headers = store.read_headers(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable game file {path}: {e}")
            continue
        table.add_row(
            path.name,
            headers.get("White", "?"),
            headers.get("Black", "?"),
            headers.get("Mode", ""),
            headers.get("Result", "*"),
            headers.get("Termination", ""),
        )

    console.print(table)
    return 0


def load_game(name: str, games_dir: str) -> int:
    store = PgnGameStore(games_dir)
    try:
        rules = store.load_game(name)
    except FileNotFoundError as e:
        console.print(f"[bold red]{e}[/bold red]")
        return 1
    except ValueError as e:
        console.print(f"[bold red]Could not read {name}: {e}[/bold red]")
        return 1

    headers = rules.headers
    renderer = ChessBoardRenderer()
    console.print(renderer.render_game_info(
        headers.get("White", "?"),
        headers.get("Black", "?"),
        result=headers.get("Result"),
        mode=headers.get("Mode"),
    ))
    console.print(renderer.render_move_list(rules.history(), max_moves=len(rules.history()) or 1))
    console.print(renderer.render_board(rules.board, rules.last_move()))
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    if args.command == "models":
        print_available_models(console)
        return 0

    if args.command == "list":
        return list_games(args.games_dir)

    if args.command == "load":
        return load_game(args.file, args.games_dir)

    try:
        config = config_from_args(args)
    except ValueError as e:
        console.print(f"[bold red]Invalid configuration: {e}[/bold red]")
        return 1

    setup_logging(getattr(logging, config.log_level), config.error_log)

    try:
        return await play_game(config, show_full_memory=args.full_memory)
    except Exception as e:
        console.print(f"\n[bold red]Game failed: {e}[/bold red]")
        logger.exception("Game failed with exception")
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = create_argument_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0].startswith("-") and argv[0] not in ("-h", "--help", "--version")):
        argv = ["play"] + argv
    args = parser.parse_args(argv)

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        console.print("\n[bold yellow]Interrupted by user[/bold yellow]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
