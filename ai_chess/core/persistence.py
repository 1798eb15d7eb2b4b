"""
PGN persistence for finished and abandoned games.

Games are written to ``<games_dir>/chess-game-<timestamp>.pgn``. Saving never
fails a game: I/O errors are logged and the intended path is still returned.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import chess.pgn as chess_pgn

from .models import GameMode, GameRecord, GameResult, PlayerSpec, TerminalStatus
from .rules import ChessRules

logger = logging.getLogger(__name__)

EVENT_NAME = "AI Chess Match"
SITE_NAME = "CLI"
ABANDONED_RESULT = "*"
SAVED_GAME_NAME = re.compile(r"^chess-game-(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2})(?:-(\d+))?$")


def _saved_game_order(path: Path):
    """Sort key of (timestamp, same-second counter) for a saved game file."""
    match = SAVED_GAME_NAME.match(path.stem)
    if not match:
        return (path.stem, 0)
    return (match.group(1), int(match.group(2) or 0))


def build_record(
    white: PlayerSpec,
    black: PlayerSpec,
    mode: GameMode,
    moves: List[str],
    result: Optional[GameResult] = None,
    game_id: str = "",
) -> GameRecord:
    """
    Build the persisted record for a game.

    Args:
        white: White player identity
        black: Black player identity
        mode: Game mode tag
        moves: SAN transcript
        result: Final result, or None for an abandoned game
        game_id: Session id

    Returns:
        GameRecord ready for ``PgnGameStore.save``
    """
    if result is None:
        result_string = ABANDONED_RESULT
        termination = TerminalStatus.ABANDONED.value
    else:
        result_string = result.result_string
        termination = result.reason.value

    return GameRecord(
        event=EVENT_NAME,
        white=white.name,
        black=black.name,
        white_model=white.model_label,
        black_model=black.model_label,
        result=result_string,
        moves=list(moves),
        mode=mode,
        termination=termination,
        game_id=game_id,
    )


class PgnGameStore:
    """Writes, lists and reloads PGN game files."""

    def __init__(self, games_dir: Union[str, Path] = "games"):
        self.games_dir = Path(games_dir)

    def save(self, record: GameRecord, rules: ChessRules) -> Path:
        """
        Write the game as PGN.

        Args:
            record: Game metadata and result
            rules: Rules adapter holding the move sequence

        Returns:
            Path of the PGN file (set on ``record.path`` too)
        """
        rules.set_header("Event", record.event)
        rules.set_header("Site", SITE_NAME)
        rules.set_header("Date", record.timestamp.strftime("%Y.%m.%d"))
        rules.set_header("Round", "1")
        rules.set_header("White", record.white)
        rules.set_header("Black", record.black)
        rules.set_header("Mode", record.mode.value)
        rules.set_header("WhiteModel", record.white_model)
        rules.set_header("BlackModel", record.black_model)
        rules.set_header("Result", record.result)
        if record.termination:
            rules.set_header("Termination", record.termination)
        if record.game_id:
            rules.set_header("GameId", record.game_id)

        pgn_path = self._unique_path(record.timestamp)
        record.path = pgn_path

        try:
            self.games_dir.mkdir(parents=True, exist_ok=True)
            with pgn_path.open("w", encoding="utf-8") as f:
                f.write(rules.serialize())
                f.write("\n")
            logger.info(f"Game saved to {pgn_path}")
        except OSError as e:
            logger.error(f"Failed to save PGN {pgn_path}: {e}")

        return pgn_path

    def list_saved_games(self) -> List[Path]:
        """Saved PGN files, newest first."""
        if not self.games_dir.exists():
            return []
        return sorted(self.games_dir.glob("chess-game-*.pgn"), key=_saved_game_order, reverse=True)

    def load_game(self, name: Union[str, Path]) -> ChessRules:
        """
        Load a saved game by file name or path.

        Raises:
            FileNotFoundError: If no such file exists
            ValueError: If the file is not valid PGN
        """
        path = self.resolve_path(name)
        with path.open("r", encoding="utf-8") as f:
            return ChessRules.deserialize(f.read())

    def read_headers(self, name: Union[str, Path]) -> Dict[str, str]:
        """PGN headers of a saved game without replaying its moves."""
        path = self.resolve_path(name)
        with path.open("r", encoding="utf-8") as f:
            headers = chess_pgn.read_headers(f)
        return dict(headers) if headers is not None else {}

    def resolve_path(self, name: Union[str, Path]) -> Path:
        path = Path(name)
        if path.exists():
            return path
        candidate = self.games_dir / path.name
        if candidate.exists():
            return candidate
        raise FileNotFoundError(f"Game file not found: {name}")

    def _unique_path(self, timestamp: datetime) -> Path:
        stamp = timestamp.strftime("%Y-%m-%dT%H-%M-%S")
        pgn_path = self.games_dir / f"chess-game-{stamp}.pgn"
        counter = 1
        while pgn_path.exists():
            pgn_path = self.games_dir / f"chess-game-{stamp}-{counter}.pgn"
            counter += 1
        return pgn_path
