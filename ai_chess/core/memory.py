"""
Working-memory storage for agent players.

Memory is keyed by ``(game_id, player_id)``. Records for one key are written
only by the orchestrator, once per turn of the owning player, so there is a
single writer per key.

Features:
- SQLite store that survives process restarts
- In-memory store for tests and throwaway games
- Plain-text journal of memory snapshots for later review
"""

from __future__ import annotations

import logging
import re
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .models import MemoryRecord

logger = logging.getLogger(__name__)


class MemoryStoreError(Exception):
    """Raised when a memory store cannot read or write a record."""
    pass


class MemoryStore(ABC):
    """Keyed store of working-memory records."""

    @abstractmethod
    def get(self, game_id: str, player_id: str) -> Optional[MemoryRecord]:
        """Return the latest record for the key, or None if nothing was stored."""
        pass

    @abstractmethod
    def put(self, game_id: str, player_id: str, record: MemoryRecord) -> None:
        """Store a record, replacing any previous one for the key."""
        pass

    def history(self, game_id: str, player_id: str) -> List[MemoryRecord]:
        """All records written for the key, oldest first."""
        record = self.get(game_id, player_id)
        return [record] if record else []


class InMemoryMemoryStore(MemoryStore):
    """Dictionary-backed store; contents are lost with the process."""

    def __init__(self):
        self._records: Dict[Tuple[str, str], List[MemoryRecord]] = {}

    def get(self, game_id: str, player_id: str) -> Optional[MemoryRecord]:
        records = self._records.get((game_id, player_id))
        return records[-1] if records else None

    def put(self, game_id: str, player_id: str, record: MemoryRecord) -> None:
        self._records.setdefault((game_id, player_id), []).append(record)

    def history(self, game_id: str, player_id: str) -> List[MemoryRecord]:
        return list(self._records.get((game_id, player_id), []))


class SQLiteMemoryStore(MemoryStore):
    """SQLite-backed store, durable across restarts."""

    def __init__(self, db_path: Path):
        """Initialize the store, creating the database file if needed."""
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS working_memory (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        game_id TEXT NOT NULL,
                        player_id TEXT NOT NULL,
                        content TEXT NOT NULL,
                        last_updated_turn INTEGER NOT NULL,
                        updated_at DATETIME NOT NULL
                    );

                    CREATE INDEX IF NOT EXISTS idx_memory_key ON working_memory (game_id, player_id, id);
                """)
        except sqlite3.Error as e:
            raise MemoryStoreError(f"Failed to initialize memory database {self.db_path}: {e}") from e

    def get(self, game_id: str, player_id: str) -> Optional[MemoryRecord]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.row_factory = sqlite3.Row
                row = conn.execute("""
                    SELECT content, last_updated_turn, updated_at FROM working_memory
                    WHERE game_id = ? AND player_id = ?
                    ORDER BY id DESC LIMIT 1
                """, (game_id, player_id)).fetchone()
        except sqlite3.Error as e:
            raise MemoryStoreError(f"Failed to read memory for {player_id} in {game_id}: {e}") from e

        return self._row_to_record(row) if row else None

    def put(self, game_id: str, player_id: str, record: MemoryRecord) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO working_memory
                    (game_id, player_id, content, last_updated_turn, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    game_id,
                    player_id,
                    record.content,
                    record.last_updated_turn,
                    record.updated_at.isoformat(),
                ))
        except sqlite3.Error as e:
            raise MemoryStoreError(f"Failed to write memory for {player_id} in {game_id}: {e}") from e

    def history(self, game_id: str, player_id: str) -> List[MemoryRecord]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute("""
                    SELECT content, last_updated_turn, updated_at FROM working_memory
                    WHERE game_id = ? AND player_id = ?
                    ORDER BY id
                """, (game_id, player_id)).fetchall()
        except sqlite3.Error as e:
            raise MemoryStoreError(f"Failed to read memory history for {player_id} in {game_id}: {e}") from e

        return [self._row_to_record(row) for row in rows]

    def games(self) -> List[str]:
        """Game ids with at least one stored record, most recent first."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                rows = conn.execute("""
                    SELECT game_id FROM working_memory
                    GROUP BY game_id
                    ORDER BY MAX(id) DESC
                """).fetchall()
        except sqlite3.Error as e:
            raise MemoryStoreError(f"Failed to list games in {self.db_path}: {e}") from e
        return [row[0] for row in rows]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> MemoryRecord:
        return MemoryRecord(
            content=row["content"],
            last_updated_turn=row["last_updated_turn"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def memory_db_path(memory_dir: Path, agent_name: str) -> Path:
    """Database file for one agent identity: ``chess-memory-<agent>.db``."""
    return Path(memory_dir) / f"chess-memory-{_safe_name(agent_name)}.db"


def _safe_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "-", name).strip("-").lower() or "agent"


class MemoryJournal:
    """
    Append-only text log of memory snapshots.

    One file per agent and game (``<agent>_<game_id>.txt``). Journal failures
    are logged and never interrupt a game.
    """

    def __init__(self, log_dir: Path):
        self.log_dir = Path(log_dir)

    def path_for(self, agent_name: str, game_id: str) -> Path:
        return self.log_dir / f"{_safe_name(agent_name)}_{_safe_name(game_id)}.txt"

    def record(self, agent_name: str, game_id: str, move_number: int, record: MemoryRecord) -> Optional[Path]:
        """Append one memory snapshot; returns the file written, or None on failure."""
        entry = (
            f"{'=' * 60}\n"
            f"Timestamp: {record.updated_at.isoformat()}\n"
            f"Agent: {agent_name}\n"
            f"Game: {game_id}\n"
            f"Move: {move_number}\n"
            f"{'-' * 60}\n"
            f"{record.content.strip()}\n\n"
        )
        return self._append(agent_name, game_id, entry)

    def summarize(self, agent_name: str, game_id: str, result: str, reason: str, moves: List[str]) -> Optional[Path]:
        """Append the end-of-game summary."""
        entry = (
            f"{'#' * 60}\n"
            f"GAME OVER {datetime.utcnow().isoformat()}\n"
            f"Result: {result} ({reason})\n"
            f"Moves: {len(moves)}\n"
            f"Transcript: {' '.join(moves)}\n\n"
        )
        return self._append(agent_name, game_id, entry)

    def _append(self, agent_name: str, game_id: str, entry: str) -> Optional[Path]:
        path = self.path_for(agent_name, game_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(entry)
        except OSError as e:
            logger.error(f"Failed to write memory journal {path}: {e}")
            return None
        return path
