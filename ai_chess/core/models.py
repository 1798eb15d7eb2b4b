"""
Core data models for AI Chess.

This module defines the fundamental data structures used throughout the application
for representing players, turns, results, working memory, and configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional


class Color(str, Enum):
    """Side of the board."""

    WHITE = "white"
    BLACK = "black"

    @property
    def opposite(self) -> Color:
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    def __str__(self) -> str:
        return self.value


class TerminalStatus(str, Enum):
    """Status of a game session, from in-progress to the way it ended."""

    IN_PROGRESS = "in-progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_BY_REPETITION = "draw-by-repetition"
    DRAW_BY_INSUFFICIENT_MATERIAL = "draw-by-insufficient-material"
    DRAW_BY_FIFTY_MOVE = "draw-by-fifty-move"
    RESIGNATION = "resignation"  # reachable, no player resigns yet
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not TerminalStatus.IN_PROGRESS

    def __str__(self) -> str:
        return self.value


class MoveOutcome(str, Enum):
    """How a turn's move was obtained."""

    APPLIED = "applied"
    REJECTED_ILLEGAL = "rejected-illegal"
    UNPARSEABLE = "unparseable"
    FALLBACK_RANDOM = "fallback-random"

    @property
    def is_fallback(self) -> bool:
        return self is not MoveOutcome.APPLIED


class PlayerKind(str, Enum):
    """Who controls a side."""

    HUMAN = "human"
    AGENT = "agent"


class GameMode(str, Enum):
    """Free-form mode tag written to saved games."""

    HUMAN_VS_AGENT = "human-vs-agent"
    AGENT_VS_AGENT = "agent-vs-agent"


@dataclass
class PlayerSpec:
    """Identity of a player for one game."""

    name: str
    color: Color
    kind: PlayerKind = PlayerKind.AGENT
    provider: str = ""   # "anthropic", "openai", "random", ... (empty for humans)
    model: str = ""      # Provider model id (empty for humans)

    def __post_init__(self):
        """Validate player specification after initialization."""
        if not self.name:
            raise ValueError("Player name cannot be empty")
        self.color = Color(self.color)
        self.provider = self.provider.lower()

    @property
    def player_id(self) -> str:
        """Stable identity used to key working memory."""
        return f"{self.name}:{self.color.value}"

    @property
    def model_label(self) -> str:
        """Model/strategy identifier as written to saved games."""
        if self.kind is PlayerKind.HUMAN:
            return "human"
        return f"{self.provider}:{self.model}" if self.model else self.provider

    def __str__(self) -> str:
        if self.kind is PlayerKind.HUMAN:
            return f"{self.name} (human)"
        return f"{self.name} ({self.model_label})"


@dataclass
class MemoryRecord:
    """Accumulated strategic notes for one (game, player) pair."""

    content: str = ""
    last_updated_turn: int = 0
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_empty(self) -> bool:
        return not self.content.strip()


@dataclass
class PlayerReply:
    """What a player produced for one turn."""

    text: str
    memory: Optional[MemoryRecord] = None


@dataclass
class Resolution:
    """Result of reconciling a player's text against the legal moves."""

    move: str                   # Always a member of the legal-move set
    outcome: MoveOutcome
    candidate: Optional[str] = None
    raw_text: str = ""

    @property
    def used_fallback(self) -> bool:
        return self.outcome.is_fallback


@dataclass
class TurnOutcome:
    """Report of one processed turn."""

    side: Color
    move: str
    outcome: MoveOutcome
    status: TerminalStatus
    ply: int
    candidate: Optional[str] = None
    captured: Optional[str] = None
    notice: Optional[str] = None   # Fallback announcement for the presentation layer

    @property
    def used_fallback(self) -> bool:
        return self.outcome.is_fallback


@dataclass(frozen=True)
class GameResult:
    """Final, immutable result of a game."""

    winner: str           # "white", "black" or "draw"
    reason: TerminalStatus
    move_count: int       # Plies applied
    moves: tuple = ()     # SAN transcript
    pgn: str = ""

    @property
    def result_string(self) -> str:
        """PGN result token."""
        if self.winner == Color.WHITE.value:
            return "1-0"
        if self.winner == Color.BLACK.value:
            return "0-1"
        return "1/2-1/2"

    @property
    def is_draw(self) -> bool:
        return self.winner == "draw"


@dataclass
class GameRecord:
    """Record of a finished (or abandoned) game handed to persistence."""

    event: str
    white: str
    black: str
    white_model: str
    black_model: str
    result: str                 # "1-0", "0-1", "1/2-1/2" or "*" when abandoned
    moves: List[str]
    mode: GameMode
    termination: str = ""
    game_id: str = ""
    path: Optional[Path] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def ply_count(self) -> int:
        return len(self.moves)


@dataclass
class Config:
    """Configuration settings for AI Chess."""

    # Game settings
    mode: str = GameMode.HUMAN_VS_AGENT.value
    human_color: str = Color.WHITE.value
    white_model: str = "haiku"
    black_model: str = "haiku"
    seed: Optional[int] = None
    turn_delay: float = 0.0  # Seconds to pause after each ply, for watching

    # LLM settings
    llm_timeout: float = 60.0
    llm_temperature: float = 0.7
    max_output_tokens: int = 2048

    # Output settings
    games_dir: str = "games"
    memory_dir: str = "memory"
    memory_log_dir: str = "memory-logs"
    error_log: str = "chess-errors.log"
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.mode not in {m.value for m in GameMode}:
            raise ValueError(f"Mode must be one of: {', '.join(m.value for m in GameMode)}")
        if self.human_color not in {c.value for c in Color}:
            raise ValueError("Color must be either 'white' or 'black'")

    @property
    def game_mode(self) -> GameMode:
        return GameMode(self.mode)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            field.name: getattr(self, field.name)
            for field in self.__dataclass_fields__.values()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Config:
        """Create config from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
