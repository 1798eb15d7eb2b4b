"""
Core package for AI Chess.

This package contains the fundamental components for running a game: data
models, the rules adapter, position evaluation, move resolution, working
memory storage and PGN persistence.

The game orchestrator depends on the player abstraction in ``ai_chess.agents``,
so it is not re-exported here: import it from ``ai_chess.core.orchestrator``.
"""

from .models import (
    Color,
    TerminalStatus,
    MoveOutcome,
    PlayerKind,
    GameMode,
    PlayerSpec,
    MemoryRecord,
    PlayerReply,
    Resolution,
    TurnOutcome,
    GameResult,
    GameRecord,
    Config,
)

from .rules import ChessRules, MoveApplication, RulesContractError

from .evaluator import (
    BoardSnapshot,
    GamePhase,
    PositionAnalysis,
    analyze_board,
    evaluate_position,
)

from .resolver import extract_move, resolve

from .memory import (
    MemoryStore,
    MemoryStoreError,
    InMemoryMemoryStore,
    SQLiteMemoryStore,
    MemoryJournal,
    memory_db_path,
)

from .persistence import PgnGameStore, build_record

__all__ = [
    # Data models
    "Color",
    "TerminalStatus",
    "MoveOutcome",
    "PlayerKind",
    "GameMode",
    "PlayerSpec",
    "MemoryRecord",
    "PlayerReply",
    "Resolution",
    "TurnOutcome",
    "GameResult",
    "GameRecord",
    "Config",

    # Rules and evaluation
    "ChessRules",
    "MoveApplication",
    "RulesContractError",
    "BoardSnapshot",
    "GamePhase",
    "PositionAnalysis",
    "analyze_board",
    "evaluate_position",

    # Move resolution
    "extract_move",
    "resolve",

    # Memory and persistence
    "MemoryStore",
    "MemoryStoreError",
    "InMemoryMemoryStore",
    "SQLiteMemoryStore",
    "MemoryJournal",
    "memory_db_path",
    "PgnGameStore",
    "build_record",
]
