"""
Base Player Implementation

This module provides the Player abstraction the game orchestrator talks to.
A player is asked for a move once per turn of its color and answers with
free text (for agents: reasoning followed by a move) plus, for players that
keep one, an updated working memory.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import chess

from ..core.evaluator import PositionAnalysis
from ..core.models import Color, MemoryRecord, PlayerKind, PlayerReply, PlayerSpec

logger = logging.getLogger(__name__)


class GameCancelled(Exception):
    """Raised when a human player asks to leave the game."""
    pass


@dataclass
class TurnContext:
    """Everything a player may look at before choosing a move."""

    game_id: str
    color: Color
    fen: str
    board_ascii: str
    legal_moves: List[str]
    history: List[str] = field(default_factory=list)
    move_number: int = 1
    last_move: Optional[str] = None
    in_check: bool = False
    analysis: Optional[PositionAnalysis] = None
    opponent: str = ""
    board: Optional[chess.Board] = None

    @property
    def ply(self) -> int:
        return len(self.history)


class Player(ABC):
    """
    Base class for everything that can play a side.

    Subclasses implement ``request_move``. Players never touch the board or
    the memory store directly: the orchestrator owns both.
    """

    def __init__(self, spec: PlayerSpec):
        self.spec = spec

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def color(self) -> Color:
        return self.spec.color

    @property
    def kind(self) -> PlayerKind:
        return self.spec.kind

    @property
    def player_id(self) -> str:
        return self.spec.player_id

    @property
    def uses_memory(self) -> bool:
        """Whether the orchestrator should load and store working memory for this player."""
        return self.kind is PlayerKind.AGENT

    @abstractmethod
    async def request_move(self, context: TurnContext, prior_memory: Optional[MemoryRecord]) -> PlayerReply:
        """
        Produce this turn's output.

        Args:
            context: Current position and game facts
            prior_memory: Latest stored working memory (None if none yet)

        Returns:
            PlayerReply with the raw text and, optionally, updated memory

        Raises:
            GameCancelled: If a human asked to quit
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the player."""
        pass

    def __str__(self) -> str:
        return str(self.spec)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', color='{self.color.value}')"
