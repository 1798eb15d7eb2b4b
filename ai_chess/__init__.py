"""
AI Chess - play chess in the terminal against agents that keep a working memory.

This package provides a game orchestrator that runs games between a human and
an LLM-backed agent, or between two agents, persisting each agent's strategic
notes across turns and saving finished games as PGN.
"""

__version__ = "1.0.0"
__author__ = "AI Chess Team"
__license__ = "MIT"

# Core imports
from .core.models import Color, Config, GameResult, PlayerSpec, TerminalStatus
from .core.rules import ChessRules
from .core.orchestrator import GameOrchestrator, GameSession
from .agents import AgentPlayer, HumanPlayer
from .ui.dashboard import TerminalPresenter
from .cli import main

__all__ = [
    "Color",
    "Config",
    "GameResult",
    "PlayerSpec",
    "TerminalStatus",
    "ChessRules",
    "GameOrchestrator",
    "GameSession",
    "AgentPlayer",
    "HumanPlayer",
    "TerminalPresenter",
    "main",
]
