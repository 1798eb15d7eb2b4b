"""
Players Module

Everything that can sit at the board: the Player abstraction the orchestrator
talks to, the keyboard-driven HumanPlayer, and the strategist-backed
AgentPlayer that keeps a working memory across its turns.
"""

from .base import Player, TurnContext, GameCancelled
from .human import HumanPlayer
from .agent_player import AgentPlayer
from .factory import (
    PlayerCreationError,
    create_agent_player,
    create_players,
    parse_model_name,
)

__all__ = [
    # Base classes
    "Player",
    "TurnContext",
    "GameCancelled",

    # Player types
    "HumanPlayer",
    "AgentPlayer",

    # Factory
    "PlayerCreationError",
    "create_agent_player",
    "create_players",
    "parse_model_name",
]
