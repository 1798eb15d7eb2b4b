"""
Unit tests for players and the player factory.

Tests the human input loop, agent memory handling, and seat assignment.
"""

import asyncio
import unittest
from unittest.mock import AsyncMock, Mock

from ai_chess.agents import (
    AgentPlayer,
    GameCancelled,
    HumanPlayer,
    PlayerCreationError,
    create_agent_player,
    create_players,
    parse_model_name,
)
from ai_chess.agents.base import TurnContext
from ai_chess.agents.factory import agent_name_for
from ai_chess.core.models import Color, Config, GameMode, MemoryRecord, PlayerKind, PlayerSpec
from ai_chess.core.rules import ChessRules
from ai_chess.llm.client import RandomStrategist, StrategistReply


def run_async(coro):
    """Helper to run async tests."""
    return asyncio.run(coro)


def async_test(test_func):
    """Decorator for async test methods."""
    def wrapper(self):
        return run_async(test_func(self))
    return wrapper


def start_context():
    rules = ChessRules()
    return TurnContext(
        game_id="game-test",
        color=Color.WHITE,
        fen=rules.fen(),
        board_ascii=rules.ascii(),
        legal_moves=rules.legal_moves(),
    )


def scripted_input(*lines):
    """Input channel returning the given lines in order."""
    queue = list(lines)

    async def read(prompt):
        return queue.pop(0)
    return read


class HumanPlayerTests(unittest.TestCase):
    """Test HumanPlayer."""

    @async_test
    async def test_legal_move_is_returned(self):
        player = HumanPlayer(Color.WHITE, scripted_input("e4"))
        reply = await player.request_move(start_context(), None)
        self.assertEqual(reply.text, "e4")
        self.assertIsNone(reply.memory)

    @async_test
    async def test_illegal_move_reprompts(self):
        """Test illegal and empty input ask again with an explanation."""
        messages = []
        player = HumanPlayer(Color.WHITE, scripted_input("e5", "", "  Nf3 "), message_channel=messages.append)
        reply = await player.request_move(start_context(), None)
        self.assertEqual(reply.text, "Nf3")
        self.assertEqual(len(messages), 1)
        self.assertIn("'e5' is not a legal move", messages[0])

    @async_test
    async def test_quit_words_cancel(self):
        for word in ("quit", "EXIT", "resign", ":q"):
            player = HumanPlayer(Color.WHITE, scripted_input(word))
            with self.assertRaises(GameCancelled):
                await player.request_move(start_context(), None)

    @async_test
    async def test_closed_input_cancels(self):
        player = HumanPlayer(Color.WHITE, scripted_input(None))
        with self.assertRaises(GameCancelled):
            await player.request_move(start_context(), None)

        async def eof(prompt):
            raise EOFError()
        with self.assertRaises(GameCancelled):
            await HumanPlayer(Color.WHITE, eof).request_move(start_context(), None)

    def test_humans_do_not_use_memory(self):
        player = HumanPlayer(Color.BLACK, scripted_input())
        self.assertEqual(player.kind, PlayerKind.HUMAN)
        self.assertFalse(player.uses_memory)
        self.assertEqual(player.player_id, "You:black")


class AgentPlayerTests(unittest.TestCase):
    """Test AgentPlayer."""

    def setUp(self):
        self.strategist = Mock()
        self.strategist.system_prompt = ""
        self.spec = PlayerSpec(name="AI-Black", color=Color.BLACK, provider="anthropic", model="m")

    def test_system_prompt_is_filled_in(self):
        AgentPlayer(self.spec, self.strategist)
        self.assertIn('"AI-Black"', self.strategist.system_prompt)

    @async_test
    async def test_reply_with_memory(self):
        self.strategist.generate = AsyncMock(return_value=StrategistReply(text="MOVE: e4", memory="plan: center"))
        player = AgentPlayer(self.spec, self.strategist)
        reply = await player.request_move(start_context(), None)

        self.assertEqual(reply.text, "MOVE: e4")
        self.assertEqual(reply.memory.content, "plan: center")
        self.assertEqual(reply.memory.last_updated_turn, 1)
        self.assertTrue(player.uses_memory)

    @async_test
    async def test_prior_memory_reaches_prompt(self):
        self.strategist.generate = AsyncMock(return_value=StrategistReply(text="MOVE: d4"))
        player = AgentPlayer(self.spec, self.strategist)
        reply = await player.request_move(start_context(), MemoryRecord("Opponent blunders knights.", 3))

        self.assertIsNone(reply.memory)
        self.assertIn("Opponent blunders knights.", player.last_prompt)
        prompt_arg = self.strategist.generate.call_args[0][0]
        self.assertEqual(prompt_arg, player.last_prompt)


class FactoryTests(unittest.TestCase):
    """Test model parsing and player creation."""

    def test_parse_model_name(self):
        self.assertEqual(parse_model_name("haiku"), ("anthropic", "claude-haiku-4-5-20251001"))
        self.assertEqual(parse_model_name("openai:gpt-4o"), ("openai", "gpt-4o"))
        with self.assertRaises(PlayerCreationError):
            parse_model_name("deep-blue")

    def test_agent_names(self):
        self.assertEqual(agent_name_for(Color.WHITE, GameMode.AGENT_VS_AGENT), "White-AI")
        self.assertEqual(agent_name_for(Color.BLACK, GameMode.HUMAN_VS_AGENT), "AI-Black")

    def test_create_random_agent(self):
        player = create_agent_player("random", Color.WHITE, seed=5)
        self.assertIsInstance(player.strategist, RandomStrategist)
        self.assertEqual(player.name, "White-AI")
        self.assertEqual(player.spec.model_label, "random")

    def test_unknown_provider_fails(self):
        with self.assertRaises(PlayerCreationError):
            create_agent_player("nobody:model", Color.WHITE)

    def test_agent_vs_agent_seats(self):
        config = Config(mode="agent-vs-agent", white_model="random", black_model="random", seed=1)
        white, black = create_players(config)
        self.assertEqual((white.name, black.name), ("White-AI", "Black-AI"))
        self.assertEqual((white.color, black.color), (Color.WHITE, Color.BLACK))

    def test_human_plays_black(self):
        config = Config(mode="human-vs-agent", human_color="black", white_model="random")
        white, black = create_players(config, scripted_input())
        self.assertIsInstance(white, AgentPlayer)
        self.assertEqual(white.name, "AI-White")
        self.assertIsInstance(black, HumanPlayer)

    def test_human_mode_needs_input(self):
        with self.assertRaises(PlayerCreationError):
            create_players(Config(mode="human-vs-agent", black_model="random"))


if __name__ == "__main__":
    unittest.main()
