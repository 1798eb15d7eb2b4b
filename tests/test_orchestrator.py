"""
Unit tests for the game orchestrator.

Tests turn alternation, move resolution and fallbacks, working-memory
bookkeeping, terminal handling, abandonment and persistence.
"""

import asyncio
import random
import tempfile
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from ai_chess.agents import AgentPlayer, GameCancelled, create_agent_player
from ai_chess.agents.base import Player
from ai_chess.core.memory import InMemoryMemoryStore, MemoryJournal, MemoryStoreError
from ai_chess.core.models import (
    Color,
    GameMode,
    MemoryRecord,
    MoveOutcome,
    PlayerKind,
    PlayerReply,
    PlayerSpec,
    TerminalStatus,
)
from ai_chess.core.orchestrator import (
    GameOrchestrator,
    OrchestratorState,
    PresentationSink,
    SessionClosedError,
)
from ai_chess.core.persistence import PgnGameStore
from ai_chess.core.rules import ChessRules, MoveApplication, RulesContractError
from ai_chess.llm.client import Strategist, StrategistReply


def run_async(coro):
    """Helper to run async tests."""
    return asyncio.run(coro)


def async_test(test_func):
    """Decorator for async test methods."""
    def wrapper(self):
        return run_async(test_func(self))
    return wrapper


class ScriptedPlayer(Player):
    """Player whose output comes from a function of the turn context."""

    def __init__(self, name, color, script, kind=PlayerKind.AGENT):
        super().__init__(PlayerSpec(name=name, color=color, kind=kind, provider="scripted"))
        self.script = script
        self.calls = []

    async def request_move(self, context, prior_memory=None):
        self.calls.append((context, prior_memory))
        return self.script(context, prior_memory)


def first_legal(context, prior_memory):
    return PlayerReply(text=context.legal_moves[0])


def scripted_moves(*moves):
    queue = list(moves)

    def script(context, prior_memory):
        return PlayerReply(text=queue.pop(0))
    return script


class RecordingPresenter(PresentationSink):
    """Presentation sink that records every event."""

    def __init__(self):
        self.events = []

    def on_turn_start(self, view):
        self.events.append(("turn_start", view))

    def on_turn_end(self, view, outcome):
        self.events.append(("turn_end", outcome))

    def on_game_over(self, result):
        self.events.append(("game_over", result))

    def on_message(self, text):
        self.events.append(("message", text))

    def outcomes(self):
        return [payload for name, payload in self.events if name == "turn_end"]


class FailingStrategist(Strategist):
    """Strategist whose every call fails."""

    provider_name = "failing"

    async def generate(self, prompt, context=None):
        raise RuntimeError("provider exploded")


class MemoryStrategist(Strategist):
    """Strategist that plays the first legal move and writes a numbered memory."""

    provider_name = "memory"

    async def generate(self, prompt, context=None):
        move = context.legal_moves[0]
        return StrategistReply(text=f"MOVE: {move}", memory=f"notes after move {context.move_number}")


class ScriptedStrategist(Strategist):
    """Strategist replying with fixed moves and a note naming each one."""

    provider_name = "scripted"

    def __init__(self, *moves):
        super().__init__("scripted")
        self.moves = list(moves)

    async def generate(self, prompt, context=None):
        move = self.moves.pop(0)
        return StrategistReply(text=f"Thinking...\nMOVE: {move}", memory=f"notes {move}")


class OrchestratorTests(unittest.TestCase):
    """Test GameOrchestrator."""

    def setUp(self):
        self.presenter = RecordingPresenter()
        self.store = InMemoryMemoryStore()
        self.orchestrator = GameOrchestrator(
            memory_store=self.store,
            presenter=self.presenter,
            rng=random.Random(7),
        )

    def _session(self, white_script, black_script, **kwargs):
        white = ScriptedPlayer("White-AI", Color.WHITE, white_script)
        black = ScriptedPlayer("Black-AI", Color.BLACK, black_script)
        return self.orchestrator.create_session(white, black, **kwargs)

    @async_test
    async def test_first_legal_move_transcript(self):
        """Test four plies of 'always pick the first legal move'."""
        session = self._session(first_legal, first_legal)

        expected = ChessRules()
        for _ in range(4):
            expected.apply_move(expected.legal_moves()[0])
            await self.orchestrator.run_turn(session)

        self.assertEqual(session.rules.history(), expected.history())
        self.assertEqual(session.rules.fen(), expected.fen())
        self.assertTrue(all(o.outcome is MoveOutcome.APPLIED for o in self.presenter.outcomes()))

    @async_test
    async def test_sides_alternate(self):
        session = self._session(first_legal, first_legal)
        for _ in range(4):
            await self.orchestrator.run_turn(session)

        sides = [outcome.side for outcome in self.presenter.outcomes()]
        self.assertEqual(sides, [Color.WHITE, Color.BLACK, Color.WHITE, Color.BLACK])
        self.assertEqual(len(session.white.calls), 2)
        self.assertEqual(len(session.black.calls), 2)
        self.assertEqual([o.ply for o in self.presenter.outcomes()], [1, 2, 3, 4])

    @async_test
    async def test_reasoning_text_resolves_to_final_move(self):
        session = self._session(
            lambda c, m: PlayerReply(text="I will play the rook move... wait, actually Nf3 is better. Nf3."),
            first_legal,
        )
        outcome = await self.orchestrator.run_turn(session)
        self.assertEqual(outcome.move, "Nf3")
        self.assertEqual(outcome.outcome, MoveOutcome.APPLIED)
        self.assertIsNone(outcome.notice)

    @async_test
    async def test_unparseable_text_falls_back_with_notice(self):
        """Test a reply without a move still plays a legal move and says so."""
        session = self._session(lambda c, m: PlayerReply(text="Hmm, hard to say."), first_legal)
        legal = ChessRules().legal_moves()

        outcome = await self.orchestrator.run_turn(session)

        self.assertIn(outcome.move, legal)
        self.assertEqual(outcome.outcome, MoveOutcome.UNPARSEABLE)
        self.assertTrue(outcome.used_fallback)
        self.assertIn("played automatically", outcome.notice)
        self.assertEqual(session.fallback_count, 1)
        self.assertIn(("turn_end", outcome), self.presenter.events)

    @async_test
    async def test_illegal_move_falls_back(self):
        session = self._session(lambda c, m: PlayerReply(text="MOVE: Qxf7"), first_legal)
        outcome = await self.orchestrator.run_turn(session)
        self.assertEqual(outcome.outcome, MoveOutcome.REJECTED_ILLEGAL)
        self.assertEqual(outcome.candidate, "Qxf7")
        self.assertIn("illegal move Qxf7", outcome.notice)

    @async_test
    async def test_strategist_errors_fall_back_until_game_ends(self):
        """Test a provider that always throws never stops the game."""
        white = create_agent_player("random", Color.WHITE, seed=3)
        black = AgentPlayer(
            PlayerSpec(name="Black-AI", color=Color.BLACK, provider="failing"),
            FailingStrategist("broken"),
        )
        session = self.orchestrator.create_session(white, black)

        result = await self.orchestrator.play(session)

        self.assertTrue(session.is_terminal)
        self.assertTrue(result.reason.is_terminal)
        self.assertEqual(result.move_count, len(result.moves))
        black_outcomes = [o for o in self.presenter.outcomes() if o.side is Color.BLACK]
        self.assertTrue(black_outcomes)
        self.assertTrue(all(o.outcome is MoveOutcome.FALLBACK_RANDOM for o in black_outcomes))
        self.assertIn("player error (RuntimeError)", black_outcomes[0].notice)
        self.assertIsNone(self.store.get(session.game_id, black.player_id))

    @async_test
    async def test_random_game_is_reproducible(self):
        async def play_once():
            orchestrator = GameOrchestrator(seed=11)
            white = create_agent_player("random", Color.WHITE, seed=1)
            black = create_agent_player("random", Color.BLACK, seed=2)
            session = orchestrator.create_session(white, black)
            return await orchestrator.play(session)

        first = await play_once()
        second = await play_once()
        self.assertEqual(first.moves, second.moves)
        self.assertEqual(first.reason, second.reason)

    @async_test
    async def test_memory_written_only_after_owner_turn(self):
        white = AgentPlayer(PlayerSpec(name="White-AI", color=Color.WHITE, provider="memory"), MemoryStrategist("m"))
        black = ScriptedPlayer("Black-AI", Color.BLACK, first_legal)
        session = self.orchestrator.create_session(white, black)

        await self.orchestrator.run_turn(session)
        record = self.store.get(session.game_id, white.player_id)
        self.assertEqual(record.content, "notes after move 1")
        self.assertEqual(record.last_updated_turn, 1)

        await self.orchestrator.run_turn(session)
        self.assertEqual(len(self.store.history(session.game_id, white.player_id)), 1)
        self.assertEqual(self.store.history(session.game_id, black.player_id), [])

        await self.orchestrator.run_turn(session)
        self.assertEqual(self.store.get(session.game_id, white.player_id).content, "notes after move 2")

    @async_test
    async def test_prior_memory_is_passed_to_player(self):
        white = ScriptedPlayer(
            "White-AI", Color.WHITE,
            lambda c, m: PlayerReply(text=c.legal_moves[0], memory=MemoryRecord(f"seen {c.ply} plies")),
        )
        black = ScriptedPlayer("Black-AI", Color.BLACK, first_legal)
        session = self.orchestrator.create_session(white, black)

        for _ in range(3):
            await self.orchestrator.run_turn(session)

        self.assertIsNone(white.calls[0][1])
        self.assertEqual(white.calls[1][1].content, "seen 0 plies")
        self.assertIsNone(black.calls[0][1])

    @async_test
    async def test_humans_never_touch_memory(self):
        store = Mock(spec=InMemoryMemoryStore)
        orchestrator = GameOrchestrator(memory_store=store)
        white = ScriptedPlayer(
            "You", Color.WHITE,
            lambda c, m: PlayerReply(text="e4", memory=MemoryRecord("ignored")),
            kind=PlayerKind.HUMAN,
        )
        black = ScriptedPlayer("Black-AI", Color.BLACK, first_legal)
        session = orchestrator.create_session(white, black)
        self.assertEqual(session.mode, GameMode.HUMAN_VS_AGENT)

        await orchestrator.run_turn(session)

        store.put.assert_not_called()
        for call in store.get.call_args_list:
            self.assertNotEqual(call.args[1], white.player_id)

    @async_test
    async def test_memory_store_errors_do_not_stop_game(self):
        store = Mock()
        store.get.side_effect = MemoryStoreError("disk gone")
        store.put.side_effect = MemoryStoreError("disk gone")
        orchestrator = GameOrchestrator(memory_store=store)
        white = AgentPlayer(PlayerSpec(name="White-AI", color=Color.WHITE, provider="memory"), MemoryStrategist("m"))
        black = ScriptedPlayer("Black-AI", Color.BLACK, first_legal)
        session = orchestrator.create_session(white, black)

        outcome = await orchestrator.run_turn(session)
        self.assertEqual(outcome.outcome, MoveOutcome.APPLIED)
        store.put.assert_called_once()

    @async_test
    async def test_checkmate_ends_session(self):
        """Test fool's mate produces a Black win and closes the session."""
        persistence = Mock(spec=PgnGameStore)
        self.orchestrator.persistence = persistence
        session = self._session(scripted_moves("f3", "g4"), scripted_moves("e5", "Qh4#"))

        result = await self.orchestrator.play(session)

        self.assertEqual(result.winner, "black")
        self.assertEqual(result.reason, TerminalStatus.CHECKMATE)
        self.assertEqual(result.result_string, "0-1")
        self.assertEqual(result.move_count, 4)
        self.assertEqual(result.moves, ("f3", "e5", "g4", "Qh4#"))
        self.assertIn("Qh4#", result.pgn)
        self.assertEqual(session.status, TerminalStatus.CHECKMATE)
        self.assertEqual(session.state, OrchestratorState.TERMINAL)

        persistence.save.assert_called_once()
        record = persistence.save.call_args[0][0]
        self.assertEqual(record.result, "0-1")
        self.assertEqual(record.termination, "checkmate")
        self.assertEqual(self.presenter.events[-1], ("game_over", result))

    @async_test
    async def test_terminal_session_is_closed(self):
        session = self._session(scripted_moves("f3", "g4"), scripted_moves("e5", "Qh4#"))
        await self.orchestrator.play(session)

        with self.assertRaises(SessionClosedError):
            await self.orchestrator.run_turn(session)
        with self.assertRaises(SessionClosedError):
            await self.orchestrator.play(session)
        with self.assertRaises(SessionClosedError):
            self.orchestrator.abandon(session)
        self.assertEqual(session.rules.ply, 4)

    @async_test
    async def test_already_terminal_position(self):
        rules = ChessRules("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
        session = self._session(first_legal, first_legal, rules=rules)
        result = await self.orchestrator.play(session)
        self.assertEqual(result.reason, TerminalStatus.STALEMATE)
        self.assertEqual(result.move_count, 0)
        self.assertEqual(session.black.calls, [])

    @async_test
    async def test_no_legal_moves_outside_terminal_raises(self):
        session = self._session(first_legal, first_legal)
        session.rules = Mock(spec=ChessRules)
        session.rules.legal_moves.return_value = []
        session.rules.fen.return_value = "broken"
        with self.assertRaises(RulesContractError):
            await self.orchestrator.run_turn(session)

    @async_test
    async def test_rejected_apply_raises_without_side_effects(self):
        """Test a rules engine refusing a validated move is a contract error."""
        white = AgentPlayer(PlayerSpec(name="White-AI", color=Color.WHITE, provider="memory"), MemoryStrategist("m"))
        black = ScriptedPlayer("Black-AI", Color.BLACK, first_legal)
        session = self.orchestrator.create_session(white, black)
        refused = MoveApplication(applied=False, error="refused")

        with patch.object(session.rules, "apply_move", return_value=refused):
            with self.assertRaises(RulesContractError):
                await self.orchestrator.run_turn(session)

        self.assertEqual(session.rules.side_to_move(), Color.WHITE)
        self.assertEqual(session.rules.ply, 0)
        self.assertEqual(session.state, OrchestratorState.AWAITING_TURN)
        self.assertIsNone(self.store.get(session.game_id, white.player_id))
        self.assertEqual(self.presenter.outcomes(), [])

    @async_test
    async def test_cancel_saves_abandoned_game(self):
        """Test a quitting human leaves a saved, abandoned game."""
        persistence = Mock(spec=PgnGameStore)
        self.orchestrator.persistence = persistence

        def quit_on_second_move(context, prior_memory):
            if context.ply >= 2:
                raise GameCancelled("bye")
            return PlayerReply(text=context.legal_moves[0])

        white = ScriptedPlayer("You", Color.WHITE, quit_on_second_move, kind=PlayerKind.HUMAN)
        black = ScriptedPlayer("AI-Black", Color.BLACK, first_legal)
        session = self.orchestrator.create_session(white, black)

        with self.assertRaises(GameCancelled):
            await self.orchestrator.play(session)

        self.assertEqual(session.status, TerminalStatus.ABANDONED)
        self.assertTrue(session.is_terminal)
        self.assertIsNone(session.result)
        self.assertEqual(session.rules.ply, 2)
        persistence.save.assert_called_once()
        record = persistence.save.call_args[0][0]
        self.assertEqual(record.result, "*")
        self.assertEqual(record.termination, "abandoned")
        self.assertEqual(record.moves, session.rules.history())

    @async_test
    async def test_abandoned_game_written_to_disk(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            self.orchestrator.persistence = PgnGameStore(Path(temp_dir))
            session = self._session(first_legal, first_legal)
            await self.orchestrator.run_turn(session)
            record = self.orchestrator.abandon(session)

            self.assertTrue(record.path.exists())
            headers = self.orchestrator.persistence.read_headers(record.path)
            self.assertEqual(headers["Result"], "*")

    @async_test
    async def test_journal_records_memory_and_summary(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            self.orchestrator.journal = MemoryJournal(Path(temp_dir))
            white = AgentPlayer(
                PlayerSpec(name="White-AI", color=Color.WHITE, provider="scripted"),
                ScriptedStrategist("f3", "g4"),
            )
            black = ScriptedPlayer("Black-AI", Color.BLACK, scripted_moves("e5", "Qh4#"))
            session = self.orchestrator.create_session(white, black)

            await self.orchestrator.play(session)

            text = self.orchestrator.journal.path_for("White-AI", session.game_id).read_text(encoding="utf-8")
            self.assertIn("notes f3", text)
            self.assertIn("Result: 0-1 (checkmate)", text)

    def test_seat_mismatch_rejected(self):
        white = ScriptedPlayer("A", Color.BLACK, first_legal)
        black = ScriptedPlayer("B", Color.BLACK, first_legal)
        with self.assertRaises(ValueError):
            self.orchestrator.create_session(white, black)

    @async_test
    async def test_presenter_errors_are_contained(self):
        presenter = Mock(spec=PresentationSink)
        presenter.on_turn_start.side_effect = RuntimeError("screen gone")
        orchestrator = GameOrchestrator(presenter=presenter)
        white = ScriptedPlayer("White-AI", Color.WHITE, first_legal)
        black = ScriptedPlayer("Black-AI", Color.BLACK, first_legal)
        session = orchestrator.create_session(white, black)

        outcome = await orchestrator.run_turn(session)
        self.assertEqual(outcome.ply, 1)

    @async_test
    async def test_sessions_are_independent(self):
        first = self._session(first_legal, first_legal)
        second = self._session(scripted_moves("d4"), first_legal)
        self.assertNotEqual(first.game_id, second.game_id)

        await asyncio.gather(self.orchestrator.run_turn(first), self.orchestrator.run_turn(second))
        self.assertEqual(first.rules.history(), [ChessRules().legal_moves()[0]])
        self.assertEqual(second.rules.history(), ["d4"])


if __name__ == "__main__":
    unittest.main()
