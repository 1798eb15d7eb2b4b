"""
Unit tests for PGN persistence.
"""

import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from ai_chess.core.models import Color, GameMode, GameResult, PlayerKind, PlayerSpec, TerminalStatus
from ai_chess.core.persistence import PgnGameStore, build_record
from ai_chess.core.rules import ChessRules


FOOLS_MATE = ["f3", "e5", "g4", "Qh4#"]


class PersistenceTests(unittest.TestCase):
    """Test build_record and PgnGameStore."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.store = PgnGameStore(Path(self.temp_dir.name) / "games")
        self.white = PlayerSpec(name="You", color=Color.WHITE, kind=PlayerKind.HUMAN)
        self.black = PlayerSpec(
            name="AI-Black", color=Color.BLACK, provider="anthropic", model="claude-haiku-4-5-20251001"
        )

    def tearDown(self):
        self.temp_dir.cleanup()

    def _rules(self, moves):
        rules = ChessRules()
        for move in moves:
            rules.apply_move(move)
        return rules

    def test_build_record_for_finished_game(self):
        result = GameResult(winner="black", reason=TerminalStatus.CHECKMATE, move_count=4, moves=tuple(FOOLS_MATE))
        record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, FOOLS_MATE, result, "game-1")
        self.assertEqual(record.result, "0-1")
        self.assertEqual(record.termination, "checkmate")
        self.assertEqual(record.white_model, "human")
        self.assertEqual(record.black_model, "anthropic:claude-haiku-4-5-20251001")
        self.assertEqual(record.ply_count, 4)

    def test_build_record_for_abandoned_game(self):
        record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, ["e4"])
        self.assertEqual(record.result, "*")
        self.assertEqual(record.termination, "abandoned")

    def test_save_and_load(self):
        """Test a saved game reloads with its moves and headers."""
        rules = self._rules(FOOLS_MATE)
        result = GameResult(winner="black", reason=TerminalStatus.CHECKMATE, move_count=4)
        record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, FOOLS_MATE, result, "game-1")

        path = self.store.save(record, rules)
        self.assertTrue(path.exists())
        self.assertEqual(record.path, path)
        self.assertTrue(path.name.startswith("chess-game-"))
        self.assertTrue(path.name.endswith(".pgn"))

        loaded = self.store.load_game(path.name)
        self.assertEqual(loaded.history(), FOOLS_MATE)
        headers = loaded.headers
        self.assertEqual(headers["Event"], "AI Chess Match")
        self.assertEqual(headers["Site"], "CLI")
        self.assertEqual(headers["White"], "You")
        self.assertEqual(headers["Black"], "AI-Black")
        self.assertEqual(headers["Result"], "0-1")
        self.assertEqual(headers["Mode"], "human-vs-agent")
        self.assertEqual(headers["GameId"], "game-1")

    def test_abandoned_game_keeps_star_result(self):
        rules = self._rules(["e4", "e5"])
        record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, ["e4", "e5"])
        path = self.store.save(record, rules)

        headers = self.store.read_headers(path)
        self.assertEqual(headers["Result"], "*")
        self.assertEqual(headers["Termination"], "abandoned")

    def test_same_second_saves_do_not_collide(self):
        stamp = datetime(2025, 1, 1, 12, 0, 0)
        paths = []
        for _ in range(2):
            record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, [])
            record.timestamp = stamp
            paths.append(self.store.save(record, ChessRules()))
        self.assertEqual(paths[0].name, "chess-game-2025-01-01T12-00-00.pgn")
        self.assertEqual(paths[1].name, "chess-game-2025-01-01T12-00-00-1.pgn")

    def test_list_saved_games_newest_first(self):
        for stamp in (datetime(2025, 1, 1), datetime(2025, 3, 1)):
            record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, [])
            record.timestamp = stamp
            self.store.save(record, ChessRules())
        names = [path.name for path in self.store.list_saved_games()]
        self.assertEqual(names[0], "chess-game-2025-03-01T00-00-00.pgn")
        self.assertEqual(len(names), 2)

    def test_same_second_saves_list_latest_first(self):
        stamp = datetime(2025, 1, 1, 12, 0, 0)
        for _ in range(3):
            record = build_record(self.white, self.black, GameMode.HUMAN_VS_AGENT, [])
            record.timestamp = stamp
            self.store.save(record, ChessRules())
        (self.store.games_dir / "chess-game-2025-01-01T12-00-00-10.pgn").write_text("", encoding="utf-8")
        names = [path.name for path in self.store.list_saved_games()]
        self.assertEqual(names, [
            "chess-game-2025-01-01T12-00-00-10.pgn",
            "chess-game-2025-01-01T12-00-00-2.pgn",
            "chess-game-2025-01-01T12-00-00-1.pgn",
            "chess-game-2025-01-01T12-00-00.pgn",
        ])

    def test_list_without_directory(self):
        self.assertEqual(PgnGameStore(Path(self.temp_dir.name) / "missing").list_saved_games(), [])

    def test_load_missing_game(self):
        with self.assertRaises(FileNotFoundError):
            self.store.load_game("chess-game-nope.pgn")


if __name__ == "__main__":
    unittest.main()
