"""
Game orchestrator: the turn loop.

This module drives one game session from the starting position to a terminal
state. Each ply the player whose color is to move is asked for a move, the
output is resolved against the legal-move set, and the result is committed
to the rules adapter, the memory store and the presentation sink. Finished
and abandoned games are handed to the persistence sink exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

import chess

from ..agents.base import GameCancelled, Player, TurnContext
from .evaluator import PositionAnalysis, analyze_board
from .memory import MemoryJournal, MemoryStore, MemoryStoreError
from .models import (
    Color,
    GameMode,
    GameRecord,
    GameResult,
    MemoryRecord,
    MoveOutcome,
    PlayerKind,
    Resolution,
    TerminalStatus,
    TurnOutcome,
)
from .persistence import PgnGameStore, build_record
from .resolver import fallback_move, resolve
from .rules import ChessRules, RulesContractError

logger = logging.getLogger(__name__)


class OrchestratorState(str, Enum):
    AWAITING_TURN = "awaiting-turn"
    RESOLVING_MOVE = "resolving-move"
    APPLYING = "applying"
    TERMINAL = "terminal"


class SessionClosedError(Exception):
    """Raised when a turn is requested on a session that has already ended."""
    pass


def new_game_id() -> str:
    """Opaque unique id: ``game-<epoch ms>-<random>``."""
    return f"game-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class GameSession:
    """One game from creation to its terminal state."""

    game_id: str
    rules: ChessRules
    white: Player
    black: Player
    mode: GameMode
    state: OrchestratorState = OrchestratorState.AWAITING_TURN
    status: TerminalStatus = TerminalStatus.IN_PROGRESS
    result: Optional[GameResult] = None
    record: Optional[GameRecord] = None
    fallback_count: int = 0
    started_at: datetime = field(default_factory=datetime.utcnow)

    def player_for(self, color: Color) -> Player:
        return self.white if color is Color.WHITE else self.black

    @property
    def side_to_move(self) -> Color:
        return self.rules.side_to_move()

    @property
    def is_terminal(self) -> bool:
        return self.state is OrchestratorState.TERMINAL


@dataclass
class GameView:
    """Read-only picture of a session handed to the presentation sink."""

    game_id: str
    white: str
    black: str
    board: chess.Board
    side_to_move: Color
    move_number: int
    history: List[str]
    last_move: Optional[str]
    in_check: bool
    status: TerminalStatus
    analysis: Optional[PositionAnalysis] = None
    memory: Dict[Color, MemoryRecord] = field(default_factory=dict)


class PresentationSink:
    """
    Receiver of game events. Return values are ignored.

    The base class does nothing; subclasses override the events they need.
    """

    def on_turn_start(self, view: GameView) -> None:
        pass

    def on_turn_end(self, view: GameView, outcome: TurnOutcome) -> None:
        pass

    def on_game_over(self, result: GameResult) -> None:
        pass

    def on_message(self, text: str) -> None:
        pass


class GameOrchestrator:
    """
    Runs game sessions.

    Sessions share nothing but the memory stores, which are keyed by
    ``(game_id, player_id)``. Within a session exactly one ply is in flight
    at a time, and the only suspension point is the player's move request.
    """

    def __init__(
        self,
        memory_store: Optional[MemoryStore] = None,
        presenter: Optional[PresentationSink] = None,
        persistence: Optional[PgnGameStore] = None,
        journal: Optional[MemoryJournal] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        turn_delay: float = 0.0,
    ):
        """
        Initialize the orchestrator.

        Args:
            memory_store: Default store for agent working memory
            presenter: Presentation sink (no-op if None)
            persistence: Game store for finished games (nothing saved if None)
            journal: Text journal of memory snapshots (disabled if None)
            rng: Random source for fallback moves
            seed: Seed for a fresh random source when ``rng`` is None
            turn_delay: Seconds to pause between plies
        """
        self.memory_store = memory_store
        self.presenter = presenter or PresentationSink()
        self.persistence = persistence
        self.journal = journal
        self.rng = rng or random.Random(seed)
        self.turn_delay = turn_delay
        self._stores: Dict[str, MemoryStore] = {}

    def register_memory_store(self, player_id: str, store: MemoryStore) -> None:
        """Use a dedicated store for one player identity."""
        self._stores[player_id] = store

    def memory_store_for(self, player: Player) -> Optional[MemoryStore]:
        return self._stores.get(player.player_id, self.memory_store)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(
        self,
        white: Player,
        black: Player,
        mode: Optional[GameMode] = None,
        rules: Optional[ChessRules] = None,
        game_id: Optional[str] = None,
    ) -> GameSession:
        """
        Start a new game.

        Raises:
            ValueError: If the players' colors do not match their seats
        """
        if white.color is not Color.WHITE or black.color is not Color.BLACK:
            raise ValueError(
                f"Seat mismatch: white seat holds {white.color.value}, black seat holds {black.color.value}"
            )

        if mode is None:
            has_human = PlayerKind.HUMAN in (white.kind, black.kind)
            mode = GameMode.HUMAN_VS_AGENT if has_human else GameMode.AGENT_VS_AGENT

        session = GameSession(
            game_id=game_id or new_game_id(),
            rules=rules or ChessRules(),
            white=white,
            black=black,
            mode=mode,
        )
        logger.info(f"Created session {session.game_id}: {white} vs {black} ({mode.value})")
        return session

    async def play(self, session: GameSession) -> GameResult:
        """
        Play the session to completion.

        Returns:
            The final GameResult

        Raises:
            GameCancelled: If a human quit; the game is saved as abandoned first
            SessionClosedError: If the session already ended
        """
        if session.is_terminal:
            raise SessionClosedError(f"Session {session.game_id} has already ended")

        self._notify(
            "on_message",
            f"{session.white.name} (white) vs {session.black.name} (black)",
        )

        if session.rules.is_terminal():
            self._finish(session, session.rules.terminal_reason())

        try:
            while not session.is_terminal:
                await self.run_turn(session)
                if self.turn_delay > 0 and not session.is_terminal:
                    await asyncio.sleep(self.turn_delay)
        except GameCancelled:
            self.abandon(session)
            raise

        return session.result

    async def run_turn(self, session: GameSession) -> TurnOutcome:
        """
        Process exactly one ply.

        Raises:
            SessionClosedError: If the session is terminal
            RulesContractError: If there are no legal moves in a non-terminal
                position, or the rules adapter rejects a validated move
            GameCancelled: If a human player quit
        """
        if session.is_terminal:
            raise SessionClosedError(f"Session {session.game_id} has already ended")

        rules = session.rules
        legal_moves = rules.legal_moves()
        if not legal_moves:
            raise RulesContractError(
                f"No legal moves in non-terminal position {rules.fen()} (game {session.game_id})"
            )

        side = rules.side_to_move()
        player = session.player_for(side)
        context = self._build_context(session, side, legal_moves)
        prior_memory = self._load_memory(session, player)

        self._notify("on_turn_start", self._build_view(session, context.analysis))

        session.state = OrchestratorState.RESOLVING_MOVE
        reply = None
        failure: Optional[Exception] = None
        try:
            reply = await player.request_move(context, prior_memory)
        except (GameCancelled, asyncio.CancelledError):
            session.state = OrchestratorState.AWAITING_TURN
            raise
        except Exception as e:
            logger.exception(
                f"Player {player.name} failed in game {session.game_id} "
                f"(side {side.value}, FEN {context.fen}): {e}"
            )
            failure = e

        if failure is None:
            resolution = resolve(reply.text, legal_moves, self.rng)
        else:
            resolution = Resolution(
                move=fallback_move(legal_moves, self.rng),
                outcome=MoveOutcome.FALLBACK_RANDOM,
            )

        # Commit: no awaits from here until the turn is reported.
        session.state = OrchestratorState.APPLYING
        application = rules.apply_move(resolution.move)
        if not application.applied:
            session.state = OrchestratorState.AWAITING_TURN
            raise RulesContractError(
                f"Rules engine rejected validated move {resolution.move} "
                f"in {context.fen}: {application.error}"
            )

        if failure is None and reply.memory is not None and player.uses_memory:
            self._store_memory(session, player, context.move_number, reply.memory)

        status = rules.terminal_reason() if rules.is_terminal() else TerminalStatus.IN_PROGRESS
        notice = self._fallback_notice(resolution, failure) if resolution.used_fallback else None
        if notice:
            session.fallback_count += 1
            logger.warning(f"{player.name} ({side.value}): {application.san} {notice}")

        outcome = TurnOutcome(
            side=side,
            move=application.san,
            outcome=resolution.outcome,
            status=status,
            ply=rules.ply,
            candidate=resolution.candidate,
            captured=application.captured,
            notice=notice,
        )
        logger.debug(f"Game {session.game_id} ply {outcome.ply}: {side.value} played {outcome.move}")

        session.state = OrchestratorState.AWAITING_TURN
        self._notify("on_turn_end", self._build_view(session), outcome)

        if status.is_terminal:
            self._finish(session, status)

        return outcome

    def abandon(self, session: GameSession) -> GameRecord:
        """
        End the session without a result and persist it as abandoned.

        Raises:
            SessionClosedError: If the session already ended
        """
        if session.is_terminal:
            raise SessionClosedError(f"Session {session.game_id} has already ended")

        session.state = OrchestratorState.TERMINAL
        session.status = TerminalStatus.ABANDONED
        record = build_record(
            session.white.spec,
            session.black.spec,
            session.mode,
            session.rules.history(),
            result=None,
            game_id=session.game_id,
        )
        session.record = record
        if self.persistence is not None:
            self.persistence.save(record, session.rules)

        logger.info(f"Game {session.game_id} abandoned after {session.rules.ply} plies")
        self._notify("on_message", "Game abandoned.")
        return record

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_context(self, session: GameSession, side: Color, legal_moves: List[str]) -> TurnContext:
        rules = session.rules
        board = rules.board
        return TurnContext(
            game_id=session.game_id,
            color=side,
            fen=rules.fen(),
            board_ascii=rules.ascii(),
            legal_moves=list(legal_moves),
            history=rules.history(),
            move_number=rules.move_number,
            last_move=rules.last_move(),
            in_check=rules.in_check(),
            analysis=analyze_board(board),
            opponent=session.player_for(side.opposite).name,
            board=board,
        )

    def _build_view(self, session: GameSession, analysis: Optional[PositionAnalysis] = None) -> GameView:
        rules = session.rules
        board = rules.board
        memory = {}
        for color in (Color.WHITE, Color.BLACK):
            player = session.player_for(color)
            if player.uses_memory:
                record = self._load_memory(session, player)
                if record is not None:
                    memory[color] = record
        return GameView(
            game_id=session.game_id,
            white=session.white.name,
            black=session.black.name,
            board=board,
            side_to_move=rules.side_to_move(),
            move_number=rules.move_number,
            history=rules.history(),
            last_move=rules.last_move(),
            in_check=rules.in_check(),
            status=session.status,
            analysis=analysis or analyze_board(board),
            memory=memory,
        )

    def _load_memory(self, session: GameSession, player: Player) -> Optional[MemoryRecord]:
        if not player.uses_memory:
            return None
        store = self.memory_store_for(player)
        if store is None:
            return None
        try:
            return store.get(session.game_id, player.player_id)
        except MemoryStoreError as e:
            logger.error(f"Memory read failed for {player.player_id}, continuing without memory: {e}")
            return None

    def _store_memory(self, session: GameSession, player: Player, move_number: int, memory: MemoryRecord) -> None:
        record = MemoryRecord(content=memory.content, last_updated_turn=move_number)
        store = self.memory_store_for(player)
        if store is not None:
            try:
                store.put(session.game_id, player.player_id, record)
            except MemoryStoreError as e:
                logger.error(f"Memory write failed for {player.player_id}, skipping: {e}")
        if self.journal is not None:
            self.journal.record(player.name, session.game_id, move_number, record)

    @staticmethod
    def _fallback_notice(resolution: Resolution, failure: Optional[Exception]) -> str:
        if failure is not None:
            reason = f"player error ({failure.__class__.__name__})"
        elif resolution.outcome is MoveOutcome.REJECTED_ILLEGAL:
            reason = f"illegal move {resolution.candidate}"
        else:
            reason = "no move found in output"
        return f"played automatically due to {reason}"

    def _finish(self, session: GameSession, status: TerminalStatus) -> None:
        rules = session.rules
        session.state = OrchestratorState.TERMINAL
        session.status = status

        result = GameResult(
            winner=rules.winner() or "draw",
            reason=status,
            move_count=rules.ply,
            moves=tuple(rules.history()),
        )
        record = build_record(
            session.white.spec,
            session.black.spec,
            session.mode,
            rules.history(),
            result=result,
            game_id=session.game_id,
        )
        if self.persistence is not None:
            self.persistence.save(record, rules)

        session.record = record
        session.result = GameResult(
            winner=result.winner,
            reason=result.reason,
            move_count=result.move_count,
            moves=result.moves,
            pgn=rules.serialize(),
        )

        logger.info(
            f"Game {session.game_id} over: {session.result.result_string} by {status.value} "
            f"after {session.result.move_count} plies ({session.fallback_count} automatic moves)"
        )

        if self.journal is not None:
            for player in (session.white, session.black):
                if player.uses_memory:
                    self.journal.summarize(
                        player.name,
                        session.game_id,
                        session.result.result_string,
                        status.value,
                        list(session.result.moves),
                    )

        self._notify("on_game_over", session.result)

    def _notify(self, event: str, *args) -> None:
        handler = getattr(self.presenter, event, None)
        if handler is None:
            return
        try:
            handler(*args)
        except Exception as e:
            logger.exception(f"Presenter failed during {event}: {e}")
