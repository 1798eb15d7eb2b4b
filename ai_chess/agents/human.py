"""
Human player driven by an input channel.

The input channel is any coroutine function that takes a prompt and returns
the typed line, or None when the person wants to stop. The line must be a legal
move in SAN; anything else re-prompts with an explanation.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from ..core.models import Color, MemoryRecord, PlayerKind, PlayerReply, PlayerSpec
from .base import GameCancelled, Player, TurnContext

logger = logging.getLogger(__name__)

InputChannel = Callable[[str], Awaitable[Optional[str]]]
MessageChannel = Callable[[str], None]

QUIT_WORDS = frozenset(["quit", "exit", "resign", ":q"])


class HumanPlayer(Player):
    """A person at the keyboard. Never reads or writes working memory."""

    def __init__(
        self,
        color: Color,
        input_channel: InputChannel,
        name: str = "You",
        message_channel: Optional[MessageChannel] = None,
    ):
        """
        Initialize the human player.

        Args:
            color: Side the human plays
            input_channel: Coroutine returning the next input line (None to quit)
            name: Display name
            message_channel: Where re-prompt explanations go (logged if None)
        """
        super().__init__(PlayerSpec(name=name, color=color, kind=PlayerKind.HUMAN))
        self.input_channel = input_channel
        self.message_channel = message_channel

    async def request_move(self, context: TurnContext, prior_memory: Optional[MemoryRecord] = None) -> PlayerReply:
        prompt = f"Your move ({context.color.value})"
        while True:
            try:
                line = await self.input_channel(prompt)
            except (EOFError, KeyboardInterrupt):
                raise GameCancelled(f"{self.name} left the game")

            if line is None:
                raise GameCancelled(f"{self.name} left the game")

            move = line.strip()
            if move.lower() in QUIT_WORDS:
                raise GameCancelled(f"{self.name} left the game")

            if not move:
                continue

            if move in context.legal_moves:
                return PlayerReply(text=move)

            self._tell(
                f"'{move}' is not a legal move. "
                f"Legal moves: {', '.join(context.legal_moves)}"
            )

    def _tell(self, text: str) -> None:
        if self.message_channel is not None:
            self.message_channel(text)
        else:
            logger.info(text)
