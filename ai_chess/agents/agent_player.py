"""
Agent player backed by a strategist.

One strategist call per turn, no retries. The prompt carries the whole turn
context and the agent's previous working memory; the reply's memory block
becomes the new working memory.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.models import MemoryRecord, PlayerReply, PlayerSpec
from ..llm.client import Strategist
from ..llm.prompting import build_turn_prompt, system_instructions
from .base import Player, TurnContext

logger = logging.getLogger(__name__)


class AgentPlayer(Player):
    """Autonomous player whose moves come from a Strategist."""

    def __init__(self, spec: PlayerSpec, strategist: Strategist):
        super().__init__(spec)
        self.strategist = strategist
        if not strategist.system_prompt:
            strategist.system_prompt = system_instructions(spec.name)
        self.last_prompt: Optional[str] = None

    async def request_move(self, context: TurnContext, prior_memory: Optional[MemoryRecord] = None) -> PlayerReply:
        prompt = build_turn_prompt(context, prior_memory, self.name)
        self.last_prompt = prompt

        logger.debug(f"{self.name} thinking on move {context.move_number} ({len(context.legal_moves)} legal moves)")
        reply = await self.strategist.generate(prompt, context)

        memory = None
        if reply.memory:
            memory = MemoryRecord(content=reply.memory, last_updated_turn=context.move_number)
        else:
            logger.debug(f"{self.name} returned no working memory; keeping the previous one")

        return PlayerReply(text=reply.text, memory=memory)
