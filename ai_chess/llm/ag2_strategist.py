"""
AG2 (AutoGen) backed strategist.

Wraps a single ``ConversableAgent`` so any model AG2 can reach may drive an
agent player. The agent holds no conversation history of its own: continuity
between turns comes from the working memory embedded in each prompt.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from .client import LLMProviderError, Strategist, StrategistReply, register_strategist

logger = logging.getLogger(__name__)

# AG2 api_type per underlying model provider
API_TYPES: Dict[str, str] = {
    "openai": "openai",
    "anthropic": "anthropic",
    "gemini": "google",
}


class Ag2Strategist(Strategist):
    """Strategist that asks an AG2 ConversableAgent for each move."""

    provider_name = "ag2"

    def __init__(self, model_id: str = "", api_type: str = "openai", name: str = "chess_strategist", **kwargs):
        super().__init__(model_id or "gpt-5.2", **kwargs)

        # Import AG2 only when needed
        try:
            from autogen import ConversableAgent, LLMConfig
        except ImportError:
            raise LLMProviderError(
                "AG2 package not installed. Install with: pip install ag2"
            )

        self.api_type = API_TYPES.get(api_type, api_type)
        llm_config = LLMConfig(
            api_type=self.api_type,
            model=self.model_id,
            temperature=self.temperature,
            timeout=self.timeout_s,
        )

        self.agent = ConversableAgent(
            name=name,
            system_message=self.system_prompt or "You are a chess player.",
            llm_config=llm_config,
            human_input_mode="NEVER",
            max_consecutive_auto_reply=1,
            code_execution_config=False,
        )
        logger.info(f"Initialized AG2 strategist: {self.api_type}:{self.model_id}")

    async def generate(self, prompt: str, context=None) -> StrategistReply:
        if self.system_prompt and self.agent.system_message != self.system_prompt:
            self.agent.update_system_message(self.system_prompt)

        messages = [{"role": "user", "content": prompt}]
        try:
            reply = await asyncio.wait_for(
                self.agent.a_generate_reply(messages=messages),
                timeout=self.timeout_s
            )
        except asyncio.TimeoutError:
            raise LLMProviderError(f"AG2 request timed out after {self.timeout_s}s")
        except Exception as e:
            raise LLMProviderError(f"AG2 generation failed: {e}")

        raw = self._reply_text(reply)
        if not raw:
            raise LLMProviderError("AG2 returned empty response")
        return StrategistReply.from_raw(raw)

    @staticmethod
    def _reply_text(reply: Any) -> str:
        if reply is None:
            return ""
        if isinstance(reply, str):
            return reply.strip()
        if isinstance(reply, dict):
            return str(reply.get("content") or "").strip()
        return str(getattr(reply, "content", reply)).strip()


register_strategist("ag2", Ag2Strategist)
