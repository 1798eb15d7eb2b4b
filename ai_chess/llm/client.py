"""
Strategist client module for agent move generation.

This module provides a unified interface over the LLM providers that drive
agent players. A strategist receives the full turn prompt and returns free
text: reasoning, an updated working memory and the chosen move. Move
extraction and validation happen later, in the move resolver.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from .prompting import parse_strategist_reply

logger = logging.getLogger(__name__)


class LLMProviderError(Exception):
    """Custom exception for LLM provider errors."""
    pass


@dataclass
class StrategistReply:
    """Raw strategist output split into move text and working memory."""

    text: str
    memory: Optional[str] = None
    raw: str = ""

    @classmethod
    def from_raw(cls, raw: str) -> StrategistReply:
        text, memory = parse_strategist_reply(raw)
        return cls(text=text, memory=memory, raw=raw)


class Strategist(ABC):
    """Abstract base class for strategist providers."""

    provider_name = "base"

    def __init__(
        self,
        model_id: str = "",
        system_prompt: str = "",
        temperature: float = 0.7,
        timeout_s: float = 60.0,
        max_tokens: int = 2048,
    ):
        """
        Initialize the strategist.

        Args:
            model_id: Provider model id
            system_prompt: Role and output instructions
            temperature: Sampling temperature
            timeout_s: Timeout per request in seconds
            max_tokens: Maximum output tokens per request
        """
        self.model_id = model_id
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens

    @abstractmethod
    async def generate(self, prompt: str, context=None) -> StrategistReply:
        """
        Produce a reply for one turn.

        Args:
            prompt: Full turn prompt
            context: TurnContext the prompt was built from

        Returns:
            StrategistReply

        Raises:
            LLMProviderError: If generation fails or times out
        """
        pass

    async def _complete(self, call, prompt: str) -> StrategistReply:
        """Run a blocking SDK call in a thread with a timeout."""
        try:
            raw = await asyncio.wait_for(
                asyncio.to_thread(call, prompt),
                timeout=self.timeout_s
            )
        except asyncio.TimeoutError:
            raise LLMProviderError(f"{self.provider_name} request timed out after {self.timeout_s}s")
        except LLMProviderError:
            raise
        except Exception as e:
            raise LLMProviderError(f"{self.provider_name} API error: {e}")

        logger.debug(f"{self.provider_name} response ({len(raw)} chars)")
        return StrategistReply.from_raw(raw)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model='{self.model_id}')"


class AnthropicStrategist(Strategist):
    """Anthropic Claude strategist."""

    provider_name = "anthropic"

    def __init__(self, model_id: str = "", **kwargs):
        super().__init__(model_id or "claude-haiku-4-5-20251001", **kwargs)

        # Import Anthropic only when needed
        try:
            import anthropic
            self._anthropic = anthropic
        except ImportError:
            raise LLMProviderError(
                "Anthropic package not installed. Install with: pip install anthropic"
            )

        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise LLMProviderError(
                "ANTHROPIC_API_KEY environment variable is required for Anthropic provider"
            )

        self.client = self._anthropic.Anthropic(api_key=api_key)

    async def generate(self, prompt: str, context=None) -> StrategistReply:
        return await self._complete(self._call_anthropic, prompt)

    def _call_anthropic(self, prompt: str) -> str:
        """Make synchronous Anthropic API call."""
        kwargs = {}
        if self.system_prompt:
            kwargs["system"] = self.system_prompt
        response = self.client.messages.create(
            model=self.model_id,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            messages=[{"role": "user", "content": prompt}],
            **kwargs
        )

        text_content = ""
        for content_block in response.content:
            if hasattr(content_block, 'text'):
                text_content += content_block.text

        if not text_content:
            raise LLMProviderError("No text content in Anthropic response")
        return text_content.strip()


class OpenAIStrategist(Strategist):
    """OpenAI GPT strategist."""

    provider_name = "openai"

    def __init__(self, model_id: str = "", **kwargs):
        super().__init__(model_id or "gpt-5.2", **kwargs)

        # Import OpenAI only when needed
        try:
            from openai import OpenAI
            self._openai = OpenAI
        except ImportError:
            raise LLMProviderError(
                "OpenAI package not installed. Install with: pip install openai"
            )

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise LLMProviderError(
                "OPENAI_API_KEY environment variable is required for OpenAI provider"
            )

        self.client = self._openai(api_key=api_key)

    async def generate(self, prompt: str, context=None) -> StrategistReply:
        return await self._complete(self._call_openai, prompt)

    def _call_openai(self, prompt: str) -> str:
        """Make synchronous OpenAI API call."""
        messages = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self.client.chat.completions.create(
            model=self.model_id,
            messages=messages,
            max_completion_tokens=self.max_tokens,
            n=1
        )

        content = response.choices[0].message.content
        if not content:
            raise LLMProviderError("OpenAI returned empty response")
        return content.strip()


class GeminiStrategist(Strategist):
    """Google Gemini strategist."""

    provider_name = "gemini"

    def __init__(self, model_id: str = "", **kwargs):
        super().__init__(model_id or "gemini-flash-latest", **kwargs)

        # Import Google Generative AI only when needed
        try:
            import google.generativeai as genai
            self._genai = genai
        except ImportError:
            raise LLMProviderError(
                "Google Generative AI package not installed. Install with: pip install google-generativeai"
            )

        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise LLMProviderError(
                "GEMINI_API_KEY environment variable is required for Gemini provider"
            )

        self._genai.configure(api_key=api_key)
        self.model = self._build_model()

    def _build_model(self):
        """Create the GenerativeModel; the system instruction is fixed per model."""
        try:
            model = self._genai.GenerativeModel(
                self.model_id,
                system_instruction=self.system_prompt or None,
            )
        except Exception as e:
            raise LLMProviderError(f"Failed to create Gemini model {self.model_id}: {e}")
        self._model_prompt = self.system_prompt
        return model

    async def generate(self, prompt: str, context=None) -> StrategistReply:
        if self.system_prompt != self._model_prompt:
            self.model = self._build_model()
        return await self._complete(self._call_gemini, prompt)

    def _call_gemini(self, prompt: str) -> str:
        """Make synchronous Gemini API call."""
        generation_config = {
            "temperature": self.temperature,
            "max_output_tokens": self.max_tokens,
        }
        response = self.model.generate_content(
            prompt,
            generation_config=generation_config
        )

        if not response.text:
            raise LLMProviderError("Gemini returned empty response")
        return response.text.strip()


class RandomStrategist(Strategist):
    """Random move strategist (baseline, no network)."""

    provider_name = "random"

    def __init__(self, model_id: str = "", seed: Optional[int] = None, **kwargs):
        super().__init__(model_id, **kwargs)
        self.random = random.Random(seed)

    async def generate(self, prompt: str, context=None) -> StrategistReply:
        if context is None or not context.legal_moves:
            raise LLMProviderError("Random strategist needs the legal moves of the turn context")
        move = self.random.choice(context.legal_moves)
        return StrategistReply(text=f"MOVE: {move}", raw=f"MOVE: {move}")


# Registry of available strategists
STRATEGISTS: Dict[str, Type[Strategist]] = {
    "anthropic": AnthropicStrategist,
    "openai": OpenAIStrategist,
    "gemini": GeminiStrategist,
    "random": RandomStrategist,
}


def register_strategist(name: str, strategist_class: Type[Strategist]) -> None:
    """
    Register a custom strategist provider.

    Args:
        name: Provider name (lowercase)
        strategist_class: Strategist implementation class
    """
    STRATEGISTS[name.lower()] = strategist_class
    logger.info(f"Registered custom strategist: {name}")


def get_available_providers() -> List[str]:
    return list(STRATEGISTS.keys())


def create_strategist(provider: str, model_id: str = "", **kwargs) -> Strategist:
    """
    Create a strategist for a provider.

    Args:
        provider: Provider name ("anthropic", "openai", "gemini", "ag2", "random")
        model_id: Provider model id
        **kwargs: Strategist settings (system_prompt, temperature, timeout_s, ...)

    Returns:
        Strategist instance

    Raises:
        LLMProviderError: If the provider is unknown or cannot be initialized
    """
    strategist_class = STRATEGISTS.get(provider.lower())
    if not strategist_class:
        available = ", ".join(STRATEGISTS.keys())
        raise LLMProviderError(
            f"Unsupported provider '{provider}'. Available: {available}"
        )

    try:
        strategist = strategist_class(model_id, **kwargs)
    except LLMProviderError:
        raise
    except Exception as e:
        raise LLMProviderError(f"Failed to initialize provider {provider}: {e}")

    logger.info(f"Initialized strategist: {provider}:{strategist.model_id}")
    return strategist
