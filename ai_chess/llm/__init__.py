"""
LLM package for AI Chess.

This package contains the strategists that drive agent players, including
support for multiple providers like Anthropic, OpenAI, Gemini, AG2 and a
random baseline, plus prompt construction and the model registry.
"""

from .client import (
    Strategist,
    StrategistReply,
    AnthropicStrategist,
    OpenAIStrategist,
    GeminiStrategist,
    RandomStrategist,
    LLMProviderError,
    create_strategist,
    register_strategist,
    get_available_providers,
)
from .ag2_strategist import Ag2Strategist
from .models import ModelInfo, MODEL_REGISTRY, get_model_info, print_available_models
from .prompting import (
    WORKING_MEMORY_TEMPLATE,
    build_turn_prompt,
    parse_strategist_reply,
    system_instructions,
)

__all__ = [
    # Strategist base and implementations
    "Strategist",
    "StrategistReply",
    "AnthropicStrategist",
    "OpenAIStrategist",
    "GeminiStrategist",
    "RandomStrategist",
    "Ag2Strategist",

    # Exceptions
    "LLMProviderError",

    # Factory
    "create_strategist",
    "register_strategist",
    "get_available_providers",

    # Models
    "ModelInfo",
    "MODEL_REGISTRY",
    "get_model_info",
    "print_available_models",

    # Prompting
    "WORKING_MEMORY_TEMPLATE",
    "build_turn_prompt",
    "parse_strategist_reply",
    "system_instructions",
]
