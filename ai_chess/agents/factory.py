"""
Player Factory

This module builds players from configuration: model names are looked up in
the model registry (or given as ``provider:model``), the provider's strategist
is created once, and the seats are filled according to the game mode.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..core.models import Color, Config, GameMode, PlayerKind, PlayerSpec
from ..llm.client import LLMProviderError, create_strategist
from ..llm.models import get_model_info
from ..llm.prompting import system_instructions
from .agent_player import AgentPlayer
from .base import Player
from .human import HumanPlayer, InputChannel, MessageChannel

logger = logging.getLogger(__name__)


class PlayerCreationError(Exception):
    """Raised when player creation fails."""
    pass


def parse_model_name(model_name: str) -> Tuple[str, str]:
    """
    Resolve a model name to ``(provider, model_id)``.

    Accepts registry names ("haiku", "gpt-5.2", "random") and explicit
    ``provider:model`` strings ("openai:gpt-4o", "ag2:gpt-5.2").

    Raises:
        PlayerCreationError: If the name is neither
    """
    try:
        info = get_model_info(model_name)
        return info.provider, info.model_id
    except ValueError:
        pass

    if ":" in model_name:
        provider, model_id = model_name.split(":", 1)
        if provider:
            return provider.lower(), model_id

    raise PlayerCreationError(f"Unknown model '{model_name}'")


def agent_name_for(color: Color, mode: GameMode) -> str:
    """Default agent name for a seat."""
    if mode is GameMode.AGENT_VS_AGENT:
        return f"{color.value.title()}-AI"
    return f"AI-{color.value.title()}"


def create_agent_player(
    model_name: str,
    color: Color,
    name: Optional[str] = None,
    config: Optional[Config] = None,
    seed: Optional[int] = None,
) -> AgentPlayer:
    """
    Create an agent player for a model.

    Args:
        model_name: Registry name or ``provider:model``
        color: Side the agent plays
        name: Agent name (defaults to "<Color>-AI")
        config: Settings for the strategist (defaults if None)
        seed: Seed for the random baseline

    Returns:
        Configured AgentPlayer

    Raises:
        PlayerCreationError: If the strategist cannot be created
    """
    config = config or Config()
    provider, model_id = parse_model_name(model_name)
    name = name or agent_name_for(color, GameMode.AGENT_VS_AGENT)

    kwargs = {
        "temperature": config.llm_temperature,
        "timeout_s": config.llm_timeout,
        "max_tokens": config.max_output_tokens,
        "system_prompt": system_instructions(name),
    }
    if provider == "random" and seed is not None:
        kwargs["seed"] = seed

    try:
        strategist = create_strategist(provider, model_id, **kwargs)
    except LLMProviderError as e:
        logger.error(f"Failed to create strategist for {name} ({model_name}): {e}")
        raise PlayerCreationError(f"Agent creation failed for {model_name}: {e}") from e

    spec = PlayerSpec(
        name=name,
        color=color,
        kind=PlayerKind.AGENT,
        provider=provider,
        model=strategist.model_id,
    )
    logger.info(f"Created agent: {spec}")
    return AgentPlayer(spec, strategist)


def create_players(
    config: Config,
    input_channel: Optional[InputChannel] = None,
    message_channel: Optional[MessageChannel] = None,
) -> Tuple[Player, Player]:
    """
    Fill both seats for a game.

    Args:
        config: Game configuration (mode, human color, models)
        input_channel: Human input coroutine (required for human-vs-agent)
        message_channel: Where human re-prompt messages go

    Returns:
        Tuple of (white player, black player)
    """
    mode = config.game_mode
    seed = config.seed

    if mode is GameMode.AGENT_VS_AGENT:
        white = create_agent_player(config.white_model, Color.WHITE, config=config, seed=seed)
        black = create_agent_player(
            config.black_model, Color.BLACK, config=config,
            seed=seed + 1 if seed is not None else None,
        )
        return white, black

    if input_channel is None:
        raise PlayerCreationError("A human-vs-agent game needs an input channel")

    human_color = Color(config.human_color)
    agent_color = human_color.opposite
    agent_model = config.white_model if agent_color is Color.WHITE else config.black_model

    human = HumanPlayer(human_color, input_channel, message_channel=message_channel)
    agent = create_agent_player(
        agent_model,
        agent_color,
        name=agent_name_for(agent_color, mode),
        config=config,
        seed=seed,
    )
    return (human, agent) if human_color is Color.WHITE else (agent, human)
