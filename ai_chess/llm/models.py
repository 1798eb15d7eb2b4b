"""
Model configurations for all supported strategist providers.

This module maps the short model names accepted on the command line
("haiku", "gpt-5.2", ...) to provider model ids and a little descriptive
metadata for the ``models`` command.
"""

from typing import Dict, List, NamedTuple, Optional

from rich.console import Console
from rich.table import Table


class ModelInfo(NamedTuple):
    """Information about a specific model."""
    name: str
    display_name: str
    provider: str
    model_id: str
    description: str
    recommended: bool = False
    notes: str = ""


# Anthropic Models
ANTHROPIC_MODELS = [
    ModelInfo(
        name="haiku",
        display_name="Claude Haiku 4.5",
        provider="anthropic",
        model_id="claude-haiku-4-5-20251001",
        description="Fast Claude model, the default opponent",
        recommended=True,
        notes="Good balance of speed and strategic commentary"
    ),
    ModelInfo(
        name="sonnet",
        display_name="Claude Sonnet 4.5",
        provider="anthropic",
        model_id="claude-sonnet-4-5-20250929",
        description="Strong reasoning, detailed working memory",
        recommended=True,
    ),
    ModelInfo(
        name="opus",
        display_name="Claude Opus 4.5",
        provider="anthropic",
        model_id="claude-opus-4-5-20251101",
        description="Most capable Claude model",
        notes="Slowest and most expensive per move"
    ),
]

# Google Gemini Models
GEMINI_MODELS = [
    ModelInfo(
        name="gemini-3",
        display_name="Gemini 3 Pro (preview)",
        provider="gemini",
        model_id="gemini-3-pro-preview",
        description="Most capable Gemini model",
        recommended=True,
    ),
    ModelInfo(
        name="gemini-flash",
        display_name="Gemini Flash",
        provider="gemini",
        model_id="gemini-flash-latest",
        description="Fast, cost-effective Gemini model",
    ),
]

# OpenAI Models
OPENAI_MODELS = [
    ModelInfo(
        name="gpt-5.2",
        display_name="GPT-5.2",
        provider="openai",
        model_id="gpt-5.2",
        description="OpenAI flagship model",
        recommended=True,
    ),
]

# Baselines
BASELINE_MODELS = [
    ModelInfo(
        name="random",
        display_name="Random",
        provider="random",
        model_id="",
        description="Plays a random legal move, no network access",
        notes="Useful for testing and as a sparring partner"
    ),
]

MODELS_BY_PROVIDER: Dict[str, List[ModelInfo]] = {
    "anthropic": ANTHROPIC_MODELS,
    "gemini": GEMINI_MODELS,
    "openai": OPENAI_MODELS,
    "random": BASELINE_MODELS,
}

MODEL_REGISTRY: Dict[str, ModelInfo] = {
    model.name: model
    for models in MODELS_BY_PROVIDER.values()
    for model in models
}

DEFAULT_MODEL = "haiku"


def get_model_info(name: str, provider: Optional[str] = None) -> ModelInfo:
    """
    Look up a model by short name or provider model id.

    Args:
        name: Short name ("sonnet") or model id ("claude-sonnet-4-5-20250929")
        provider: Optional provider filter

    Returns:
        ModelInfo for the model

    Raises:
        ValueError: If the model is unknown
    """
    key = name.strip().lower()
    if key in MODEL_REGISTRY and (provider is None or MODEL_REGISTRY[key].provider == provider.lower()):
        return MODEL_REGISTRY[key]

    for model in MODEL_REGISTRY.values():
        if model.model_id == name and (provider is None or model.provider == provider.lower()):
            return model

    available = ", ".join(MODEL_REGISTRY)
    raise ValueError(f"Unknown model '{name}'. Available: {available}")


def is_valid_model_name(name: str) -> bool:
    return name.strip().lower() in MODEL_REGISTRY


def print_available_models(console: Optional[Console] = None) -> None:
    """Print a table of all available models."""
    console = console or Console()
    table = Table(title="Available Models", title_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Provider", style="magenta")
    table.add_column("Model ID", style="dim")
    table.add_column("Description")

    for provider, models in MODELS_BY_PROVIDER.items():
        for model in models:
            name = f"⭐ {model.name}" if model.recommended else f"  {model.name}"
            description = model.description
            if model.notes:
                description += f"\n[dim]{model.notes}[/dim]"
            table.add_row(name, provider, model.model_id or "-", description)

    console.print(table)
