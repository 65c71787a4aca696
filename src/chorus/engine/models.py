"""Model catalogue: pricing, limits and aliases for supported Claude models."""

from __future__ import annotations

from chorus.types.providers import ModelInfo

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

MODELS: dict[str, ModelInfo] = {
    "claude-opus-4-6": ModelInfo(
        id="claude-opus-4-6",
        display_name="Claude Opus 4.6",
        context_window=200_000,
        max_output_tokens=32_768,
        input_cost_per_mtok=15.00,
        output_cost_per_mtok=75.00,
        aliases=("opus",),
    ),
    "claude-sonnet-4-6": ModelInfo(
        id="claude-sonnet-4-6",
        display_name="Claude Sonnet 4.6",
        context_window=200_000,
        max_output_tokens=16_384,
        input_cost_per_mtok=3.00,
        output_cost_per_mtok=15.00,
        aliases=("sonnet",),
    ),
    "claude-sonnet-4-5-20250929": ModelInfo(
        id="claude-sonnet-4-5-20250929",
        display_name="Claude Sonnet 4.5",
        context_window=200_000,
        max_output_tokens=16_384,
        input_cost_per_mtok=3.00,
        output_cost_per_mtok=15.00,
        aliases=("sonnet-4.5",),
    ),
    "claude-haiku-4-5-20251001": ModelInfo(
        id="claude-haiku-4-5-20251001",
        display_name="Claude Haiku 4.5",
        context_window=200_000,
        max_output_tokens=8_192,
        input_cost_per_mtok=0.80,
        output_cost_per_mtok=4.00,
        aliases=("haiku",),
    ),
}

ALIASES: dict[str, str] = {
    alias: model_id for model_id, info in MODELS.items() for alias in info.aliases
}


def resolve_model(name: str) -> ModelInfo:
    """Resolve a model ID or alias. Raises KeyError if unknown."""
    resolved_id = ALIASES.get(name, name)
    if resolved_id not in MODELS:
        known = sorted(list(MODELS) + list(ALIASES))
        raise KeyError(f"Unknown model {name!r}. Known models and aliases: {known}")
    return MODELS[resolved_id]


def resolve_model_id(name: str | None) -> str:
    """Map an alias to its model ID; unknown IDs pass through unchanged."""
    if not name:
        return DEFAULT_MODEL
    return ALIASES.get(name, name)
