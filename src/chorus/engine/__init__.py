"""Query engine contract and the default provider-backed engine."""

from chorus.engine.base import QueryEngine, get_default_engine, set_default_engine
from chorus.engine.models import DEFAULT_MODEL, MODELS, resolve_model
from chorus.engine.provider import ProviderEngine, select_tools

__all__ = [
    "DEFAULT_MODEL",
    "MODELS",
    "ProviderEngine",
    "QueryEngine",
    "get_default_engine",
    "resolve_model",
    "select_tools",
    "set_default_engine",
]
