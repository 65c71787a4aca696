"""Configuration loading (TOML, env vars, .env)."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from chorus.observability.exporters import ObservabilityConfig

logger = logging.getLogger(__name__)

# Load .env from current directory (and parents), won't override existing env vars
load_dotenv()


def _home_dir() -> Path:
    return Path.home() / ".chorus"


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved runtime settings."""

    model: str | None = None
    max_tokens: int = 16384
    sessions_dir: Path = field(default_factory=lambda: _home_dir() / "sessions")
    api_key: str | None = None
    base_url: str | None = None
    agent_timeout: float | None = None
    server_host: str = "127.0.0.1"
    server_port: int = 8000
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)


def load_toml_config(cwd: str | None = None) -> dict[str, Any]:
    """Load the first ``.chorus/config.toml`` found in *cwd*, the current dir or home."""
    candidates = []
    if cwd:
        candidates.append(Path(cwd) / ".chorus" / "config.toml")
    candidates.append(Path.cwd() / ".chorus" / "config.toml")
    candidates.append(_home_dir() / "config.toml")

    for path in candidates:
        if not path.exists():
            continue
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", path, exc)
    return {}


def resolve_api_key(explicit_key: str | None = None, toml: dict[str, Any] | None = None) -> str | None:
    """Resolve the Anthropic API key from an explicit value, the environment or config."""
    if explicit_key:
        return explicit_key
    if key := os.environ.get("ANTHROPIC_API_KEY"):
        return key
    section = (toml or {}).get("providers", {}).get("anthropic", {})
    return section.get("api_key") if isinstance(section, dict) else None


def _float_or_none(value: Any) -> float | None:
    if value in (None, ""):
        return None
    return float(value)


def load_settings(cwd: str | None = None) -> Settings:
    """Merge TOML sections with environment overrides into :class:`Settings`."""
    toml = load_toml_config(cwd)
    engine = toml.get("engine", {})
    agents = toml.get("agents", {})
    server = toml.get("server", {})
    obs = toml.get("observability", {})
    anthropic = toml.get("providers", {}).get("anthropic", {})

    sessions_dir = os.environ.get("CHORUS_SESSIONS_DIR") or engine.get("sessions_dir")
    observability = ObservabilityConfig(
        enabled=bool(obs.get("enabled", False)),
        exporter=obs.get("exporter", "console"),
        otlp_endpoint=obs.get("otlp_endpoint", "http://localhost:4317"),
        service_name=obs.get("service_name", "chorus"),
    )
    return Settings(
        model=os.environ.get("CHORUS_MODEL") or engine.get("model"),
        max_tokens=int(os.environ.get("CHORUS_MAX_TOKENS") or engine.get("max_tokens", 16384)),
        sessions_dir=Path(sessions_dir).expanduser() if sessions_dir else _home_dir() / "sessions",
        api_key=resolve_api_key(toml=toml),
        base_url=anthropic.get("base_url"),
        agent_timeout=_float_or_none(os.environ.get("CHORUS_TIMEOUT") or agents.get("timeout")),
        server_host=server.get("host", "127.0.0.1"),
        server_port=int(server.get("port", 8000)),
        observability=observability,
    )
