"""YAML agent definition files used by the composition commands.

A file holds an ``agents:`` list::

    agents:
      - name: researcher
        system_prompt: You find facts.
        tools: [research]
        description: Looks things up.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from chorus.agents.presets import resolve_tools
from chorus.errors import AgentFileError
from chorus.orchestration.chains import AgentSpec, DelegateSpec, PipelineStage


def load_agent_entries(path: str | Path) -> list[dict[str, Any]]:
    """Read and validate the ``agents`` list of a definition file."""
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise AgentFileError(f"Cannot read agent file: {exc}", str(path)) from exc

    entries = data.get("agents") if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise AgentFileError("Agent file must contain a non-empty 'agents' list", str(path))

    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise AgentFileError(f"Entry {i} is not a mapping", str(path))
        for key in ("name", "system_prompt"):
            if not entry.get(key):
                raise AgentFileError(f"Entry {i} is missing '{key}'", str(path))
    return entries


def load_specs(path: str | Path) -> list[AgentSpec]:
    return [
        AgentSpec(
            name=e["name"],
            system_prompt=e["system_prompt"],
            allowed_tools=resolve_tools(e.get("tools") or ()),
        )
        for e in load_agent_entries(path)
    ]


def load_stages(path: str | Path) -> list[PipelineStage]:
    return [PipelineStage(e["name"], e["system_prompt"]) for e in load_agent_entries(path)]


def load_delegates(path: str | Path) -> list[DelegateSpec]:
    return [
        DelegateSpec(e["name"], e["system_prompt"], e.get("description", ""))
        for e in load_agent_entries(path)
    ]
