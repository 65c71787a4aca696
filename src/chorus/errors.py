"""Chorus exception hierarchy.

Agent-level failures are never raised; they are encoded in
:class:`~chorus.types.results.AgentResult`. These exceptions cover engine
construction and user-supplied input.
"""

from __future__ import annotations

from typing import Any


class ChorusError(Exception):
    """Base exception for all Chorus errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class ProviderUnavailableError(ChorusError):
    """The chat provider cannot be used (missing SDK or credentials)."""

    def __init__(self, message: str, provider: str, **kw: Any):
        super().__init__(message, **kw)
        self.provider = provider


class AgentFileError(ChorusError):
    """An agent definition file could not be read or is malformed."""

    def __init__(self, message: str, path: str, **kw: Any):
        super().__init__(message, **kw)
        self.path = path
