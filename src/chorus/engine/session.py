"""JSONL transcripts backing the default engine's resumable sessions."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from chorus.types.providers import ChatMessage


def new_session_id() -> str:
    """Generate a new session ID."""
    return uuid.uuid4().hex


class EngineSession:
    """Append-only JSONL conversation transcript.

    Opening an existing ID replays its messages so a resumed submission sees
    the whole prior conversation.
    """

    def __init__(self, sessions_dir: str | Path, session_id: str | None = None):
        self.session_id = session_id or new_session_id()
        directory = Path(sessions_dir).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        self._path = directory / f"{self.session_id}.jsonl"
        self._messages: list[ChatMessage] = []
        self._turns = 0
        self.resumed = self._path.exists()
        if self.resumed:
            self._load()
        else:
            self._append({
                "type": "metadata",
                "created_at": datetime.now(UTC).isoformat(),
            })

    def _load(self) -> None:
        with open(self._path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                entry = json.loads(line)
                if entry.get("type") == "message":
                    self._messages.append(ChatMessage(
                        role=entry["role"],
                        content=entry["content"],
                    ))
                elif entry.get("type") == "turn":
                    self._turns = entry.get("turn", self._turns)

    def _append(self, entry: dict[str, Any]) -> None:
        with open(self._path, "a") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def turns(self) -> int:
        """Model turns recorded across every submission on this session."""
        return self._turns

    def add_message(self, msg: ChatMessage) -> None:
        self._messages.append(msg)
        self._append({"type": "message", "role": msg.role, "content": msg.content})

    def record_turn(self, input_tokens: int, output_tokens: int, cost: float) -> None:
        self._turns += 1
        self._append({
            "type": "turn",
            "turn": self._turns,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "cost": cost,
            "timestamp": datetime.now(UTC).isoformat(),
        })
