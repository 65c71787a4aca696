"""Quota checks consulted by the HTTP layer around each agent run."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Entitlements(Protocol):
    """Decides whether a user may run an agent and records what they used."""

    async def is_allowed(self, user_id: str) -> bool:
        ...

    async def record_usage(self, user_id: str) -> None:
        ...


class UnlimitedEntitlements:
    """Allows every request and only counts usage in memory."""

    def __init__(self) -> None:
        self.usage: Counter[str] = Counter()

    async def is_allowed(self, user_id: str) -> bool:
        return True

    async def record_usage(self, user_id: str) -> None:
        self.usage[user_id] += 1
        logger.debug("Usage for %s: %d", user_id, self.usage[user_id])


class QuotaEntitlements(UnlimitedEntitlements):
    """Allows each user at most ``limit`` runs; ``pro_users`` are never limited."""

    def __init__(self, limit: int, pro_users: frozenset[str] = frozenset()) -> None:
        super().__init__()
        self.limit = limit
        self.pro_users = pro_users

    async def is_allowed(self, user_id: str) -> bool:
        return user_id in self.pro_users or self.usage[user_id] < self.limit

    async def record_usage(self, user_id: str) -> None:
        if user_id in self.pro_users:
            return
        await super().record_usage(user_id)
