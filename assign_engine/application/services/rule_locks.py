"""Per-rule critical sections.

Rotation cursors and statistics of one rule are mutated under that rule's lock;
different rules never wait on each other.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class RuleLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}

    def lock_for(self, rule_id: int) -> asyncio.Lock:
        lock = self._locks.get(rule_id)
        if lock is None:
            lock = self._locks[rule_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, rule_id: int) -> AsyncIterator[None]:
        async with self.lock_for(rule_id):
            yield
