"""Per-workload locks — at most one lifecycle command in flight per workload.

Interleaved start/stop calls on one container race inside the runtime with
no defined outcome.  ``WorkloadLocks`` hands out one ``asyncio.Lock`` per
key (a workload id, or ``saga:<name>`` for a whole remediation workflow)
and forgets it again once nobody holds or waits for it.

Example::

    locks = WorkloadLocks()
    async with locks.hold(workload.id):
        await executor.stop(workload.id)
        await poller.await_state(workload.id, Operation.STOP, policy)
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dockhand.core.logging import get_logger

logger = get_logger(__name__)


class WorkloadLocks:
    """Keyed map of asyncio locks with reference-counted cleanup.

    Locks are not re-entrant: a task holding ``hold(key)`` must not request
    the same key again.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        if lock.locked():
            logger.debug("lock.waiting", key=key)
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def list_active(self) -> list[str]:
        """Keys currently held."""
        return sorted(key for key in self._locks if self.is_locked(key))


__all__ = ["WorkloadLocks"]
