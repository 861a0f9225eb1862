"""Registry snapshot — the cached view of every workload the runtime knows.

WHY
───
Every request needs to turn a display name into an id and to read the
current state, and the poller re-reads state after every mutating call.
``RegistrySnapshot`` is the single owner of that cached listing so all of
them agree on what "current" means.

ARCHITECTURE
────────────
::

    RegistrySnapshot(runtime)
      ├── .refresh()                 ─ list (incl. stopped), replace snapshot
      ├── .resolve(name)             ─ exact display-name match
      ├── .get(workload_id)          ─ full or short id match
      ├── .refresh_and_resolve(name) ─ both under one lock hold
      ├── .refresh_and_require(name) ─ same, TargetNotFound when missing
      ├── .refresh_and_get(id)       ─ both under one lock hold
      ├── .refresh_and_resolve_all(names)
      └── .count                     ─ cached workload count (liveness)

    The snapshot is an immutable tuple replaced in one assignment while the
    lock is held, so a reader never sees a half-written listing.  A failed
    refresh leaves the previous tuple in place and raises
    ``RuntimeUnavailable``.

    Refreshes happen on demand only; there is no background timer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import UTC, datetime

from dockhand.core.errors import RuntimeUnavailable, TargetNotFound
from dockhand.core.logging import get_logger
from dockhand.core.models import Workload
from dockhand.runtime._types import WorkloadRuntime

logger = get_logger(__name__)


class RegistrySnapshot:
    """Lock-guarded cache of the runtime's workload listing."""

    def __init__(self, runtime: WorkloadRuntime):
        self._runtime = runtime
        self._workloads: tuple[Workload, ...] = ()
        self._lock = asyncio.Lock()
        self._refreshed_at: datetime | None = None

    @property
    def workloads(self) -> tuple[Workload, ...]:
        return self._workloads

    @property
    def count(self) -> int:
        return len(self._workloads)

    @property
    def refreshed_at(self) -> datetime | None:
        return self._refreshed_at

    async def refresh(self) -> tuple[Workload, ...]:
        """Replace the snapshot with a fresh listing and return it."""
        async with self._lock:
            return await self._refresh_locked()

    def resolve(self, name: str) -> Workload | None:
        """Find the workload whose display name is exactly ``name``."""
        for workload in self._workloads:
            if workload.matches(name):
                return workload
        return None

    def get(self, workload_id: str) -> Workload | None:
        """Find a workload by full id, or by its 12-character short id."""
        for workload in self._workloads:
            if workload.id == workload_id or workload.short_id == workload_id:
                return workload
        return None

    async def refresh_and_resolve(self, name: str) -> Workload | None:
        async with self._lock:
            await self._refresh_locked()
            return self.resolve(name)

    async def refresh_and_require(self, name: str) -> Workload:
        """Like ``refresh_and_resolve`` but raises ``TargetNotFound`` for unknown names."""
        workload = await self.refresh_and_resolve(name)
        if workload is None:
            raise TargetNotFound(f"Container '{name}' doesn't exist!").with_context(target=name)
        return workload

    async def refresh_and_get(self, workload_id: str) -> Workload | None:
        async with self._lock:
            await self._refresh_locked()
            return self.get(workload_id)

    async def refresh_and_resolve_all(self, names: Iterable[str]) -> dict[str, Workload | None]:
        async with self._lock:
            await self._refresh_locked()
            return {name: self.resolve(name) for name in names}

    async def _refresh_locked(self) -> tuple[Workload, ...]:
        try:
            listing = await self._runtime.list_workloads(include_stopped=True)
        except RuntimeUnavailable as exc:
            logger.warning("registry.refresh_failed", error=exc.message, cached=len(self._workloads))
            raise
        self._workloads = tuple(listing)
        self._refreshed_at = datetime.now(UTC)
        logger.debug("registry.refreshed", count=len(self._workloads))
        return self._workloads


__all__ = ["RegistrySnapshot"]
