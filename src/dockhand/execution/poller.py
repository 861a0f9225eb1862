"""State convergence poller — wait until the runtime reports the expected state.

WHY
───
A runtime that accepted ``docker start`` has not necessarily started the
container yet.  Anything that tells a caller "done" has to be gated on the
state the runtime *reports*, not on the command returning.

ARCHITECTURE
────────────
::

    await_state(id, operation, policy)
      predicate: start/restart → running
                 stop          → anything but running

      repeat policy.max_attempts times:
          sleep(interval)              ← always before the first look
          refresh + get(id)            ← one lock hold
          vanished / refresh failed    → note it, next attempt
          predicate holds              → reached=True, return
      one last refresh + get(id)       ← catches a transition on the last tick
      return predicate outcome

    await_group(names, running, policy) is the same loop over several names;
    a member that no longer exists counts as not running.

    Attempts are counted, not timed: the budget is exactly
    ``max_attempts`` sleeps plus ``max_attempts + 1`` observations.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from dockhand.core.errors import RuntimeUnavailable
from dockhand.core.logging import get_logger
from dockhand.core.models import Operation, RetryPolicy, Workload
from dockhand.execution.registry import RegistrySnapshot

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def target_predicate(operation: Operation) -> Callable[[Workload], bool]:
    """State predicate confirming ``operation``."""
    if operation in (Operation.START, Operation.RESTART):
        return lambda workload: workload.is_running
    if operation is Operation.STOP:
        return lambda workload: not workload.is_running
    raise ValueError(f"{operation.value} has no convergence target")


@dataclass(frozen=True)
class ConvergenceResult:
    """Outcome of waiting for one workload."""

    reached: bool
    workload: Workload | None
    attempts: int


@dataclass(frozen=True)
class GroupConvergence:
    """Outcome of waiting for a set of workloads."""

    reached: bool
    pending: tuple[str, ...] = field(default_factory=tuple)
    attempts: int = 0


class ConvergencePoller:
    """Bounded, attempt-counted polling against the registry snapshot."""

    def __init__(self, registry: RegistrySnapshot, *, sleep: Sleep = asyncio.sleep):
        self._registry = registry
        self._sleep = sleep

    async def await_state(
        self,
        workload_id: str,
        operation: Operation,
        policy: RetryPolicy,
    ) -> ConvergenceResult:
        predicate = target_predicate(operation)
        last: Workload | None = None

        for attempt in range(1, policy.max_attempts + 1):
            await self._sleep(policy.interval_seconds)
            last = await self._observe_one(workload_id)
            if last is None:
                logger.info(
                    "poller.workload_missing",
                    workload_id=workload_id,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                )
                continue
            logger.debug(
                "poller.observed",
                workload=last.display_name,
                state=last.state.value,
                status=last.status,
                attempt=attempt,
            )
            if predicate(last):
                return ConvergenceResult(reached=True, workload=last, attempts=attempt)

        last = await self._observe_one(workload_id)
        reached = last is not None and predicate(last)
        if not reached:
            logger.warning(
                "poller.not_converged",
                workload_id=workload_id,
                operation=operation.value,
                budget_seconds=policy.budget_seconds,
            )
        return ConvergenceResult(reached=reached, workload=last, attempts=policy.max_attempts + 1)

    async def await_group(
        self,
        names: Iterable[str],
        *,
        running: bool,
        policy: RetryPolicy,
    ) -> GroupConvergence:
        """Wait until every named workload is (or is not) running."""
        members = tuple(names)

        for attempt in range(1, policy.max_attempts + 1):
            await self._sleep(policy.interval_seconds)
            pending = await self._observe_group(members, running)
            if pending is None:
                continue
            if not pending:
                return GroupConvergence(reached=True, attempts=attempt)
            logger.info(
                "poller.group_pending",
                pending=list(pending),
                attempt=attempt,
                max_attempts=policy.max_attempts,
            )

        pending = await self._observe_group(members, running)
        if pending is None:
            pending = members
        return GroupConvergence(
            reached=not pending,
            pending=pending,
            attempts=policy.max_attempts + 1,
        )

    async def _observe_one(self, workload_id: str) -> Workload | None:
        try:
            return await self._registry.refresh_and_get(workload_id)
        except RuntimeUnavailable:
            return None

    async def _observe_group(self, members: tuple[str, ...], running: bool) -> tuple[str, ...] | None:
        """Names not yet in the wanted state, or None if the refresh failed."""
        try:
            observed = await self._registry.refresh_and_resolve_all(members)
        except RuntimeUnavailable:
            return None
        pending = []
        for name in members:
            workload = observed[name]
            is_running = workload is not None and workload.is_running
            if is_running != running:
                pending.append(name)
        return tuple(pending)


__all__ = [
    "ConvergencePoller",
    "ConvergenceResult",
    "GroupConvergence",
    "Sleep",
    "target_predicate",
]
