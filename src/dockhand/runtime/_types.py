"""Runtime protocol — the container runtime as dockhand consumes it.

Every call may raise ``RuntimeUnavailable`` (daemon or CLI unreachable) or
``TargetNotFound`` (the runtime does not know the id).  Mutating calls
return once the runtime has *accepted* the command; they say nothing about
the final state, which is what the convergence poller is for.

Tags:
    dockhand, runtime, protocol, docker

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from dockhand.core.models import ExecResult, Workload


@runtime_checkable
class WorkloadRuntime(Protocol):
    """Container runtime operations used by the registry and executor."""

    @property
    def runtime_name(self) -> str: ...

    async def list_workloads(self, include_stopped: bool = True) -> list[Workload]: ...

    async def start(self, workload_id: str) -> None: ...

    async def stop(self, workload_id: str) -> None: ...

    async def restart(self, workload_id: str) -> None: ...

    async def exec_in_workload(self, workload_id: str, argv: Sequence[str]) -> ExecResult: ...

    async def ping(self) -> str: ...


__all__ = ["WorkloadRuntime"]
