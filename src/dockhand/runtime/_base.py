"""Base runtime adapter with shared lifecycle logic.

Provides ``BaseWorkloadRuntime`` with the common wrapping every adapter
needs (logging, error conversion) so concrete adapters only implement the
``_do_*`` hooks.

Architecture:

    .. code-block:: text

        WorkloadRuntime (Protocol)
              │
              ▼
        BaseWorkloadRuntime
        ├── list_workloads()   → _do_list()
        ├── start()            → log + wrap → _do_start()
        ├── stop()             → log + wrap → _do_stop()
        ├── restart()          → log + wrap → _do_restart()
        ├── exec_in_workload() → log + wrap → _do_exec()
        └── ping()             → _do_ping()
              │
        ┌─────┴──────────────────────┐
        ▼                            ▼
    DockerCliRuntime           StubWorkloadRuntime
    (docker CLI subprocess)    (in-memory for tests)

    Exceptions that are already ``DockhandError`` pass through untouched;
    anything else becomes ``RuntimeUnavailable`` with the original chained
    as the cause.

Tags:
    dockhand, runtime, base, adapter

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import TypeVar

from dockhand.core.errors import DockhandError, RuntimeUnavailable
from dockhand.core.logging import get_logger
from dockhand.core.models import ExecResult, Workload

logger = get_logger(__name__)

T = TypeVar("T")


class BaseWorkloadRuntime:
    """Base class for runtime adapters.

    Subclasses MUST implement:
        _do_list, _do_start, _do_stop, _do_restart, _do_exec, _do_ping
    """

    @property
    def runtime_name(self) -> str:
        """Unique name for this runtime."""
        raise NotImplementedError

    async def list_workloads(self, include_stopped: bool = True) -> list[Workload]:
        workloads = await self._wrap("list", None, self._do_list(include_stopped))
        logger.debug(
            "runtime.listed",
            runtime=self.runtime_name,
            count=len(workloads),
            include_stopped=include_stopped,
        )
        return workloads

    async def start(self, workload_id: str) -> None:
        logger.info("runtime.start", runtime=self.runtime_name, workload_id=workload_id)
        await self._wrap("start", workload_id, self._do_start(workload_id))

    async def stop(self, workload_id: str) -> None:
        logger.info("runtime.stop", runtime=self.runtime_name, workload_id=workload_id)
        await self._wrap("stop", workload_id, self._do_stop(workload_id))

    async def restart(self, workload_id: str) -> None:
        logger.info("runtime.restart", runtime=self.runtime_name, workload_id=workload_id)
        await self._wrap("restart", workload_id, self._do_restart(workload_id))

    async def exec_in_workload(self, workload_id: str, argv: Sequence[str]) -> ExecResult:
        logger.info(
            "runtime.exec",
            runtime=self.runtime_name,
            workload_id=workload_id,
            argv=list(argv),
        )
        return await self._wrap("exec", workload_id, self._do_exec(workload_id, list(argv)))

    async def ping(self) -> str:
        """Return the runtime version string; raises when unreachable."""
        return await self._wrap("ping", None, self._do_ping())

    async def _wrap(self, action: str, workload_id: str | None, call: Awaitable[T]) -> T:
        try:
            return await call
        except DockhandError:
            raise
        except Exception as exc:
            logger.error(
                "runtime.call_failed",
                runtime=self.runtime_name,
                action=action,
                workload_id=workload_id,
                error=str(exc),
            )
            raise RuntimeUnavailable(
                f"{action} failed on {self.runtime_name}: {exc}",
                cause=exc,
            ).with_context(action=action, workload_id=workload_id) from exc

    # --- Abstract methods for subclasses ---

    async def _do_list(self, include_stopped: bool) -> list[Workload]:
        raise NotImplementedError

    async def _do_start(self, workload_id: str) -> None:
        raise NotImplementedError

    async def _do_stop(self, workload_id: str) -> None:
        raise NotImplementedError

    async def _do_restart(self, workload_id: str) -> None:
        raise NotImplementedError

    async def _do_exec(self, workload_id: str, argv: list[str]) -> ExecResult:
        raise NotImplementedError

    async def _do_ping(self) -> str:
        raise NotImplementedError


__all__ = ["BaseWorkloadRuntime"]
