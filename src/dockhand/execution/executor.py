"""Lifecycle command executor — one mutating call against one workload.

The executor issues exactly one runtime call per method and reports what
the runtime said *immediately*.  It never waits for convergence; that is
the poller's job.  After ``start``/``stop``/``restart`` it refreshes the
registry once so the cache is warm for whoever looks next.

    ::

        start(id)    already running   → ok, no runtime call (skipped)
                     otherwise         → runtime.start, refresh,
                                         running = observed state
        stop(id)     runtime.stop, refresh     ok = call accepted
        restart(id)  runtime.restart, refresh  ok = call accepted
        exec(id, c)  runtime.exec([shell, -c, c]) → combined text output;
                     lookup / session failures become "Error: ..." text

    Runtime errors are reported in ``CommandResult.error``, never retried
    here.
"""

from __future__ import annotations

from dataclasses import dataclass

from dockhand.core.errors import DockhandError, RuntimeUnavailable, TargetNotFound
from dockhand.core.logging import get_logger
from dockhand.core.models import Operation, Workload
from dockhand.execution.registry import RegistrySnapshot
from dockhand.runtime._types import WorkloadRuntime

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Immediate outcome of one executor call."""

    workload_id: str
    operation: Operation
    succeeded: bool
    running: bool | None = None
    skipped: bool = False
    output: str | None = None
    error: DockhandError | None = None

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error is not None else None


class LifecycleExecutor:
    """Issues start/stop/restart/exec calls for resolved workload ids."""

    def __init__(
        self,
        runtime: WorkloadRuntime,
        registry: RegistrySnapshot,
        *,
        exec_shell: str = "bash",
    ):
        self._runtime = runtime
        self._registry = registry
        self._exec_shell = exec_shell

    async def start(self, workload_id: str) -> CommandResult:
        current = self._registry.get(workload_id)
        if current is None:
            raise TargetNotFound(f"Container '{workload_id}' not found").with_context(
                workload_id=workload_id
            )
        if current.is_running:
            logger.info("executor.already_running", workload=current.display_name)
            return CommandResult(
                workload_id=workload_id,
                operation=Operation.START,
                succeeded=True,
                running=True,
                skipped=True,
            )

        try:
            await self._runtime.start(workload_id)
        except DockhandError as exc:
            return self._failed(workload_id, Operation.START, exc)

        after = await self._refresh_and_get(workload_id)
        running = after.is_running if after is not None else False
        logger.info("executor.start_sent", workload_id=workload_id, running=running)
        return CommandResult(
            workload_id=workload_id,
            operation=Operation.START,
            succeeded=True,
            running=running,
        )

    async def stop(self, workload_id: str) -> CommandResult:
        return await self._issue(Operation.STOP, workload_id)

    async def restart(self, workload_id: str) -> CommandResult:
        return await self._issue(Operation.RESTART, workload_id)

    async def run(self, operation: Operation, workload_id: str) -> CommandResult:
        """Dispatch start/stop/restart by operation."""
        if operation is Operation.START:
            return await self.start(workload_id)
        if operation is Operation.STOP:
            return await self.stop(workload_id)
        if operation is Operation.RESTART:
            return await self.restart(workload_id)
        raise ValueError(f"{operation.value} is not a lifecycle command")

    async def exec(self, workload_id: str, command: str) -> CommandResult:
        """Run ``command`` through the configured shell inside the workload."""
        if self._registry.get(workload_id) is None:
            error = TargetNotFound(f"Container '{workload_id}' not found")
            return self._failed(workload_id, Operation.EXEC, error, output=f"Error: {error.message}")

        argv = [self._exec_shell, "-c", command]
        try:
            result = await self._runtime.exec_in_workload(workload_id, argv)
        except DockhandError as exc:
            return self._failed(workload_id, Operation.EXEC, exc, output=f"Error: {exc.message}")

        logger.info(
            "executor.exec_finished",
            workload_id=workload_id,
            exit_code=result.exit_code,
            stderr=bool(result.stderr),
        )
        return CommandResult(
            workload_id=workload_id,
            operation=Operation.EXEC,
            succeeded=True,
            output=result.render(),
        )

    async def _issue(self, operation: Operation, workload_id: str) -> CommandResult:
        call = self._runtime.stop if operation is Operation.STOP else self._runtime.restart
        try:
            await call(workload_id)
        except DockhandError as exc:
            return self._failed(workload_id, operation, exc)

        after = await self._refresh_and_get(workload_id)
        logger.info("executor.command_sent", operation=operation.value, workload_id=workload_id)
        return CommandResult(
            workload_id=workload_id,
            operation=operation,
            succeeded=True,
            running=after.is_running if after is not None else None,
        )

    async def _refresh_and_get(self, workload_id: str) -> Workload | None:
        try:
            return await self._registry.refresh_and_get(workload_id)
        except RuntimeUnavailable:
            return None

    @staticmethod
    def _failed(
        workload_id: str,
        operation: Operation,
        error: DockhandError,
        *,
        output: str | None = None,
    ) -> CommandResult:
        logger.error(
            "executor.command_failed",
            operation=operation.value,
            workload_id=workload_id,
            error=error.message,
        )
        return CommandResult(
            workload_id=workload_id,
            operation=operation,
            succeeded=False,
            output=output,
            error=error,
        )


__all__ = ["CommandResult", "LifecycleExecutor"]
