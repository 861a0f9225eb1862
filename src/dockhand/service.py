"""
Orchestrator — the single entry point callers use to act on workloads.

Every request enters through ``run_operation(actor, operation, target,
payload)`` and leaves as an ``OperationOutcome``: a status plus the text to
show the caller.  Known failures (``DockhandError``) become outcomes; anything
else propagates.

Request flow:
    ::

        run_operation(actor, op, target, payload)
          │
          ├── parse op                      InvalidRequest  → invalid
          ├── remediate? target = primary
          ├── authorize(matrix, actor, op)  deny            → denied
          ├── refresh + resolve(target)     missing         → not_found
          │
          ├── remediate ──► SagaRunner.run(definition) → transcript
          │
          └── hold lock(workload.id)
                ├── refresh, pre-flight     already there   → no_change
                ├── exec      → executor.exec               → output text
                └── start/stop/restart
                      executor.run(op)      rejected        → failed
                      poller.await_state    reached         → completed
                                            not reached     → unconfirmed

    Grant mutation, listing and health sit beside ``run_operation`` and
    share the same registry snapshot and permission store.

Tags:
    orchestrator, service, dockhand
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dockhand.core.errors import (
    AuthorizationDenied,
    ConvergenceTimeout,
    DockhandError,
    ErrorCategory,
    InvalidRequest,
    RuntimeUnavailable,
    SagaAborted,
    TargetNotFound,
)
from dockhand.core.logging import LogContext, get_logger
from dockhand.core.models import Actor, GrantClass, GrantScope, Operation, Workload
from dockhand.core.settings import DockhandSettings, get_settings
from dockhand.execution.executor import LifecycleExecutor
from dockhand.execution.locks import WorkloadLocks
from dockhand.execution.poller import ConvergencePoller, Sleep
from dockhand.execution.registry import RegistrySnapshot
from dockhand.orchestration.remediation import build_remediation_saga
from dockhand.orchestration.saga import SagaReport, SagaRunner, SagaStatus
from dockhand.orchestration.steps import SagaDefinition
from dockhand.permissions.matrix import PermissionMatrix
from dockhand.permissions.resolver import EffectivePermissions, authorize, effective_permissions
from dockhand.permissions.store import JsonPermissionStore, PermissionStore
from dockhand.runtime._types import WorkloadRuntime
from dockhand.runtime.docker import DockerCliRuntime

logger = get_logger(__name__)

DENIED_MESSAGE = "You are not allowed to use this command"


class OutcomeStatus(str, Enum):
    """How a request ended."""

    COMPLETED = "completed"
    NO_CHANGE = "no_change"
    UNCONFIRMED = "unconfirmed"
    PARTIAL = "partial"
    ABORTED = "aborted"
    DENIED = "denied"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    INVALID = "invalid"


_STATUS_BY_CATEGORY = {
    ErrorCategory.AUTH: OutcomeStatus.DENIED,
    ErrorCategory.NOT_FOUND: OutcomeStatus.NOT_FOUND,
    ErrorCategory.VALIDATION: OutcomeStatus.INVALID,
    ErrorCategory.ORCHESTRATION: OutcomeStatus.ABORTED,
    ErrorCategory.CONVERGENCE: OutcomeStatus.UNCONFIRMED,
}

_SAGA_STATUS = {
    SagaStatus.SUCCEEDED: OutcomeStatus.COMPLETED,
    SagaStatus.PARTIAL: OutcomeStatus.PARTIAL,
    SagaStatus.ABORTED: OutcomeStatus.ABORTED,
}


class ListFilter(str, Enum):
    """Workload listing filter."""

    ALL = "all"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class OperationOutcome:
    """Result of one ``run_operation`` call.

    ``message`` is what the caller shows.  For ``exec`` it is the captured
    output; for ``remediate`` it is the rendered saga transcript, with the
    structured report in ``transcript``.
    """

    operation: str
    target: str | None
    status: OutcomeStatus
    message: str
    output: str | None = None
    transcript: SagaReport | None = None
    workload: Workload | None = None
    error: DockhandError | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status in (OutcomeStatus.COMPLETED, OutcomeStatus.NO_CHANGE)

    @classmethod
    def from_error(cls, operation: str, target: str | None, error: DockhandError) -> OperationOutcome:
        status = _STATUS_BY_CATEGORY.get(error.category, OutcomeStatus.FAILED)
        message = error.message
        if error.category is ErrorCategory.RUNTIME:
            message = f"Error executing command: {error.message}"
        return cls(operation=operation, target=target, status=status, message=message, error=error)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "operation": self.operation,
            "target": self.target,
            "status": self.status.value,
            "message": self.message,
        }
        if self.output is not None:
            result["output"] = self.output
        if self.transcript is not None:
            result["transcript"] = self.transcript.to_dict()
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


class Orchestrator:
    """Wires registry, executor, poller and saga runner around one runtime.

    Parameters
    ----------
    runtime
        Container runtime adapter.
    store
        Permission store; loaded on every request so edits made elsewhere
        are honoured.
    settings
        Retry budget, exec shell and remediation topology.  Defaults to
        ``get_settings()``.
    sleep
        Coroutine used for every wait (poll interval, warm-up).  Tests pass
        a recording fake.
    """

    def __init__(
        self,
        runtime: WorkloadRuntime,
        store: PermissionStore,
        settings: DockhandSettings | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.runtime = runtime
        self.store = store
        self.policy = self.settings.retry_policy
        self.registry = RegistrySnapshot(runtime)
        self.locks = WorkloadLocks()
        self.executor = LifecycleExecutor(runtime, self.registry, exec_shell=self.settings.exec_shell)
        self.poller = ConvergencePoller(self.registry, sleep=sleep)
        self.saga_runner = SagaRunner(
            self.registry,
            self.executor,
            self.poller,
            self.locks,
            self.policy,
            sleep=sleep,
        )
        self.remediation: SagaDefinition = build_remediation_saga(self.settings.remediation)

    @classmethod
    def from_settings(cls, settings: DockhandSettings | None = None) -> Orchestrator:
        """Build an orchestrator on the docker CLI and the JSON permission file."""
        settings = settings or get_settings()
        runtime = DockerCliRuntime(docker_cmd=settings.docker_cmd, timeout=settings.docker_timeout)
        store = JsonPermissionStore(settings.permissions_file)
        return cls(runtime, store, settings)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def run_operation(
        self,
        actor: Actor,
        operation: Operation | str,
        target_name: str | None = None,
        payload: str | None = None,
    ) -> OperationOutcome:
        op_name = operation.value if isinstance(operation, Operation) else str(operation)
        async with LogContext(actor=actor.id, operation=op_name, target=target_name):
            try:
                return await self._run(actor, op_name, target_name, payload)
            except DockhandError as exc:
                logger.warning("operation.failed", category=exc.category.value, error=exc.message)
                return OperationOutcome.from_error(op_name, target_name, exc)

    async def _run(
        self,
        actor: Actor,
        op_name: str,
        target_name: str | None,
        payload: str | None,
    ) -> OperationOutcome:
        op = _parse_operation(op_name)
        if op is Operation.REMEDIATE:
            target_name = self.remediation.primary
        if not target_name:
            raise InvalidRequest(f"A container name is required for {op.value}")

        matrix = self.store.load()
        if not authorize(matrix, actor, op, target_name):
            logger.info("operation.denied")
            raise AuthorizationDenied(DENIED_MESSAGE).with_context(actor=actor.id, target=target_name)

        workload = await self.registry.refresh_and_require(target_name)

        if op is Operation.REMEDIATE:
            return await self._remediate(target_name)

        async with self.locks.hold(workload.id):
            current = await self.registry.refresh_and_get(workload.id)
            if current is None:
                raise TargetNotFound(f"Container '{target_name}' doesn't exist!").with_context(
                    target=target_name
                )
            workload = current
            if op.converges:
                return await self._lifecycle(op, workload, target_name)
            return await self._exec(workload, target_name, payload)

    async def _lifecycle(self, op: Operation, workload: Workload, name: str) -> OperationOutcome:
        unchanged = None
        if op is Operation.START and workload.is_running:
            unchanged = f"{name} is already running"
        elif op in (Operation.STOP, Operation.RESTART) and not workload.is_running:
            unchanged = f"{name} is already stopped"
        if unchanged is not None:
            logger.info("operation.no_change", state=workload.state.value)
            return OperationOutcome(op.value, name, OutcomeStatus.NO_CHANGE, unchanged, workload=workload)

        result = await self.executor.run(op, workload.id)
        if result.error is not None:
            return OperationOutcome.from_error(op.value, name, result.error)

        logger.info("operation.awaiting", budget_seconds=self.policy.budget_seconds)
        convergence = await self.poller.await_state(workload.id, op, self.policy)
        if convergence.reached:
            logger.info("operation.finished", attempts=convergence.attempts)
            message = f"{name} has been {op.past_tense}"
            return OperationOutcome(
                op.value, name, OutcomeStatus.COMPLETED, message, workload=convergence.workload
            )

        if convergence.workload is None:
            message = f"{name} could not be found after command execution"
        else:
            message = f"{name} could not be {op.past_tense}"
        timeout = ConvergenceTimeout(message).with_context(target=name, attempts=convergence.attempts)
        logger.warning("operation.unconfirmed", attempts=convergence.attempts)
        return OperationOutcome(
            op.value,
            name,
            _STATUS_BY_CATEGORY[timeout.category],
            message,
            workload=convergence.workload,
            error=timeout,
        )

    async def _exec(self, workload: Workload, name: str, payload: str | None) -> OperationOutcome:
        if not payload:
            raise InvalidRequest("CLI command is required for exec operation")
        result = await self.executor.exec(workload.id, payload)
        output = result.output or ""
        status = OutcomeStatus.COMPLETED if result.succeeded else OutcomeStatus.FAILED
        return OperationOutcome(
            Operation.EXEC.value,
            name,
            status,
            output,
            output=output,
            workload=workload,
            error=result.error,
        )

    async def _remediate(self, primary: str) -> OperationOutcome:
        report = await self.saga_runner.run(self.remediation)
        status = _SAGA_STATUS[report.status]
        error = None
        if report.status is SagaStatus.ABORTED:
            error = SagaAborted(report.results[-1].message, step=report.aborted_at)
        return OperationOutcome(
            Operation.REMEDIATE.value,
            primary,
            status,
            report.render(),
            transcript=report,
            error=error,
        )

    # ------------------------------------------------------------------
    # Listing and health
    # ------------------------------------------------------------------

    async def list_workloads(self, listing: ListFilter | str = ListFilter.ALL) -> list[Workload]:
        listing = ListFilter(listing)
        workloads = await self.registry.refresh()
        if listing is ListFilter.RUNNING:
            return [w for w in workloads if w.is_running]
        if listing is ListFilter.STOPPED:
            return [w for w in workloads if not w.is_running]
        return list(workloads)

    def snapshot_count(self) -> int:
        """Cached workload count, without touching the runtime."""
        return self.registry.count

    async def health(self) -> dict[str, Any]:
        """Runtime reachability, workload count after one refresh, and busy workloads."""
        report: dict[str, Any] = {"runtime": self.runtime.runtime_name}
        try:
            report["version"] = await self.runtime.ping()
            await self.registry.refresh()
        except RuntimeUnavailable as exc:
            report.update(healthy=False, error=exc.message)
        else:
            report["healthy"] = True
        refreshed_at = self.registry.refreshed_at
        report.update(
            workloads=self.snapshot_count(),
            refreshed_at=refreshed_at.isoformat() if refreshed_at else None,
            busy=self.locks.list_active(),
        )
        return report

    # ------------------------------------------------------------------
    # Permission management
    # ------------------------------------------------------------------

    async def grant(
        self,
        subject_id: str,
        workload_name: str,
        grant_class: GrantClass | str,
        scope: GrantScope | str,
    ) -> bool:
        """Add a grant after checking the workload exists.  False if already granted."""
        if await self.registry.refresh_and_resolve(workload_name) is None:
            raise TargetNotFound(f'Container "{workload_name}" does not exist.').with_context(
                target=workload_name
            )
        grant_class, scope = GrantClass(grant_class), GrantScope(scope)
        return self._mutate(lambda m: m.grant(subject_id, workload_name, grant_class, scope))

    def revoke(
        self,
        subject_id: str,
        workload_name: str,
        grant_class: GrantClass | str,
        scope: GrantScope | str,
    ) -> bool:
        """Remove a grant.  Workload existence is not checked."""
        grant_class, scope = GrantClass(grant_class), GrantScope(scope)
        return self._mutate(lambda m: m.revoke(subject_id, workload_name, grant_class, scope))

    def add_admin(self, actor_id: str) -> bool:
        return self._mutate(lambda m: m.add_admin(actor_id))

    def remove_admin(self, actor_id: str) -> bool:
        return self._mutate(lambda m: m.remove_admin(actor_id))

    def list_admins(self) -> list[str]:
        return list(self.store.load().admin_ids)

    def grants_for(self, subject_id: str, scope: GrantScope | str) -> dict[GrantClass, list[str]]:
        return self.store.load().grants_for(subject_id, GrantScope(scope))

    def effective_permissions(self, actor: Actor) -> EffectivePermissions:
        return effective_permissions(self.store.load(), actor)

    def _mutate(self, change: Callable[[PermissionMatrix], bool]) -> bool:
        matrix: PermissionMatrix = self.store.load()
        changed = change(matrix)
        if changed:
            self.store.save(matrix)
            logger.info("permissions.changed")
        return changed


def _parse_operation(value: str) -> Operation:
    try:
        return Operation(value.strip().lower())
    except ValueError:
        valid = ", ".join(op.value for op in Operation)
        raise InvalidRequest(f"Unknown operation '{value}'. Expected one of: {valid}") from None


__all__ = ["ListFilter", "Orchestrator", "OperationOutcome", "OutcomeStatus", "DENIED_MESSAGE"]
