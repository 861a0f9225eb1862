"""Saga runner — interprets a ``SagaDefinition`` one step at a time.

Manifesto:
    Remediation workflows used to be nested loops with early returns.  Here
    a workflow is a tuple of step descriptors and ``SagaRunner.run`` is the
    only control flow: look up the handler for the step's action, run it,
    append its results, stop on ``SagaAborted``.

ARCHITECTURE
────────────
::

    SagaRunner.run(definition)
      hold lock "saga:<name>"
      for step in definition.steps:
          description?  → append header line
          handler(step) → list[SagaStepResult]   appended in order
          SagaAborted   → append failure, status=ABORTED, stop
      VERIFY_RUNNING failures → status=PARTIAL
      otherwise               → status=SUCCEEDED

    Handlers drive the executor (one command per member, each under that
    member's workload lock) and the poller (group convergence).  The saga
    never re-authorizes its own sub-steps.

    SagaReport.render() joins every message into the text transcript; the
    structured ``results`` list is the same data for callers that want it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dockhand.core.errors import RuntimeUnavailable, SagaAborted, TargetNotFound
from dockhand.core.logging import LogContext, get_logger
from dockhand.core.models import RetryPolicy, Workload
from dockhand.execution.executor import LifecycleExecutor
from dockhand.execution.locks import WorkloadLocks
from dockhand.execution.poller import ConvergencePoller, Sleep
from dockhand.execution.registry import RegistrySnapshot
from dockhand.orchestration.step_result import SagaStepResult
from dockhand.orchestration.steps import ErrorPolicy, SagaDefinition, SagaStep, StepAction

logger = get_logger(__name__)


class SagaStatus(str, Enum):
    """Overall result of a saga run."""

    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    ABORTED = "aborted"


@dataclass
class SagaReport:
    """Ordered transcript of one saga run.  Results are append-only."""

    saga: str
    results: list[SagaStepResult] = field(default_factory=list)
    status: SagaStatus = SagaStatus.SUCCEEDED
    aborted_at: str | None = None

    def append(self, result: SagaStepResult) -> None:
        self.results.append(result)

    @property
    def steps_run(self) -> list[str]:
        """Step names that produced at least one line, in order."""
        return list(dict.fromkeys(result.step for result in self.results))

    @property
    def succeeded(self) -> bool:
        return self.status is SagaStatus.SUCCEEDED

    def render(self) -> str:
        return "\n".join(result.message for result in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "saga": self.saga,
            "status": self.status.value,
            "aborted_at": self.aborted_at,
            "results": [result.to_dict() for result in self.results],
        }


StepHandlerFn = Callable[[SagaStep, SagaDefinition], Awaitable[list[SagaStepResult]]]


class SagaRunner:
    """Drives saga definitions against the executor, poller and registry."""

    def __init__(
        self,
        registry: RegistrySnapshot,
        executor: LifecycleExecutor,
        poller: ConvergencePoller,
        locks: WorkloadLocks,
        policy: RetryPolicy,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self._registry = registry
        self._executor = executor
        self._poller = poller
        self._locks = locks
        self._policy = policy
        self._sleep = sleep
        self._handlers: dict[StepAction, StepHandlerFn] = {
            StepAction.STOP: self._stop,
            StepAction.AWAIT_STOPPED: self._await_stopped,
            StepAction.START: self._start,
            StepAction.AWAIT_RUNNING: self._await_running,
            StepAction.WAIT: self._wait,
            StepAction.VERIFY_RUNNING: self._verify_running,
        }

    async def run(self, definition: SagaDefinition) -> SagaReport:
        report = SagaReport(saga=definition.name)

        async with self._locks.hold(f"saga:{definition.name}"), LogContext(saga=definition.name):
            logger.info("saga.started", steps=definition.step_names)
            for step in definition.steps:
                if step.description:
                    report.append(SagaStepResult.ok(step.name, step.description))
                try:
                    results = await self._handlers[step.action](step, definition)
                except SagaAborted as exc:
                    report.append(SagaStepResult.fail(step.name, exc.message))
                    report.status = SagaStatus.ABORTED
                    report.aborted_at = step.name
                    logger.warning("saga.aborted", step=step.name, reason=exc.message)
                    break

                for result in results:
                    report.append(result)
                if step.action is StepAction.VERIFY_RUNNING and not all(r.succeeded for r in results):
                    report.status = SagaStatus.PARTIAL

            logger.info("saga.finished", status=report.status.value, steps_run=report.steps_run)
        return report

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    async def _stop(self, step: SagaStep, definition: SagaDefinition) -> list[SagaStepResult]:
        observed = await self._observe(step)
        results = []
        for name in step.targets:
            workload = observed[name]
            if workload is None:
                results.append(SagaStepResult.ok(step.name, f"{name} not found, skipping.", name))
                continue
            if not workload.is_running:
                results.append(SagaStepResult.ok(step.name, f"{name} is already stopped.", name))
                continue
            logger.info("saga.stopping", workload=name)
            async with self._locks.hold(workload.id):
                outcome = await self._executor.stop(workload.id)
            if outcome.succeeded:
                results.append(SagaStepResult.ok(step.name, f"Stopped {name}.", name))
            else:
                results.append(
                    SagaStepResult.fail(step.name, f"Failed to stop {name}: {outcome.error_message}", name)
                )
        return results

    async def _await_stopped(self, step: SagaStep, definition: SagaDefinition) -> list[SagaStepResult]:
        outcome = await self._poller.await_group(step.targets, running=False, policy=self._policy)
        if outcome.reached:
            return [SagaStepResult.ok(step.name, "All containers stopped successfully.")]
        still_running = ", ".join(outcome.pending)
        message = f"Could not confirm that all containers stopped (still running: {still_running})."
        return [self._failure(step, message)]

    async def _start(self, step: SagaStep, definition: SagaDefinition) -> list[SagaStepResult]:
        observed = await self._observe(step)
        results = []
        for name in step.targets:
            workload = observed[name]
            if workload is None:
                results.append(self._failure(step, f"{name} container not found.", name))
                continue
            logger.info("saga.starting", workload=name)
            try:
                async with self._locks.hold(workload.id):
                    outcome = await self._executor.start(workload.id)
            except TargetNotFound:
                results.append(self._failure(step, f"{name} container not found.", name))
                continue
            if outcome.skipped:
                results.append(SagaStepResult.ok(step.name, f"{name} is already running.", name))
            elif outcome.succeeded:
                results.append(SagaStepResult.ok(step.name, f"Start command sent to {name}.", name))
            else:
                results.append(
                    SagaStepResult.fail(step.name, f"Failed to start {name}: {outcome.error_message}", name)
                )
        return results

    async def _await_running(self, step: SagaStep, definition: SagaDefinition) -> list[SagaStepResult]:
        outcome = await self._poller.await_group(step.targets, running=True, policy=self._policy)
        names = ", ".join(step.targets)
        if outcome.reached:
            return [SagaStepResult.ok(step.name, f"{names} started successfully.")]
        return [self._failure(step, f"Failed to start {', '.join(outcome.pending)}.")]

    async def _wait(self, step: SagaStep, definition: SagaDefinition) -> list[SagaStepResult]:
        logger.info("saga.waiting", step=step.name, seconds=step.duration_seconds)
        await self._sleep(step.duration_seconds)
        if step.description:
            return []
        return [SagaStepResult.ok(step.name, f"Waited {step.duration_seconds} seconds.")]

    async def _verify_running(self, step: SagaStep, definition: SagaDefinition) -> list[SagaStepResult]:
        try:
            observed = await self._registry.refresh_and_resolve_all(step.targets)
        except RuntimeUnavailable as exc:
            return [SagaStepResult.fail(step.name, f"Could not verify containers: {exc.message}")]

        results = []
        for name in step.targets:
            workload = observed[name]
            if workload is None or not workload.is_running:
                results.append(SagaStepResult.fail(step.name, f"{name} is not running.", name))

        if not results:
            return [SagaStepResult.ok(step.name, "All containers are running successfully.")]
        results.append(
            SagaStepResult.fail(
                step.name,
                f"Not all containers are running. {definition.name} may not have succeeded completely.",
            )
        )
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _observe(self, step: SagaStep) -> dict[str, Workload | None]:
        try:
            return await self._registry.refresh_and_resolve_all(step.targets)
        except RuntimeUnavailable as exc:
            raise SagaAborted(
                f"Could not list containers: {exc.message}",
                step=step.name,
                cause=exc,
            ) from exc

    @staticmethod
    def _failure(step: SagaStep, message: str, workload: str | None = None) -> SagaStepResult:
        if step.on_error is ErrorPolicy.ABORT:
            raise SagaAborted(message, step=step.name).with_context(workload=workload)
        return SagaStepResult.fail(step.name, message, workload)


__all__ = ["SagaReport", "SagaRunner", "SagaStatus"]
