"""In-memory runtime for unit tests.

``StubWorkloadRuntime`` keeps workloads in a dict and applies lifecycle
commands either immediately or after a configurable number of listings,
which is how asynchronous convergence is simulated without real containers.

    .. code-block:: text

        StubWorkloadRuntime behavior:

        start(id) / stop(id) / restart(id)
          ├── settle_after=0  → state changes immediately
          └── settle_after=N  → state changes on the N-th list_workloads()

        Inject failures:
          runtime.fail_list = True        → list_workloads() raises
          runtime.fail_commands = {"id"}  → start/stop/restart(id) raise
          runtime.stuck = {"id"}          → commands accepted, state never moves
          runtime.fail_exec = True        → exec_in_workload() raises

        Track usage:
          runtime.calls       → [("start", id), ("stop", id), ...]
          runtime.list_count  → number of list_workloads() calls

Example:
    >>> runtime = StubWorkloadRuntime()
    >>> web = runtime.add("web", running=True)
    >>> await runtime.stop(web)
    >>> runtime.calls
    [('stop', 'web000000000')]
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dockhand.core.errors import RuntimeUnavailable, TargetNotFound
from dockhand.core.models import ExecResult, Workload, WorkloadState
from dockhand.runtime._base import BaseWorkloadRuntime


@dataclass
class _StubWorkload:
    id: str
    names: tuple[str, ...]
    state: WorkloadState
    image: str = "stub:latest"
    pending: WorkloadState | None = None
    pending_lists: int = 0

    def snapshot(self) -> Workload:
        status = "Up" if self.state is WorkloadState.RUNNING else "Exited (0)"
        return Workload(
            id=self.id,
            names=self.names,
            state=self.state,
            status=status,
            image=self.image,
        )


@dataclass
class StubWorkloadRuntime(BaseWorkloadRuntime):
    """In-memory runtime adapter with failure injection and a call log."""

    settle_after: int = 0
    workloads: dict[str, _StubWorkload] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    list_count: int = 0

    fail_list: bool = False
    fail_exec: bool = False
    fail_commands: set[str] = field(default_factory=set)
    stuck: set[str] = field(default_factory=set)
    exec_results: dict[str, ExecResult] = field(default_factory=dict)

    @property
    def runtime_name(self) -> str:
        return "stub"

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def add(
        self,
        name: str,
        *,
        running: bool = True,
        state: WorkloadState | None = None,
        workload_id: str | None = None,
        image: str = "stub:latest",
    ) -> str:
        """Register a workload and return its id."""
        wid = workload_id or (name.replace("-", "") + "0" * 12)[:12]
        if state is None:
            state = WorkloadState.RUNNING if running else WorkloadState.EXITED
        self.workloads[wid] = _StubWorkload(
            id=wid,
            names=(f"/{name}",),
            state=state,
            image=image,
        )
        return wid

    def remove(self, workload_id: str) -> None:
        self.workloads.pop(workload_id, None)

    def state_of(self, workload_id: str) -> WorkloadState:
        return self.workloads[workload_id].state

    def commands(self, action: str | None = None) -> list[tuple[str, str]]:
        """Mutating calls only (no exec), optionally filtered by action."""
        mutating = [c for c in self.calls if c[0] in ("start", "stop", "restart")]
        if action is None:
            return mutating
        return [c for c in mutating if c[0] == action]

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _do_list(self, include_stopped: bool) -> list[Workload]:
        if self.fail_list:
            raise RuntimeUnavailable("Stub: list failure injected")
        self.list_count += 1
        for item in self.workloads.values():
            if item.pending is None:
                continue
            item.pending_lists -= 1
            if item.pending_lists <= 0:
                item.state = item.pending
                item.pending = None
        items = [w.snapshot() for w in self.workloads.values()]
        if not include_stopped:
            items = [w for w in items if w.is_running]
        return items

    async def _do_start(self, workload_id: str) -> None:
        self._transition("start", workload_id, WorkloadState.RUNNING)

    async def _do_stop(self, workload_id: str) -> None:
        self._transition("stop", workload_id, WorkloadState.EXITED)

    async def _do_restart(self, workload_id: str) -> None:
        self._transition("restart", workload_id, WorkloadState.RUNNING)

    async def _do_exec(self, workload_id: str, argv: list[str]) -> ExecResult:
        self.calls.append(("exec", workload_id))
        if self.fail_exec:
            raise RuntimeUnavailable("Stub: exec failure injected")
        self._require(workload_id)
        if workload_id in self.exec_results:
            return self.exec_results[workload_id]
        return ExecResult(stdout=argv[-1] + "\n", exit_code=0)

    async def _do_ping(self) -> str:
        if self.fail_list:
            raise RuntimeUnavailable("Stub: runtime unreachable")
        return "0.0.0-stub"

    def _require(self, workload_id: str) -> _StubWorkload:
        item = self.workloads.get(workload_id)
        if item is None:
            raise TargetNotFound(f"Container '{workload_id}' not found")
        return item

    def _transition(self, action: str, workload_id: str, target: WorkloadState) -> None:
        self.calls.append((action, workload_id))
        if workload_id in self.fail_commands:
            raise RuntimeUnavailable(f"Stub: {action} failure injected")
        item = self._require(workload_id)
        if workload_id in self.stuck:
            return
        if self.settle_after <= 0:
            item.state = target
            item.pending = None
        else:
            item.pending = target
            item.pending_lists = self.settle_after


__all__ = ["StubWorkloadRuntime"]
