"""
Domain types shared by every dockhand layer.

Workloads are what the container runtime reports; actors, operations and
retry policies are what callers bring with each request.  All types here are
plain, immutable dataclasses so they can be cached in the registry snapshot
and handed across tasks without copying.

Architecture:
    ::

        Workload ──────── id, names, state, status, image
          └── display_name   first name, leading "/" stripped

        Actor ─────────── id, role_ids            (per request)
        Operation ─────── start | stop | restart | exec | remediate
        GrantClass ────── start | stop            (stop covers restart/exec)
        GrantScope ────── user | role
        RetryPolicy ───── max_attempts × interval_seconds

Tags:
    dockhand, models, workload, actor, operation, retry-policy

Doc-Types:
    api-reference
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class WorkloadState(str, Enum):
    """Lifecycle states reported by the container runtime."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    EXITED = "exited"
    DEAD = "dead"

    @classmethod
    def parse(cls, value: str) -> WorkloadState:
        """Parse a runtime state string, case-insensitively.

        Unknown values map to ``DEAD`` so that they never count as running.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.DEAD


class Operation(str, Enum):
    """Operations a caller may request."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"
    EXEC = "exec"
    REMEDIATE = "remediate"

    @property
    def grant_class(self) -> GrantClass:
        """Grant class checked for this operation.

        Only ``start`` uses start grants; everything that can take a workload
        down (stop, restart, exec and the remediation workflow) uses stop grants.
        """
        if self is Operation.START:
            return GrantClass.START
        return GrantClass.STOP

    @property
    def converges(self) -> bool:
        """True for operations confirmed by the convergence poller."""
        return self in (Operation.START, Operation.STOP, Operation.RESTART)

    @property
    def past_tense(self) -> str:
        return {
            Operation.START: "started",
            Operation.STOP: "stopped",
            Operation.RESTART: "restarted",
            Operation.EXEC: "executed",
            Operation.REMEDIATE: "remediated",
        }[self]


class GrantClass(str, Enum):
    """Permission class of a grant."""

    START = "start"
    STOP = "stop"


class GrantScope(str, Enum):
    """Whether a grant subject is a user or a role."""

    USER = "user"
    ROLE = "role"


@dataclass(frozen=True)
class Workload:
    """One runtime-managed container as seen in the last registry refresh."""

    id: str
    names: tuple[str, ...]
    state: WorkloadState
    status: str = ""
    image: str = ""

    @property
    def display_name(self) -> str:
        """First name with its leading separator stripped."""
        if not self.names:
            return self.short_id
        return _strip_separator(self.names[0])

    @property
    def display_names(self) -> tuple[str, ...]:
        return tuple(_strip_separator(n) for n in self.names)

    @property
    def short_id(self) -> str:
        return self.id[:12]

    @property
    def is_running(self) -> bool:
        return self.state is WorkloadState.RUNNING

    def matches(self, name: str) -> bool:
        """True if any display name equals ``name`` exactly."""
        return name in self.display_names

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.short_id,
            "name": self.display_name,
            "state": self.state.value,
            "status": self.status,
            "image": self.image,
        }


def _strip_separator(name: str) -> str:
    return name[1:] if name.startswith("/") else name


@dataclass(frozen=True)
class Actor:
    """The requesting identity: a user id plus the roles it holds right now."""

    id: str
    role_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, actor_id: str, roles: list[str] | tuple[str, ...] | None = None) -> Actor:
        return cls(id=actor_id, role_ids=frozenset(roles or ()))


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt-counted wait budget shared by the poller and the saga.

    The worst-case wait is ``max_attempts × interval_seconds``; there is no
    wall-clock deadline.
    """

    max_attempts: int = 12
    interval_seconds: int = 5

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0, got {self.interval_seconds}")

    @property
    def budget_seconds(self) -> int:
        return self.max_attempts * self.interval_seconds


@dataclass(frozen=True)
class ExecResult:
    """Captured output of one command run inside a workload."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None

    def render(self) -> str:
        """Combine both streams; stderr gets its own labelled section."""
        if self.stderr:
            return f"STDOUT:\n{self.stdout}\nSTDERR:\n{self.stderr}"
        return self.stdout


__all__ = [
    "Actor",
    "ExecResult",
    "GrantClass",
    "GrantScope",
    "Operation",
    "RetryPolicy",
    "Workload",
    "WorkloadState",
]
