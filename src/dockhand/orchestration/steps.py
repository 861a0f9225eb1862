"""Saga step descriptors.

A saga is data: an ordered tuple of ``SagaStep`` values interpreted by one
driver loop (``SagaRunner``).  New remediation workflows are added by
describing steps, not by writing new control flow.

    ::

        SagaStep
          ├── .stop_all(name, targets)        STOP            issue stop to each
          ├── .await_stopped(name, targets)   AWAIT_STOPPED   poll until none running
          ├── .start(name, targets)           START           issue start to each
          ├── .await_running(name, targets)   AWAIT_RUNNING   poll until all running
          ├── .wait(name, seconds)            WAIT            fixed pause
          └── .verify_running(name, targets)  VERIFY_RUNNING  one refresh, report

        on_error=ErrorPolicy.ABORT ends the saga when the step fails hard;
        CONTINUE records the failure and moves on.

Tags:
    orchestration, saga, steps, dockhand
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StepAction(str, Enum):
    """What the driver does for a step."""

    STOP = "stop"
    AWAIT_STOPPED = "await_stopped"
    START = "start"
    AWAIT_RUNNING = "await_running"
    WAIT = "wait"
    VERIFY_RUNNING = "verify_running"


class ErrorPolicy(str, Enum):
    """What to do when a step fails."""

    ABORT = "abort"
    CONTINUE = "continue"


@dataclass(frozen=True)
class SagaStep:
    """A single step of a saga.  Use the factory methods."""

    name: str
    action: StepAction
    targets: tuple[str, ...] = ()
    duration_seconds: int = 0
    on_error: ErrorPolicy = ErrorPolicy.CONTINUE
    description: str | None = None

    @classmethod
    def stop_all(cls, name: str, targets: list[str] | tuple[str, ...], description: str | None = None) -> SagaStep:
        """Stop every target that is running; a failed stop never aborts."""
        return cls(name=name, action=StepAction.STOP, targets=tuple(targets), description=description)

    @classmethod
    def await_stopped(
        cls,
        name: str,
        targets: list[str] | tuple[str, ...],
        description: str | None = None,
    ) -> SagaStep:
        """Best-effort wait until no target is running."""
        return cls(
            name=name,
            action=StepAction.AWAIT_STOPPED,
            targets=tuple(targets),
            description=description,
        )

    @classmethod
    def start(
        cls,
        name: str,
        targets: list[str] | tuple[str, ...],
        on_error: ErrorPolicy = ErrorPolicy.CONTINUE,
        description: str | None = None,
    ) -> SagaStep:
        """Start each target in order.

        With ``ErrorPolicy.ABORT`` a target missing from the registry ends the
        saga.  A rejected start call is recorded only; the following
        ``await_running`` step decides.
        """
        return cls(
            name=name,
            action=StepAction.START,
            targets=tuple(targets),
            on_error=on_error,
            description=description,
        )

    @classmethod
    def await_running(
        cls,
        name: str,
        targets: list[str] | tuple[str, ...],
        on_error: ErrorPolicy = ErrorPolicy.ABORT,
        description: str | None = None,
    ) -> SagaStep:
        """Wait until every target is running, within the retry budget."""
        return cls(
            name=name,
            action=StepAction.AWAIT_RUNNING,
            targets=tuple(targets),
            on_error=on_error,
            description=description,
        )

    @classmethod
    def wait(cls, name: str, duration_seconds: int, description: str | None = None) -> SagaStep:
        """Fixed pause, independent of the retry policy."""
        return cls(
            name=name,
            action=StepAction.WAIT,
            duration_seconds=duration_seconds,
            description=description,
        )

    @classmethod
    def verify_running(
        cls,
        name: str,
        targets: list[str] | tuple[str, ...],
        description: str | None = None,
    ) -> SagaStep:
        """One refresh; success only if every target is running."""
        return cls(
            name=name,
            action=StepAction.VERIFY_RUNNING,
            targets=tuple(targets),
            description=description,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "action": self.action.value,
            "on_error": self.on_error.value,
        }
        if self.targets:
            result["targets"] = list(self.targets)
        if self.action is StepAction.WAIT:
            result["duration_seconds"] = self.duration_seconds
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class SagaDefinition:
    """A named, ordered list of steps plus the workload it is authorized on."""

    name: str
    primary: str
    steps: tuple[SagaStep, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        names = [step.name for step in self.steps]
        if len(set(names)) != len(names):
            raise ValueError(f"Saga '{self.name}' has duplicate step names: {names}")

    @property
    def members(self) -> tuple[str, ...]:
        """Every workload the saga touches, in first-mention order."""
        seen: dict[str, None] = {}
        for step in self.steps:
            for target in step.targets:
                seen.setdefault(target, None)
        return tuple(seen)

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "primary": self.primary,
            "steps": [step.to_dict() for step in self.steps],
        }


__all__ = ["ErrorPolicy", "SagaDefinition", "SagaStep", "StepAction"]
