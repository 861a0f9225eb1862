"""Saga step result — one line of a remediation transcript.

Every saga step appends one or more ``SagaStepResult`` entries to the
report.  Entries are frozen: once appended they never change, so the
transcript a caller reads is exactly what happened in order.

    ::

        SagaStepResult
          ├── .ok(step, message, workload)     → succeeded=True
          ├── .fail(step, message, workload)   → succeeded=False
          └── .to_dict()                       → serialization for JSON output

Example::

    SagaStepResult.ok("StopAll", "Stopped db.", workload="db")
    SagaStepResult.fail("ConfirmPrimary", "Failed to start db.")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SagaStepResult:
    """Outcome line produced by a saga step."""

    step: str
    succeeded: bool
    message: str
    workload: str | None = None

    @classmethod
    def ok(cls, step: str, message: str, workload: str | None = None) -> SagaStepResult:
        return cls(step=step, succeeded=True, message=message, workload=workload)

    @classmethod
    def fail(cls, step: str, message: str, workload: str | None = None) -> SagaStepResult:
        return cls(step=step, succeeded=False, message=message, workload=workload)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "step": self.step,
            "succeeded": self.succeeded,
            "message": self.message,
        }
        if self.workload is not None:
            result["workload"] = self.workload
        return result

    def __repr__(self) -> str:
        status = "OK" if self.succeeded else "FAIL"
        return f"SagaStepResult({self.step}, {status}, {self.message!r})"


__all__ = ["SagaStepResult"]
