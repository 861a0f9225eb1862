"""Multi-step remediation workflows."""

from dockhand.orchestration.remediation import build_remediation_saga
from dockhand.orchestration.saga import SagaReport, SagaRunner, SagaStatus
from dockhand.orchestration.step_result import SagaStepResult
from dockhand.orchestration.steps import ErrorPolicy, SagaDefinition, SagaStep, StepAction

__all__ = [
    "ErrorPolicy",
    "SagaDefinition",
    "SagaReport",
    "SagaRunner",
    "SagaStatus",
    "SagaStep",
    "SagaStepResult",
    "StepAction",
    "build_remediation_saga",
]
