"""
dockhand — permission-gated lifecycle control for containers.

Actors ask to start, stop, restart or exec into named containers; dockhand
checks a layered permission matrix, issues the runtime call, and confirms
the result by polling the runtime's reported state.  A remediation workflow
restarts a primary container and its dependents in order.

Example::

    from dockhand import Actor, Orchestrator

    orchestrator = Orchestrator.from_settings()
    outcome = await orchestrator.run_operation(Actor.of("1001"), "restart", "web")
    print(outcome.message)
"""

from dockhand.core.models import Actor, Operation, RetryPolicy, Workload, WorkloadState
from dockhand.service import OperationOutcome, Orchestrator, OutcomeStatus

__version__ = "0.1.0"

__all__ = [
    "Actor",
    "Operation",
    "OperationOutcome",
    "Orchestrator",
    "OutcomeStatus",
    "RetryPolicy",
    "Workload",
    "WorkloadState",
    "__version__",
]
