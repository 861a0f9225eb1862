"""dockhand.core -- domain types, errors, logging and settings.

Architecture::

    models.py      Workload, Actor, Operation, RetryPolicy, grants
    errors.py      DockhandError hierarchy
    logging.py     structlog configuration (configure_logging, get_logger)
    settings.py    DockhandSettings (pydantic-settings)
"""

from dockhand.core.errors import (
    AuthorizationDenied,
    ConfigError,
    ConvergenceTimeout,
    DockhandError,
    ErrorCategory,
    InvalidRequest,
    RuntimeUnavailable,
    SagaAborted,
    TargetNotFound,
)
from dockhand.core.models import (
    Actor,
    ExecResult,
    GrantClass,
    GrantScope,
    Operation,
    RetryPolicy,
    Workload,
    WorkloadState,
)

__all__ = [
    "Actor",
    "AuthorizationDenied",
    "ConfigError",
    "ConvergenceTimeout",
    "DockhandError",
    "ErrorCategory",
    "ExecResult",
    "GrantClass",
    "GrantScope",
    "InvalidRequest",
    "Operation",
    "RetryPolicy",
    "RuntimeUnavailable",
    "SagaAborted",
    "TargetNotFound",
    "Workload",
    "WorkloadState",
]
