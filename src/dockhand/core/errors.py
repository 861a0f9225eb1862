"""
Structured error types for dockhand.

Every failure a caller can see maps to one subclass of ``DockhandError``.
Errors carry a category (for routing and rendering), a retryable flag and a
free-form context dict, and chain the underlying exception as ``cause``.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       DockhandError                          │
        │  (message, category, retryable, context, cause)              │
        ├──────────────────────────────────────────────────────────────┤
        │  AuthorizationDenied   AUTH           never retried          │
        │  TargetNotFound        NOT_FOUND      never retried          │
        │  RuntimeUnavailable    RUNTIME        retryable by callers   │
        │  ConvergenceTimeout    CONVERGENCE    best-effort, not fatal │
        │  SagaAborted           ORCHESTRATION  short-circuits a saga  │
        │  InvalidRequest        VALIDATION                            │
        │  ConfigError           CONFIG                                │
        └──────────────────────────────────────────────────────────────┘

    Nothing in dockhand retries a failed runtime call.  ``retryable`` only
    records whether a later, caller-initiated attempt could succeed.

Examples:
    >>> error = TargetNotFound("Container 'web' doesn't exist!")
    >>> error.category
    <ErrorCategory.NOT_FOUND: 'NOT_FOUND'>
    >>> error.with_context(target="web").context["target"]
    'web'

Tags:
    errors, exceptions, error-hierarchy, dockhand

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for outcome rendering and logging."""

    AUTH = "AUTH"
    NOT_FOUND = "NOT_FOUND"
    RUNTIME = "RUNTIME"
    CONVERGENCE = "CONVERGENCE"
    ORCHESTRATION = "ORCHESTRATION"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


class DockhandError(Exception):
    """
    Base exception for all dockhand errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers may
    override either per instance.

    Examples:
        >>> error = DockhandError("Something went wrong")
        >>> error.retryable
        False
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DockhandError:
        """
        Add context to this error (fluent API).

        Usage:
            raise TargetNotFound("missing").with_context(target="web")
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class AuthorizationDenied(DockhandError):
    """Actor holds no admin flag and no matching user or role grant."""

    default_category = ErrorCategory.AUTH


class TargetNotFound(DockhandError):
    """Workload name or id does not resolve in the current snapshot."""

    default_category = ErrorCategory.NOT_FOUND


class RuntimeUnavailable(DockhandError):
    """The container runtime call itself failed (socket, CLI, daemon error)."""

    default_category = ErrorCategory.RUNTIME
    default_retryable = True


class ConvergenceTimeout(DockhandError):
    """Expected state was not observed within the retry budget.

    Never raised: the orchestrator attaches it to an ``unconfirmed``
    outcome, with the attempt count in ``context``.
    """

    default_category = ErrorCategory.CONVERGENCE
    default_retryable = True


class SagaAborted(DockhandError):
    """A saga step failed hard and the remaining steps were skipped."""

    default_category = ErrorCategory.ORCHESTRATION

    def __init__(self, message: str, *, step: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.step = step
        if step is not None:
            self.context.setdefault("step", step)


class InvalidRequest(DockhandError):
    """Malformed request, e.g. ``exec`` without a command."""

    default_category = ErrorCategory.VALIDATION


class ConfigError(DockhandError):
    """Permission or settings data could not be parsed."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "DockhandError",
    "AuthorizationDenied",
    "TargetNotFound",
    "RuntimeUnavailable",
    "ConvergenceTimeout",
    "SagaAborted",
    "InvalidRequest",
    "ConfigError",
]
