"""Tests for dockhand.core.errors module."""

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


class TestCategories:
    def test_subclass_categories(self):
        assert AuthorizationDenied("x").category is ErrorCategory.AUTH
        assert TargetNotFound("x").category is ErrorCategory.NOT_FOUND
        assert RuntimeUnavailable("x").category is ErrorCategory.RUNTIME
        assert ConvergenceTimeout("x").category is ErrorCategory.CONVERGENCE
        assert SagaAborted("x").category is ErrorCategory.ORCHESTRATION
        assert InvalidRequest("x").category is ErrorCategory.VALIDATION
        assert ConfigError("x").category is ErrorCategory.CONFIG

    def test_base_error_is_internal(self):
        assert DockhandError("x").category is ErrorCategory.INTERNAL

    def test_category_override(self):
        error = DockhandError("x", category=ErrorCategory.RUNTIME)
        assert error.category is ErrorCategory.RUNTIME


class TestRetryable:
    def test_runtime_errors_are_retryable(self):
        assert RuntimeUnavailable("socket closed").retryable
        assert ConvergenceTimeout("still starting").retryable

    def test_authorization_and_lookup_are_not(self):
        assert not AuthorizationDenied("no").retryable
        assert not TargetNotFound("gone").retryable

    def test_retryable_override(self):
        assert not RuntimeUnavailable("x", retryable=False).retryable


class TestContext:
    def test_with_context_is_fluent(self):
        error = TargetNotFound("Container 'web' doesn't exist!").with_context(target="web")
        assert isinstance(error, TargetNotFound)
        assert error.context == {"target": "web"}

    def test_saga_aborted_records_step(self):
        error = SagaAborted("db container not found.", step="StartPrimary")
        assert error.step == "StartPrimary"
        assert error.context["step"] == "StartPrimary"

    def test_cause_is_chained(self):
        cause = OSError("broken pipe")
        error = RuntimeUnavailable("list failed", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "broken pipe"

    def test_to_dict(self):
        d = InvalidRequest("CLI command is required for exec operation").to_dict()
        assert d == {
            "error_type": "InvalidRequest",
            "message": "CLI command is required for exec operation",
            "category": "VALIDATION",
            "retryable": False,
        }

