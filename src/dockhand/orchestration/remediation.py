"""The remediation ("fix") saga: restart a primary and its dependents in order.

Dependents connect to the primary at boot, so the whole group is stopped,
the primary is brought up and given time to initialize, and only then are
the dependents started.

Example::

    definition = build_remediation_saga(settings.remediation)
    report = await runner.run(definition)
"""

from __future__ import annotations

from dockhand.core.settings import RemediationSettings
from dockhand.orchestration.steps import ErrorPolicy, SagaDefinition, SagaStep


def build_remediation_saga(settings: RemediationSettings) -> SagaDefinition:
    """Describe the remediation workflow for the configured group."""
    primary = settings.primary
    group = settings.group

    steps = [
        SagaStep.stop_all("StopAll", group, description="Stopping containers..."),
        SagaStep.await_stopped("ConfirmStopped", group),
        SagaStep.start(
            "StartPrimary",
            [primary],
            on_error=ErrorPolicy.ABORT,
            description=f"Starting {primary}...",
        ),
        SagaStep.await_running("ConfirmPrimary", [primary], on_error=ErrorPolicy.ABORT),
        SagaStep.wait(
            "WarmupDelay",
            settings.warmup_seconds,
            description=f"Waiting for {primary} to initialize...",
        ),
    ]
    if settings.dependents:
        steps.append(
            SagaStep.start(
                "StartDependents",
                settings.dependents,
                description="Starting remaining containers...",
            )
        )
    if settings.settle_seconds > 0:
        steps.append(
            SagaStep.wait(
                "SettleDelay",
                settings.settle_seconds,
                description="Waiting for containers to settle...",
            )
        )
    steps.append(SagaStep.verify_running("FinalVerify", group))

    return SagaDefinition(name=settings.name, primary=primary, steps=tuple(steps))


__all__ = ["build_remediation_saga"]
