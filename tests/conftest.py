"""
Shared pytest fixtures for dockhand tests.

This module provides:
- An in-memory runtime (``StubWorkloadRuntime``) with failure injection
- A recording ``sleep`` fake so retry budgets are asserted without waiting
- Pre-wired registry / executor / poller / orchestrator instances
- Permission stores (memory and JSON on a temp path)

Usage:
    @pytest.mark.asyncio
    async def test_something(runtime, orchestrator):
        web = runtime.add("web", running=False)
        outcome = await orchestrator.run_operation(admin, "start", "web")
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from dockhand.core.models import Actor, RetryPolicy
from dockhand.core.settings import DockhandSettings, RemediationSettings, clear_settings_cache
from dockhand.execution.executor import LifecycleExecutor
from dockhand.execution.locks import WorkloadLocks
from dockhand.execution.poller import ConvergencePoller
from dockhand.execution.registry import RegistrySnapshot
from dockhand.orchestration.saga import SagaRunner
from dockhand.permissions.matrix import PermissionMatrix
from dockhand.permissions.store import JsonPermissionStore, MemoryPermissionStore
from dockhand.runtime.stub import StubWorkloadRuntime
from dockhand.service import Orchestrator


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Sleep fake
# =============================================================================


class RecordingSleep:
    """Stands in for ``asyncio.sleep``: records every delay, yields once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)

    @property
    def count(self) -> int:
        return len(self.delays)

    @property
    def total(self) -> float:
        return sum(self.delays)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep DOCKHAND_* variables and a stray .env out of every test."""
    for key in list(os.environ):
        if key.startswith("DOCKHAND_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Building blocks
# =============================================================================


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, interval_seconds=5)


@pytest.fixture
def runtime() -> StubWorkloadRuntime:
    return StubWorkloadRuntime()


@pytest.fixture
def registry(runtime: StubWorkloadRuntime) -> RegistrySnapshot:
    return RegistrySnapshot(runtime)


@pytest.fixture
def executor(runtime: StubWorkloadRuntime, registry: RegistrySnapshot) -> LifecycleExecutor:
    return LifecycleExecutor(runtime, registry)


@pytest.fixture
def poller(registry: RegistrySnapshot, sleep: RecordingSleep) -> ConvergencePoller:
    return ConvergencePoller(registry, sleep=sleep)


@pytest.fixture
def locks() -> WorkloadLocks:
    return WorkloadLocks()


@pytest.fixture
def saga_runner(
    registry: RegistrySnapshot,
    executor: LifecycleExecutor,
    poller: ConvergencePoller,
    locks: WorkloadLocks,
    policy: RetryPolicy,
    sleep: RecordingSleep,
) -> SagaRunner:
    return SagaRunner(registry, executor, poller, locks, policy, sleep=sleep)


# =============================================================================
# Permissions
# =============================================================================


@pytest.fixture
def admin() -> Actor:
    return Actor.of("admin-1")


@pytest.fixture
def matrix() -> PermissionMatrix:
    return PermissionMatrix(
        admin_ids=["admin-1"],
        user_start_grants={"u1": ["web"]},
        user_stop_grants={"u2": ["web"]},
        role_stop_grants={"ops": ["db", "cache", "api"]},
    )


@pytest.fixture
def store(matrix: PermissionMatrix) -> MemoryPermissionStore:
    return MemoryPermissionStore(matrix)


@pytest.fixture
def json_store(tmp_path: Path) -> JsonPermissionStore:
    return JsonPermissionStore(tmp_path / "settings" / "permissions.json")


# =============================================================================
# Orchestrator
# =============================================================================


@pytest.fixture
def settings() -> DockhandSettings:
    return DockhandSettings(
        retries=3,
        time_before_retry=5,
        remediation=RemediationSettings(
            name="db-fix",
            primary="db",
            dependents=["cache", "api"],
            warmup_seconds=10,
            settle_seconds=0,
        ),
    )


@pytest.fixture
def orchestrator(
    runtime: StubWorkloadRuntime,
    store: MemoryPermissionStore,
    settings: DockhandSettings,
    sleep: RecordingSleep,
) -> Orchestrator:
    return Orchestrator(runtime, store, settings, sleep=sleep)
