"""Execution layer: registry snapshot, per-workload locks, executor, poller.

Architecture::

    registry.py   RegistrySnapshot   cached workload listing (lock-guarded)
    locks.py      WorkloadLocks      one in-flight command per workload
    executor.py   LifecycleExecutor  single start/stop/restart/exec call
    poller.py     ConvergencePoller  attempt-counted state confirmation
"""

from dockhand.execution.executor import CommandResult, LifecycleExecutor
from dockhand.execution.locks import WorkloadLocks
from dockhand.execution.poller import (
    ConvergencePoller,
    ConvergenceResult,
    GroupConvergence,
    target_predicate,
)
from dockhand.execution.registry import RegistrySnapshot

__all__ = [
    "CommandResult",
    "ConvergencePoller",
    "ConvergenceResult",
    "GroupConvergence",
    "LifecycleExecutor",
    "RegistrySnapshot",
    "WorkloadLocks",
    "target_predicate",
]
