"""Runtime adapters: the container runtime as seen by dockhand.

Architecture:

    .. code-block:: text

        dockhand.runtime
        ├── _types.py   ← WorkloadRuntime protocol
        ├── _base.py    ← BaseWorkloadRuntime (logging + error wrapping)
        ├── docker.py   ← DockerCliRuntime (docker CLI via asyncio subprocess)
        └── stub.py     ← StubWorkloadRuntime (in-memory, for tests)
"""

from dockhand.runtime._base import BaseWorkloadRuntime
from dockhand.runtime._types import WorkloadRuntime
from dockhand.runtime.docker import DockerCliRuntime
from dockhand.runtime.stub import StubWorkloadRuntime

__all__ = [
    "BaseWorkloadRuntime",
    "DockerCliRuntime",
    "StubWorkloadRuntime",
    "WorkloadRuntime",
]
