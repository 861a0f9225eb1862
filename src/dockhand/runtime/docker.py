"""Docker runtime adapter driven through the ``docker`` CLI.

Runs every call as an ``asyncio`` subprocess so polling and exec sessions
never block the event loop.  No docker SDK dependency: any engine exposing
a ``docker``-compatible CLI (Docker Desktop, Podman, Colima) works.

Key Concepts:
    DockerCliRuntime: ``list_workloads`` parses ``docker ps -a --format
        '{{json .}}'``; ``start``/``stop``/``restart`` map 1:1 to the CLI;
        ``exec_in_workload`` captures stdout and stderr separately.
    Error mapping: a missing binary, a timeout or a daemon error raise
        ``RuntimeUnavailable``; "No such container" raises ``TargetNotFound``.

Tags:
    docker, runtime, subprocess, asyncio, dockhand
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass

from dockhand.core.errors import RuntimeUnavailable, TargetNotFound
from dockhand.core.logging import get_logger
from dockhand.core.models import ExecResult, Workload, WorkloadState
from dockhand.runtime._base import BaseWorkloadRuntime

logger = get_logger(__name__)

_NOT_FOUND_MARKERS = ("No such container", "no such container")
_DAEMON_ERROR_MARKERS = ("Error response from daemon", "Cannot connect to the Docker daemon")


@dataclass(frozen=True)
class _CliResult:
    returncode: int
    stdout: str
    stderr: str


class DockerCliRuntime(BaseWorkloadRuntime):
    """Container runtime backed by the ``docker`` command-line client.

    Parameters
    ----------
    docker_cmd
        Executable name or path (``docker``, ``podman``).
    timeout
        Seconds allowed for each CLI invocation.

    Example::

        runtime = DockerCliRuntime()
        workloads = await runtime.list_workloads()
        await runtime.stop(workloads[0].id)
    """

    def __init__(self, docker_cmd: str = "docker", timeout: int = 60) -> None:
        self._docker_cmd = docker_cmd
        self._timeout = timeout

    @property
    def runtime_name(self) -> str:
        return "docker"

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _do_list(self, include_stopped: bool) -> list[Workload]:
        args = ["ps", "--no-trunc", "--format", "{{json .}}"]
        if include_stopped:
            args.insert(1, "--all")
        result = await self._run_docker(args)
        workloads = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            try:
                workloads.append(parse_ps_row(json.loads(line)))
            except (json.JSONDecodeError, KeyError) as exc:
                logger.warning("docker.ps_row_skipped", line=line, error=str(exc))
        return workloads

    async def _do_start(self, workload_id: str) -> None:
        await self._run_docker(["start", workload_id], workload_id=workload_id)

    async def _do_stop(self, workload_id: str) -> None:
        await self._run_docker(["stop", workload_id], workload_id=workload_id)

    async def _do_restart(self, workload_id: str) -> None:
        await self._run_docker(["restart", workload_id], workload_id=workload_id)

    async def _do_exec(self, workload_id: str, argv: list[str]) -> ExecResult:
        result = await self._run_docker(
            ["exec", workload_id, *argv],
            workload_id=workload_id,
            check=False,
        )
        # A non-zero exit from the command itself is a valid result; only
        # daemon-side failures mean the exec session never ran.
        if result.returncode != 0:
            self._raise_for_daemon_error(result, ["exec", workload_id], workload_id)
        return ExecResult(stdout=result.stdout, stderr=result.stderr, exit_code=result.returncode)

    async def _do_ping(self) -> str:
        result = await self._run_docker(["version", "--format", "{{.Server.Version}}"])
        return result.stdout.strip()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _run_docker(
        self,
        args: list[str],
        *,
        workload_id: str | None = None,
        check: bool = True,
    ) -> _CliResult:
        """Run a docker CLI command."""
        cmd = [self._docker_cmd, *args]
        logger.debug("docker.exec", cmd=" ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise RuntimeUnavailable(
                f"Docker CLI '{self._docker_cmd}' not found on PATH",
                cause=exc,
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise RuntimeUnavailable(
                f"Docker command timed out after {self._timeout}s: {' '.join(args)}",
                cause=exc,
            ) from exc

        result = _CliResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        if check and result.returncode != 0:
            self._raise_for_daemon_error(result, args, workload_id)
            raise RuntimeUnavailable(
                f"Docker command failed (exit {result.returncode}): "
                f"{' '.join(args)}\n{result.stderr.strip()}"
            )
        return result

    @staticmethod
    def _raise_for_daemon_error(result: _CliResult, args: list[str], workload_id: str | None) -> None:
        stderr = result.stderr.strip()
        if any(marker in stderr for marker in _NOT_FOUND_MARKERS):
            raise TargetNotFound(
                f"Container '{workload_id}' not found"
            ).with_context(workload_id=workload_id, stderr=stderr)
        if any(marker in stderr for marker in _DAEMON_ERROR_MARKERS):
            raise RuntimeUnavailable(
                f"Docker command failed (exit {result.returncode}): {' '.join(args)}\n{stderr}"
            ).with_context(workload_id=workload_id)


def parse_ps_row(row: dict) -> Workload:
    """Build a ``Workload`` from one ``docker ps --format '{{json .}}'`` row."""
    names = tuple(n.strip() for n in row.get("Names", "").split(",") if n.strip())
    return Workload(
        id=row["ID"],
        names=names,
        state=WorkloadState.parse(row.get("State", "")),
        status=row.get("Status", ""),
        image=row.get("Image", ""),
    )


__all__ = ["DockerCliRuntime", "parse_ps_row"]
