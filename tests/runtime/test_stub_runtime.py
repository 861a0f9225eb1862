"""Tests for the in-memory runtime used across the suite."""

import pytest

from dockhand.core.errors import RuntimeUnavailable, TargetNotFound
from dockhand.core.models import WorkloadState
from dockhand.runtime import StubWorkloadRuntime, WorkloadRuntime


class TestRegistration:
    def test_satisfies_protocol(self, runtime):
        assert isinstance(runtime, WorkloadRuntime)

    def test_ids_derived_from_name(self, runtime):
        assert runtime.add("db") == "db0000000000"
        assert runtime.add("jellystat-db") == "jellystatdb0"

    @pytest.mark.asyncio
    async def test_listing(self, runtime):
        runtime.add("web", running=True)
        runtime.add("db", running=False)
        everything = await runtime.list_workloads()
        running = await runtime.list_workloads(include_stopped=False)
        assert sorted(w.display_name for w in everything) == ["db", "web"]
        assert [w.display_name for w in running] == ["web"]
        assert runtime.list_count == 2


class TestTransitions:
    @pytest.mark.asyncio
    async def test_immediate(self, runtime):
        web = runtime.add("web", running=False)
        await runtime.start(web)
        assert runtime.state_of(web) is WorkloadState.RUNNING

    @pytest.mark.asyncio
    async def test_settle_after_listings(self, runtime):
        runtime.settle_after = 2
        web = runtime.add("web", running=True)
        await runtime.stop(web)
        assert runtime.state_of(web) is WorkloadState.RUNNING
        await runtime.list_workloads()
        assert runtime.state_of(web) is WorkloadState.RUNNING
        await runtime.list_workloads()
        assert runtime.state_of(web) is WorkloadState.EXITED

    @pytest.mark.asyncio
    async def test_stuck_accepts_but_never_moves(self, runtime):
        web = runtime.add("web", running=False)
        runtime.stuck.add(web)
        await runtime.start(web)
        await runtime.list_workloads()
        assert runtime.state_of(web) is WorkloadState.EXITED
        assert runtime.commands("start") == [("start", web)]

    @pytest.mark.asyncio
    async def test_unknown_id(self, runtime):
        with pytest.raises(TargetNotFound):
            await runtime.restart("nope")


class TestFailureInjection:
    @pytest.mark.asyncio
    async def test_fail_list(self, runtime):
        runtime.fail_list = True
        with pytest.raises(RuntimeUnavailable):
            await runtime.list_workloads()
        with pytest.raises(RuntimeUnavailable):
            await runtime.ping()

    @pytest.mark.asyncio
    async def test_fail_commands_still_logged(self, runtime):
        web = runtime.add("web")
        runtime.fail_commands.add(web)
        with pytest.raises(RuntimeUnavailable, match="stop failure injected"):
            await runtime.stop(web)
        assert runtime.calls == [("stop", web)]

    @pytest.mark.asyncio
    async def test_exec_not_counted_as_command(self, runtime):
        web = runtime.add("web")
        result = await runtime.exec_in_workload(web, ["sh", "-c", "ls"])
        assert result.stdout == "ls\n"
        assert runtime.calls == [("exec", web)]
        assert runtime.commands() == []


class TestWrapping:
    @pytest.mark.asyncio
    async def test_unexpected_errors_become_runtime_unavailable(self):
        class Broken(StubWorkloadRuntime):
            async def _do_list(self, include_stopped):
                raise OSError("socket closed")

        with pytest.raises(RuntimeUnavailable, match="list failed on stub: socket closed") as info:
            await Broken().list_workloads()
        assert isinstance(info.value.cause, OSError)
