"""Tests for the attempt-counted convergence poller."""

import pytest

from dockhand.core.models import Operation, RetryPolicy
from dockhand.execution.poller import target_predicate


async def _stop_now(runtime, registry, workload_id):
    await runtime.stop(workload_id)
    runtime.calls.clear()


class TestTargetPredicate:
    def test_exec_has_no_target(self):
        with pytest.raises(ValueError):
            target_predicate(Operation.EXEC)


class TestAwaitState:
    @pytest.mark.asyncio
    async def test_sleeps_before_first_check(self, runtime, registry, poller, policy, sleep):
        web = runtime.add("web", running=True)
        result = await poller.await_state(web, Operation.START, policy)
        assert result.reached
        assert result.attempts == 1
        assert sleep.delays == [5]
        assert runtime.list_count == 1

    @pytest.mark.asyncio
    async def test_converges_after_a_few_attempts(self, runtime, registry, poller, policy, sleep):
        runtime.settle_after = 2
        web = runtime.add("web", running=False)
        await runtime.start(web)
        result = await poller.await_state(web, Operation.START, policy)
        assert result.reached
        assert result.attempts == 2
        assert sleep.count == 2
        assert result.workload.is_running

    @pytest.mark.asyncio
    async def test_budget_is_n_sleeps_plus_one_extra_check(self, runtime, registry, poller, policy, sleep):
        web = runtime.add("web", running=False)
        result = await poller.await_state(web, Operation.START, policy)
        assert not result.reached
        assert result.attempts == policy.max_attempts + 1
        assert sleep.count == policy.max_attempts
        assert runtime.list_count == policy.max_attempts + 1
        assert result.workload is not None

    @pytest.mark.asyncio
    async def test_last_chance_check_catches_final_transition(self, runtime, registry, poller, policy, sleep):
        runtime.settle_after = policy.max_attempts + 1
        web = runtime.add("web", running=False)
        await runtime.start(web)
        result = await poller.await_state(web, Operation.START, policy)
        assert result.reached
        assert result.attempts == policy.max_attempts + 1
        assert sleep.count == policy.max_attempts

    @pytest.mark.asyncio
    async def test_stop_target_is_anything_but_running(self, runtime, registry, poller, policy):
        web = runtime.add("web", running=True)
        await _stop_now(runtime, registry, web)
        result = await poller.await_state(web, Operation.STOP, policy)
        assert result.reached
        assert not result.workload.is_running

    @pytest.mark.asyncio
    async def test_vanished_workload_keeps_polling(self, runtime, registry, poller, policy, sleep):
        web = runtime.add("web", running=False)
        runtime.remove(web)
        result = await poller.await_state(web, Operation.START, policy)
        assert not result.reached
        assert result.workload is None
        assert sleep.count == policy.max_attempts

    @pytest.mark.asyncio
    async def test_refresh_failures_count_as_attempts(self, runtime, registry, poller, sleep):
        web = runtime.add("web", running=True)
        runtime.fail_list = True
        result = await poller.await_state(web, Operation.START, RetryPolicy(max_attempts=2, interval_seconds=1))
        assert not result.reached
        assert sleep.delays == [1, 1]

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self, runtime, registry, poller, sleep):
        web = runtime.add("web", running=False)
        result = await poller.await_state(web, Operation.RESTART, RetryPolicy(max_attempts=1, interval_seconds=0))
        assert not result.reached
        assert result.attempts == 2
        assert sleep.delays == [0]


class TestAwaitGroup:
    @pytest.mark.asyncio
    async def test_all_running(self, runtime, poller, policy):
        runtime.add("db")
        runtime.add("cache")
        result = await poller.await_group(["db", "cache"], running=True, policy=policy)
        assert result.reached
        assert result.pending == ()
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_pending_members_reported(self, runtime, poller, policy, sleep):
        runtime.add("db")
        runtime.add("cache", running=False)
        result = await poller.await_group(["db", "cache"], running=True, policy=policy)
        assert not result.reached
        assert result.pending == ("cache",)
        assert sleep.count == policy.max_attempts

    @pytest.mark.asyncio
    async def test_missing_members_count_as_stopped(self, runtime, poller, policy):
        runtime.add("db", running=False)
        result = await poller.await_group(["db", "ghost"], running=False, policy=policy)
        assert result.reached

    @pytest.mark.asyncio
    async def test_missing_members_never_running(self, runtime, poller, policy):
        runtime.add("db")
        result = await poller.await_group(["db", "ghost"], running=True, policy=policy)
        assert result.pending == ("ghost",)

    @pytest.mark.asyncio
    async def test_refresh_failure_leaves_everyone_pending(self, runtime, poller, policy):
        runtime.add("db")
        runtime.fail_list = True
        result = await poller.await_group(["db"], running=True, policy=policy)
        assert not result.reached
        assert result.pending == ("db",)
