"""Tests for RegistrySnapshot."""

import asyncio

import pytest

from dockhand.core.errors import RuntimeUnavailable, TargetNotFound


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_includes_stopped(self, runtime, registry):
        runtime.add("web", running=True)
        runtime.add("db", running=False)
        workloads = await registry.refresh()
        assert {w.display_name for w in workloads} == {"web", "db"}
        assert registry.count == 2
        assert registry.refreshed_at is not None

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_snapshot(self, runtime, registry):
        runtime.add("web")
        before = await registry.refresh()
        runtime.fail_list = True
        with pytest.raises(RuntimeUnavailable):
            await registry.refresh()
        assert registry.workloads is before
        assert runtime.list_count == 1

    @pytest.mark.asyncio
    async def test_snapshot_is_replaced_not_mutated(self, runtime, registry):
        runtime.add("web")
        first = await registry.refresh()
        runtime.add("db")
        second = await registry.refresh()
        assert len(first) == 1
        assert len(second) == 2


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolve_by_display_name(self, runtime, registry):
        web = runtime.add("web")
        await registry.refresh()
        assert registry.resolve("web").id == web
        assert registry.resolve("/web") is None
        assert registry.resolve("we") is None

    @pytest.mark.asyncio
    async def test_get_by_full_or_short_id(self, runtime, registry):
        wid = runtime.add("web", workload_id="abcdef0123456789abcdef")
        await registry.refresh()
        assert registry.get(wid).display_name == "web"
        assert registry.get("abcdef012345").display_name == "web"
        assert registry.get("nope") is None

    @pytest.mark.asyncio
    async def test_refresh_and_require(self, runtime, registry):
        runtime.add("web")
        assert (await registry.refresh_and_require("web")).display_name == "web"
        with pytest.raises(TargetNotFound, match="Container 'ghost' doesn't exist!"):
            await registry.refresh_and_require("ghost")
        assert runtime.list_count == 2

    def test_resolve_before_any_refresh(self, registry):
        assert registry.resolve("web") is None
        assert registry.count == 0

    @pytest.mark.asyncio
    async def test_refresh_and_resolve_all(self, runtime, registry):
        runtime.add("web")
        found = await registry.refresh_and_resolve_all(["web", "ghost"])
        assert found["web"].display_name == "web"
        assert found["ghost"] is None
        assert runtime.list_count == 1


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_refreshes_are_serialized(self, runtime, registry):
        runtime.add("web")
        results = await asyncio.gather(*(registry.refresh_and_resolve("web") for _ in range(5)))
        assert all(r is not None for r in results)
        assert runtime.list_count == 5
