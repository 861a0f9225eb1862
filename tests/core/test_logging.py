"""Tests for dockhand.core.logging."""

import pytest
import structlog

from dockhand.core.logging import LogContext, _add_service_metadata, _ecs_field_names


class TestProcessors:
    def test_service_name_added(self):
        event = _add_service_metadata(None, "info", {"event": "x"})
        assert event["service.name"] == "dockhand"

    def test_ecs_field_names(self):
        event = _ecs_field_names(None, "info", {"timestamp": "t", "level": "info", "event": "x"})
        assert event == {"@timestamp": "t", "log.level": "info", "event": "x"}


class TestLogContext:
    @pytest.mark.asyncio
    async def test_fields_bound_only_inside_block(self):
        structlog.contextvars.clear_contextvars()
        async with LogContext(actor="u1", target="web"):
            assert structlog.contextvars.get_contextvars() == {"actor": "u1", "target": "web"}
        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_outer_fields_survive_inner_block(self):
        structlog.contextvars.clear_contextvars()
        async with LogContext(actor="u1"):
            async with LogContext(saga="db-fix"):
                assert structlog.contextvars.get_contextvars()["saga"] == "db-fix"
            assert structlog.contextvars.get_contextvars() == {"actor": "u1"}
