"""Unit tests for FastMCP middleware components."""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from think_mcp_server.config import MiddlewareConfig
from think_mcp_server.middleware import (
    ThinkLoggingMiddleware,
    ToolCallStats,
    ToolCallStatsMiddleware,
    build_middleware,
)


@pytest.fixture
def mock_context():
    """Create a mock tools/call middleware context."""
    context = MagicMock()
    context.method = "tools/call"
    context.type = "request"
    context.source = "client"
    context.message.name = "think"
    context.message.arguments = {"thought": "a private thought"}
    return context


@pytest.fixture
def mock_call_next():
    """Create a mock call_next function."""
    return AsyncMock(return_value="a private thought")


async def failing_call_next(context):
    raise ValueError("Test error")


class TestThinkLoggingMiddleware:
    """Test ThinkLoggingMiddleware."""

    def test_initialization(self):
        """Test middleware initialization."""
        middleware = ThinkLoggingMiddleware(include_payloads=True, max_payload_length=100)
        assert middleware.include_payloads is True
        assert middleware.max_payload_length == 100

    @pytest.mark.asyncio
    async def test_traffic_logged_at_debug_only(self, mock_context, mock_call_next):
        """Test that a healthy request logs nothing above debug."""
        middleware = ThinkLoggingMiddleware()

        with patch('think_mcp_server.middleware.logger') as mock_logger:
            result = await middleware.on_message(mock_context, mock_call_next)

        assert result == "a private thought"
        mock_call_next.assert_called_once_with(mock_context)
        assert mock_logger.debug.call_count == 2
        assert "tools/call" in mock_logger.debug.call_args_list[0][0][0]
        mock_logger.info.assert_not_called()
        mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_request_logging(self, mock_context):
        """Test that failures are logged as errors and re-raised."""
        middleware = ThinkLoggingMiddleware()

        with patch('think_mcp_server.middleware.logger') as mock_logger:
            with pytest.raises(ValueError):
                await middleware.on_message(mock_context, failing_call_next)

        mock_logger.error.assert_called_once()
        assert "ValueError: Test error" in mock_logger.error.call_args[0][0]

    @pytest.mark.asyncio
    async def test_arguments_not_logged_by_default(self, mock_context, mock_call_next):
        """Test that thoughts stay out of the server log unless asked for."""
        middleware = ThinkLoggingMiddleware()

        with patch('think_mcp_server.middleware.logger') as mock_logger:
            await middleware.on_call_tool(mock_context, mock_call_next)

        mock_logger.debug.assert_not_called()

    @pytest.mark.asyncio
    async def test_payload_logging(self, mock_context, mock_call_next):
        """Test argument and result logging when enabled, truncated."""
        middleware = ThinkLoggingMiddleware(include_payloads=True, max_payload_length=10)

        with patch('think_mcp_server.middleware.logger') as mock_logger:
            await middleware.on_call_tool(mock_context, mock_call_next)

        arguments_log, result_log = [c[0][0] for c in mock_logger.debug.call_args_list]
        expected = str({"thought": "a private thought"})[:10] + "..."
        assert arguments_log == f"Tool think arguments: {expected}"
        assert result_log == "Tool think result: a private ..."


class TestToolCallStats:
    """Test the per-tool counters."""

    def test_empty(self):
        assert ToolCallStats().as_dict() == {
            "calls": 0,
            "failures": {},
            "avg_ms": 0.0,
            "max_ms": 0.0,
        }

    def test_summary(self):
        stats = ToolCallStats(calls=3, failures={"ToolError": 1}, durations_ms=[100, 200, 150])

        summary = stats.as_dict()

        assert summary["avg_ms"] == 150
        assert summary["max_ms"] == 200
        summary["failures"]["ToolError"] = 99
        assert stats.failures["ToolError"] == 1


class TestToolCallStatsMiddleware:
    """Test ToolCallStatsMiddleware."""

    def test_initialization(self):
        middleware = ToolCallStatsMiddleware(slow_call_threshold_ms=1000)
        assert middleware.slow_threshold == 1000
        assert middleware.get_stats() == {}

    @pytest.mark.asyncio
    async def test_successful_call(self, mock_context, mock_call_next):
        middleware = ToolCallStatsMiddleware()

        result = await middleware.on_call_tool(mock_context, mock_call_next)

        assert result == "a private thought"
        stats = middleware.get_stats()["think"]
        assert stats["calls"] == 1
        assert stats["failures"] == {}
        assert stats["max_ms"] >= 0

    @pytest.mark.asyncio
    async def test_failures_counted_by_type(self, mock_context, mock_call_next):
        """Test failures are classified and still timed."""
        middleware = ToolCallStatsMiddleware()

        async def type_error_call_next(context):
            raise TypeError("Type error")

        with pytest.raises(ValueError):
            await middleware.on_call_tool(mock_context, failing_call_next)
        with pytest.raises(ValueError):
            await middleware.on_call_tool(mock_context, failing_call_next)
        with pytest.raises(TypeError):
            await middleware.on_call_tool(mock_context, type_error_call_next)
        await middleware.on_call_tool(mock_context, mock_call_next)

        stats = middleware.stats["think"]
        assert stats.calls == 4
        assert stats.failures == {"ValueError": 2, "TypeError": 1}
        assert len(stats.durations_ms) == 4

    @pytest.mark.asyncio
    async def test_keyed_by_tool_name(self, mock_context, mock_call_next):
        middleware = ToolCallStatsMiddleware()
        other_context = MagicMock()
        other_context.message.name = "unknown_tool"

        await middleware.on_call_tool(mock_context, mock_call_next)
        await middleware.on_call_tool(other_context, mock_call_next)

        assert set(middleware.get_stats()) == {"think", "unknown_tool"}

    @pytest.mark.asyncio
    async def test_slow_call_warning(self, mock_context):
        """Test slow call warning."""
        middleware = ToolCallStatsMiddleware(slow_call_threshold_ms=1)

        async def slow_call_next(context):
            await asyncio.sleep(0.005)
            return "done"

        with patch('think_mcp_server.middleware.logger') as mock_logger:
            await middleware.on_call_tool(mock_context, slow_call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow tool call: think" in mock_logger.warning.call_args[0][0]

    @pytest.mark.asyncio
    async def test_fast_call_is_quiet(self, mock_context, mock_call_next):
        middleware = ToolCallStatsMiddleware()

        with patch('think_mcp_server.middleware.logger') as mock_logger:
            await middleware.on_call_tool(mock_context, mock_call_next)

        assert mock_logger.method_calls == []


class TestBuildMiddleware:
    """Test middleware stack construction."""

    def test_stack_follows_config(self):
        config = MiddlewareConfig(
            include_payloads=True,
            max_payload_length=64,
            slow_call_threshold_ms=250,
        )

        logging_mw, stats_mw = build_middleware(config)

        assert isinstance(logging_mw, ThinkLoggingMiddleware)
        assert logging_mw.include_payloads is True
        assert logging_mw.max_payload_length == 64
        assert isinstance(stats_mw, ToolCallStatsMiddleware)
        assert stats_mw.slow_threshold == 250
