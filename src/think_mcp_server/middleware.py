"""ABOUTME: FastMCP middleware for the think server.
ABOUTME: Debug-level traffic tracing and per-tool call statistics."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from fastmcp.server.middleware import Middleware, MiddlewareContext

from .config import MiddlewareConfig

logger = logging.getLogger(__name__)


class ThinkLoggingMiddleware(Middleware):
    """Trace MCP traffic at debug level.

    Only failures are logged above debug, so a healthy server stays quiet on
    stderr at the default level. Tool arguments and results carry the thoughts
    themselves and are logged only when ``include_payloads`` is set.
    """

    def __init__(self, include_payloads: bool = False, max_payload_length: int = 500):
        self.include_payloads = include_payloads
        self.max_payload_length = max_payload_length

    def _truncate(self, value: Any) -> str:
        text = str(value)
        if len(text) > self.max_payload_length:
            return text[:self.max_payload_length] + "..."
        return text

    async def on_message(self, context: MiddlewareContext, call_next):
        logger.debug(f"MCP {context.type} from {context.source}: {context.method}")
        try:
            result = await call_next(context)
        except Exception as e:
            logger.error(f"MCP {context.method} failed: {type(e).__name__}: {e}")
            raise
        logger.debug(f"MCP {context.method} handled")
        return result

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        tool_name = context.message.name
        if self.include_payloads:
            logger.debug(f"Tool {tool_name} arguments: {self._truncate(context.message.arguments)}")

        result = await call_next(context)

        if self.include_payloads:
            logger.debug(f"Tool {tool_name} result: {self._truncate(result)}")
        return result


@dataclass
class ToolCallStats:
    """Counters for one tool."""

    calls: int = 0
    failures: Dict[str, int] = field(default_factory=dict)
    durations_ms: List[float] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        durations = self.durations_ms
        return {
            "calls": self.calls,
            "failures": dict(self.failures),
            "avg_ms": sum(durations) / len(durations) if durations else 0.0,
            "max_ms": max(durations, default=0.0),
        }


class ToolCallStatsMiddleware(Middleware):
    """Count, time and classify failures of tool calls, keyed by tool name.

    Validation errors raised by FastMCP before the handler runs surface here
    too, so they are counted against the requested tool.
    """

    def __init__(self, slow_call_threshold_ms: float = 2000):
        self.slow_threshold = slow_call_threshold_ms
        self.stats: Dict[str, ToolCallStats] = {}

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        tool_name = context.message.name
        stats = self.stats.setdefault(tool_name, ToolCallStats())
        stats.calls += 1

        start_time = time.perf_counter()
        try:
            return await call_next(context)
        except Exception as e:
            error_type = type(e).__name__
            stats.failures[error_type] = stats.failures.get(error_type, 0) + 1
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            stats.durations_ms.append(duration_ms)
            if duration_ms > self.slow_threshold:
                logger.warning(f"Slow tool call: {tool_name} took {duration_ms:.2f}ms")

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Snapshot of per-tool statistics."""
        return {name: stats.as_dict() for name, stats in self.stats.items()}


def build_middleware(config: MiddlewareConfig) -> List[Middleware]:
    """Build the middleware stack, outermost first."""
    return [
        ThinkLoggingMiddleware(
            include_payloads=config.include_payloads,
            max_payload_length=config.max_payload_length,
        ),
        ToolCallStatsMiddleware(slow_call_threshold_ms=config.slow_call_threshold_ms),
    ]
