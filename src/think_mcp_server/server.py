"""ABOUTME: Main FastMCP server implementation for the think tool.
ABOUTME: Builds the FastMCP app, wires middleware and tools, and owns startup and teardown."""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastmcp import FastMCP

from .config import Config, ConfigManager
from .middleware import ToolCallStatsMiddleware, build_middleware
from .tools import register_think_tools

logger = logging.getLogger(__name__)


class ThinkMCPServer:
    """Think Tool MCP server."""

    def __init__(self, config: Config):
        """Initialize the server.

        Args:
            config: Server configuration
        """
        self.config = config
        self._closed = False

        # Setup logging BEFORE FastMCP initialization
        self._setup_logging()

        self.app = FastMCP(
            config.server.name,
            version=config.server.version,
            lifespan=self._lifespan,
        )

        # First added = outermost layer
        self.middleware = build_middleware(config.middleware)
        for middleware in self.middleware:
            self.app.add_middleware(middleware)

        register_think_tools(self.app)

    def _setup_logging(self) -> None:
        """Apply the configured level to the package logger."""
        logging.getLogger(__package__).setLevel(self.config.server.log_level)

    @asynccontextmanager
    async def _lifespan(self, app: FastMCP) -> AsyncIterator[dict]:
        # stdout carries protocol frames, so the announcement goes to stderr
        print(f"{self.config.server.name} is running...", file=sys.stderr, flush=True)
        try:
            yield {}
        finally:
            logger.debug(f"{self.config.server.name} stopped serving")

    @property
    def tool_stats(self) -> ToolCallStatsMiddleware:
        for middleware in self.middleware:
            if isinstance(middleware, ToolCallStatsMiddleware):
                return middleware
        raise LookupError("Tool call statistics middleware is not installed")

    def run(self) -> None:
        """Run the MCP server on the configured transport (blocks)."""
        transport = self.config.server.transport
        try:
            if transport == "stdio":
                logger.debug(f"Starting {self.config.server.name} on stdio")
                # The banner would otherwise be printed by FastMCP
                self.app.run(transport="stdio", show_banner=False)
            else:
                logger.debug(
                    f"Starting {self.config.server.name} on {transport} "
                    f"{self.config.server.host}:{self.config.server.port}"
                )
                self.app.run(
                    transport=transport,
                    host=self.config.server.host,
                    port=self.config.server.port,
                    show_banner=False,
                )
        except KeyboardInterrupt:
            logger.debug("Server shutdown requested")
        except Exception as e:
            logger.error(f"Server error: {e}")
            raise

    def cleanup(self) -> None:
        """Release server resources and report tool call statistics."""
        if self._closed:
            return
        self._closed = True

        logger.debug("Cleaning up server resources...")

        for tool_name, stats in self.tool_stats.get_stats().items():
            logger.info(
                f"{tool_name}: {stats['calls']} calls, {sum(stats['failures'].values())} failed, "
                f"avg {stats['avg_ms']:.2f}ms, max {stats['max_ms']:.2f}ms"
            )

    @classmethod
    def create_and_run(cls, config: Config) -> None:
        """Create and run the server with configuration.

        Args:
            config: Server configuration
        """
        warnings = ConfigManager.validate_config(config)
        for warning in warnings:
            print(f"[{config.server.name}] WARNING: {warning}", file=sys.stderr)

        server = cls(config)
        try:
            server.run()
        except Exception as e:
            print(f"[{config.server.name}] ERROR: Failed to start server: {e}", file=sys.stderr)
            raise
        finally:
            server.cleanup()
