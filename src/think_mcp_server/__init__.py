"""Think Tool Server - a FastMCP server exposing a single `think` tool."""

# Configure structured logging for MCP compatibility
import logging
import os
import sys


def setup_mcp_logging():
    """Setup logging configuration for MCP servers."""
    # Only configure if not already configured
    if not logging.getLogger().handlers:
        # stdout carries the protocol in STDIO mode, so logs go to stderr
        handler = logging.StreamHandler(sys.stderr)

        formatter = logging.Formatter(
            '[%(name)s] %(levelname)s: %(message)s'
        )
        handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.addHandler(handler)

        log_level = os.getenv('FASTMCP_LOG_LEVEL', 'INFO').upper()
        if log_level == 'CRITICAL':
            # In MCP STDIO mode, only show errors and critical messages
            root_logger.setLevel(logging.ERROR)
        else:
            root_logger.setLevel(getattr(logging, log_level, logging.INFO))


setup_mcp_logging()

__version__ = "1.0.0"
__description__ = "A FastMCP server that lets a model externalize its reasoning"

from .config import Config, ConfigManager, MiddlewareConfig, ServerConfig
from .tools import THINK_TOOL_NAME, register_think_tools, think
from .server import ThinkMCPServer

__all__ = [
    "Config",
    "ConfigManager",
    "MiddlewareConfig",
    "ServerConfig",
    "THINK_TOOL_NAME",
    "register_think_tools",
    "think",
    "ThinkMCPServer",
]
