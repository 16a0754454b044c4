"""ABOUTME: The `think` MCP tool, a logged identity function over a text thought.
ABOUTME: Schema validation of `thought` is left to FastMCP before the handler runs."""

import logging
from typing import Annotated

from fastmcp import Context, FastMCP
from pydantic import Field

logger = logging.getLogger(__name__)

THINK_TOOL_NAME = "think"
THINK_TOOL_DESCRIPTION = (
    "Use the tool to think about something. It will not obtain new information "
    "or change the database, but just append the thought to the log. Use it when "
    "complex reasoning or some cache memory is needed."
)
THOUGHT_DESCRIPTION = "A thought to think about."
THINK_LOG_MESSAGE = "Thinking process"


async def think(
    thought: Annotated[str, Field(description=THOUGHT_DESCRIPTION)],
    ctx: Context,
) -> str:
    """Log the thought to the client and hand it back unchanged."""
    await ctx.info(THINK_LOG_MESSAGE, extra={"thought": thought})
    return thought


def register_think_tools(app: FastMCP) -> None:
    """Register the think tool with the FastMCP application.

    Args:
        app: FastMCP application instance
    """
    app.tool(think, name=THINK_TOOL_NAME, description=THINK_TOOL_DESCRIPTION)
    logger.debug(f"Registered tool: {THINK_TOOL_NAME}")
