"""Board assistant: a Claude session that works the board through the MCP tools."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable

os.environ.pop("CLAUDECODE", None)

from claude_agent_sdk import AssistantMessage, ClaudeAgentOptions, ClaudeSDKClient

from ..board.service import BoardService
from .server import create_board_server

logger = logging.getLogger(__name__)

SERVER_NAME = "fluxr_board"
TOOL_PREFIX = f"mcp__{SERVER_NAME}__"

BOARD_TOOLS = [
    f"{TOOL_PREFIX}list_board",
    f"{TOOL_PREFIX}move_item",
    f"{TOOL_PREFIX}add_item",
    f"{TOOL_PREFIX}delete_item",
]

SYSTEM_PROMPT = (
    "You manage a product's kanban board. Items are features, bugs, tasks "
    "and flow pages, spread over three columns: not_started, in_progress "
    "and completed.\n\n"
    "Call list_board before changing anything so you work with real item "
    "IDs. Use move_item to change an item's column or its place in a "
    "column, add_item for new work and delete_item only when asked to "
    "remove something. Finish with a short summary of what changed."
)


async def run_assistant(
    request: str,
    service: BoardService,
    model: str = "sonnet",
    timeout: int = 120,
    max_turns: int = 10,
    emit: Callable[[str], None] = print,
) -> None:
    """Run one request against the loaded board, streaming replies to ``emit``."""
    options = ClaudeAgentOptions(
        system_prompt=SYSTEM_PROMPT,
        model=model,
        mcp_servers={SERVER_NAME: create_board_server(service)},
        allowed_tools=BOARD_TOOLS,
        max_turns=max_turns,
    )

    try:
        async with asyncio.timeout(timeout):
            async with ClaudeSDKClient(options=options) as client:
                await client.query(request)
                async for message in client.receive_response():
                    if isinstance(message, AssistantMessage):
                        for block in message.content:
                            if hasattr(block, "text"):
                                emit(block.text)
                            elif hasattr(block, "name"):
                                emit(f"  [tool: {block.name}]")
    except TimeoutError:
        raise RuntimeError(f"Board assistant timed out after {timeout}s") from None
    logger.info("Assistant finished: %s", request)
