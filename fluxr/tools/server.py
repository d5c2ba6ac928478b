"""MCP server factory binding handlers to a board service."""

from typing import Any

from claude_agent_sdk import create_sdk_mcp_server, tool

from ..board.service import BoardService
from . import handlers


def create_board_server(service: BoardService):
    """Create an MCP server with the board tools.

    Each handler is bound to the service via closure so the @tool wrappers
    are clean single-argument async functions as the SDK expects.
    """

    @tool(
        "list_board",
        "List board items grouped by column (not_started, in_progress, completed). "
        "Optionally filter by kind: feature, bug, task or page.",
        {"kind": str},
    )
    async def list_board(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.list_board_handler(args, service)

    @tool(
        "move_item",
        "Move an item to a column (status) at a zero-based index within that column",
        {"item_id": str, "status": str, "index": int},
    )
    async def move_item(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.move_item_handler(args, service)

    @tool(
        "add_item",
        "Add a feature, bug, task or page to the Not Started column",
        {"kind": str, "name": str, "description": str, "priority": str},
    )
    async def add_item(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.add_item_handler(args, service)

    @tool(
        "delete_item",
        "Delete an item by ID",
        {"item_id": str},
    )
    async def delete_item(args: dict[str, Any]) -> dict[str, Any]:
        return await handlers.delete_item_handler(args, service)

    return create_sdk_mcp_server(
        name="fluxr_board",
        version="0.1.0",
        tools=[list_board, move_item, add_item, delete_item],
    )
