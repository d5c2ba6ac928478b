"""Pure handler functions for board MCP tools.

Each handler takes (args, service) and returns MCP result format.
No SDK dependency, so they run against InMemoryStore.
"""

import json
from typing import Any

from ..board.exceptions import ItemNotFoundError, SyncError
from ..board.models import BUCKET_IDS, BoardItem, ItemKind
from ..board.service import BoardService


def _text_result(text: str) -> dict[str, Any]:
    """Build MCP tool result with a text content block."""
    return {"content": [{"type": "text", "text": text}]}


def _json_result(data: Any) -> dict[str, Any]:
    """Build MCP tool result with JSON-serialized content."""
    return _text_result(json.dumps(data, indent=2, default=str))


def _item_data(item: BoardItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "kind": item.kind.value,
        "status": item.status,
        "position": item.position,
        "priority": item.effective_priority,
        "description": item.description,
    }


async def list_board_handler(
    args: dict[str, Any], service: BoardService
) -> dict[str, Any]:
    """List the board column by column, optionally limited to one kind."""
    kind = args.get("kind")
    if kind and kind not in {k.value for k in ItemKind}:
        return _text_result(f"Error: Unknown kind: {kind}")
    columns = service.columns()
    data = {
        bucket: [
            _item_data(item)
            for item in items
            if not kind or item.kind.value == kind
        ]
        for bucket, items in columns.items()
    }
    return _json_result(data)


async def move_item_handler(
    args: dict[str, Any], service: BoardService
) -> dict[str, Any]:
    """Move an item to a column and index."""
    item_id = args["item_id"]
    status = args["status"]
    if status not in BUCKET_IDS:
        return _text_result(f"Error: Unknown column: {status}")
    index = int(args.get("index") or 0)
    result = await service.move_item(item_id, status, index)
    if result.error:
        return _text_result(f"Error: {result.error}")
    if not result.changed:
        return _text_result(f"No change for {item_id} ({result.outcome.value})")
    return _json_result(_item_data(service.get(item_id)))


async def add_item_handler(
    args: dict[str, Any], service: BoardService
) -> dict[str, Any]:
    """Add a new item to the Not Started column."""
    try:
        kind = ItemKind(args["kind"])
    except ValueError:
        return _text_result(f"Error: Unknown kind: {args['kind']}")
    try:
        item = await service.add_item(
            kind,
            args["name"],
            description=args.get("description") or "",
            priority=args.get("priority") or None,
        )
    except SyncError as e:
        return _text_result(f"Error: {e.user_message}")
    return _json_result(_item_data(item))


async def delete_item_handler(
    args: dict[str, Any], service: BoardService
) -> dict[str, Any]:
    """Delete an item and its screenshot, if any."""
    item_id = args["item_id"]
    try:
        await service.delete_item(item_id)
    except ItemNotFoundError:
        return _text_result(f"Error: Item not found: {item_id}")
    except SyncError as e:
        return _text_result(f"Error: {e.user_message}")
    return _text_result(f"Deleted {item_id}")
