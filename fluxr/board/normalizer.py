"""Project the four record shapes onto a single BoardItem shape."""

from __future__ import annotations

from typing import Any, Iterable

from ..store.tables import TABLES
from .models import BoardItem, ItemKind, Priority

VALID_PRIORITIES = tuple(p.value for p in Priority)
VALID_STATUSES = ("not_started", "in_progress", "completed", "blocked", "deferred")


def normalize_record(kind: ItemKind, record: dict[str, Any]) -> BoardItem:
    """Build a BoardItem from one raw row. The row itself is not modified."""
    spec = TABLES[kind]
    status = record.get(spec.status_column) or record.get("status") or "not_started"
    position = record.get("position") if spec.position_column else None
    return BoardItem(
        id=str(record["id"]),
        name=record.get("name") or "",
        kind=kind,
        status=status,
        position=int(position or 0),
        description=record.get("description") or "",
        priority=record.get("priority") or None,
        version=record.get("version"),
        image_url=record.get(spec.image_column) if spec.image_column else None,
        product_id=record.get("product_id"),
        raw=dict(record),
    )


def normalize_records(
    features: Iterable[dict] = (),
    bugs: Iterable[dict] = (),
    tasks: Iterable[dict] = (),
    pages: Iterable[dict] = (),
) -> list[BoardItem]:
    """Tag and merge the four record sets: features, pages, bugs, then tasks."""
    items: list[BoardItem] = []
    for kind, records in (
        (ItemKind.FEATURE, features),
        (ItemKind.PAGE, pages),
        (ItemKind.BUG, bugs),
        (ItemKind.TASK, tasks),
    ):
        items.extend(normalize_record(kind, r) for r in records or ())
    return items


def normalize_priority(value: str | None) -> str:
    if not value:
        return Priority.NOT_PRIORITIZED.value
    candidate = "-".join(value.lower().split())
    if candidate in VALID_PRIORITIES:
        return candidate
    if "must" in candidate:
        return Priority.MUST_HAVE.value
    if "nice" in candidate:
        return Priority.NICE_TO_HAVE.value
    return Priority.NOT_PRIORITIZED.value


def normalize_status(value: str | None) -> str:
    if not value:
        return "not_started"
    candidate = "_".join(value.lower().split())
    return candidate if candidate in VALID_STATUSES else "not_started"


def normalize_generated_feature(raw: dict[str, Any], index: int) -> dict[str, Any]:
    """Turn an LLM-suggested feature into an insertable ``features`` row.

    Positions are spaced by 1000 so later inserts fit between neighbours.
    """
    return {
        "name": raw.get("name") or f"Untitled Feature {index + 1}",
        "description": raw.get("description") or "",
        "priority": normalize_priority(raw.get("priority")),
        "implementation_status": normalize_status(raw.get("implementation_status")),
        "position": index * 1000,
    }
