"""Split board items into status buckets, applying the active filters."""

from __future__ import annotations

from typing import Iterable

from .filters import FilterState
from .models import COLUMNS, BoardItem, ItemKind


def _kind_of(item: BoardItem) -> str:
    # Rows created before kinds existed were always features.
    return item.kind.value if item.kind is not None else ItemKind.FEATURE.value


def matches(item: BoardItem, filters: FilterState | None) -> bool:
    if filters is None:
        return True
    if filters.types and _kind_of(item) not in filters.types:
        return False
    if filters.priorities and item.effective_priority not in filters.priorities:
        return False
    query = filters.search.strip().lower()
    if query:
        return query in item.name.lower() or query in (item.description or "").lower()
    return True


def visible_items(
    items: Iterable[BoardItem], filters: FilterState | None = None
) -> list[BoardItem]:
    return [i for i in items if matches(i, filters)]


def partition(
    items: Iterable[BoardItem], filters: FilterState | None = None
) -> dict[str, list[BoardItem]]:
    """Map each column id to its visible items, ordered by position.

    Items whose status is not a column id are left out. Nothing is mutated.
    """
    buckets: dict[str, list[BoardItem]] = {c.id: [] for c in COLUMNS}
    for item in items:
        if item.status in buckets and matches(item, filters):
            buckets[item.status].append(item)
    for bucket in buckets.values():
        bucket.sort(key=lambda i: i.position)
    return buckets
