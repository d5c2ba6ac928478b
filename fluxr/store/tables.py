"""Per-kind relation layout in the remote store."""

from __future__ import annotations

from dataclasses import dataclass

from ..board.models import ItemKind


@dataclass(frozen=True)
class TableSpec:
    kind: ItemKind
    table: str
    status_column: str
    position_column: str | None
    image_column: str | None = None

    def to_columns(self, updates: dict) -> dict:
        """Translate logical ``status``/``position`` keys to this table's columns."""
        values = {}
        for key, value in updates.items():
            if key == "status":
                values[self.status_column] = value
            elif key == "position":
                # Pages place themselves on the flow diagram, not the board.
                if self.position_column is not None:
                    values[self.position_column] = value
            elif key == "image_url":
                if self.image_column is not None:
                    values[self.image_column] = value
            else:
                values[key] = value
        return values


TABLES: dict[ItemKind, TableSpec] = {
    ItemKind.FEATURE: TableSpec(
        ItemKind.FEATURE, "features", "implementation_status", "position", "screenshot_url",
    ),
    ItemKind.BUG: TableSpec(ItemKind.BUG, "bugs", "status", "position", "screenshot_url"),
    ItemKind.TASK: TableSpec(ItemKind.TASK, "tasks", "status", "position"),
    ItemKind.PAGE: TableSpec(ItemKind.PAGE, "flow_pages", "implementation_status", None),
}

PRODUCTS_TABLE = "products"
