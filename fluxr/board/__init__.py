from .drag import DragController, DragSession, DragState, DropResult, MoveOutcome, resolve
from .filters import FilterState
from .models import (
    COLUMNS,
    BoardItem,
    Column,
    DragIntent,
    DragLocation,
    ItemKind,
    Priority,
    Status,
)
from .partition import partition, visible_items

__all__ = [
    "COLUMNS",
    "BoardItem",
    "Column",
    "DragController",
    "DragIntent",
    "DragLocation",
    "DragSession",
    "DragState",
    "DropResult",
    "FilterState",
    "ItemKind",
    "MoveOutcome",
    "Priority",
    "Status",
    "partition",
    "resolve",
    "visible_items",
]
