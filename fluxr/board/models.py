"""Domain models for the kanban board."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ItemKind(Enum):
    FEATURE = "feature"
    BUG = "bug"
    TASK = "task"
    PAGE = "page"


class Priority(Enum):
    MUST_HAVE = "must-have"
    NICE_TO_HAVE = "nice-to-have"
    NOT_PRIORITIZED = "not-prioritized"


class Status(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Column:
    id: str
    title: str
    color: str


COLUMNS: list[Column] = [
    Column(id=Status.NOT_STARTED.value, title="Not Started", color="grey"),
    Column(id=Status.IN_PROGRESS.value, title="In Progress", color="blue"),
    Column(id=Status.COMPLETED.value, title="Completed", color="green"),
]

BUCKET_IDS: frozenset[str] = frozenset(c.id for c in COLUMNS)


@dataclass
class BoardItem:
    """One card on the board, whatever table it came from.

    ``priority`` keeps the stored value (possibly None); use
    ``effective_priority`` when filtering.
    """

    id: str
    name: str
    kind: ItemKind
    status: str
    position: int = 0
    description: str = ""
    priority: str | None = None
    version: int | None = None
    image_url: str | None = None
    product_id: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def effective_priority(self) -> str:
        return self.priority or Priority.NOT_PRIORITIZED.value


@dataclass(frozen=True)
class DragLocation:
    bucket_id: str
    index: int


@dataclass(frozen=True)
class DragIntent:
    """Source and destination of a single completed drag gesture.

    ``destination`` is None when the card was dropped outside any bucket.
    """

    draggable_id: str
    source: DragLocation
    destination: DragLocation | None = None
