"""In-memory board store for tests, demos and --mock runs."""

from __future__ import annotations

import copy
from datetime import datetime, timezone

from ..board.exceptions import StaleReferenceError, SyncError, VersionConflictError
from ..board.models import ItemKind
from .tables import TABLES


class InMemoryStore:
    """BoardStore backed by dicts.

    Every mutating call is appended to ``calls`` so tests can count remote
    writes. ``fail_next`` queues an exception for the next matching call.
    """

    def __init__(self, versioned: bool = False):
        self._versioned = versioned
        self._rows: dict[ItemKind, dict[str, dict]] = {kind: {} for kind in ItemKind}
        self._products: dict[tuple[str, str], str] = {}
        self._next_id = 1
        self._failures: list[tuple[str | None, SyncError]] = []
        self.calls: list[tuple] = []
        self.removed_images: list[str] = []

    # -- Test helpers --

    def add_product(self, slug: str, user_id: str, product_id: str | None = None) -> str:
        product_id = product_id or f"p-{len(self._products) + 1}"
        self._products[(slug, user_id)] = product_id
        return product_id

    def seed(self, kind: ItemKind, row: dict) -> dict:
        """Insert a row without recording a call."""
        row = dict(row)
        if "id" not in row:
            row["id"] = self._new_id(kind)
        if self._versioned:
            row.setdefault("version", 1)
        self._rows[kind][row["id"]] = row
        return copy.deepcopy(row)

    def row(self, kind: ItemKind, item_id: str) -> dict | None:
        found = self._rows[kind].get(item_id)
        return copy.deepcopy(found) if found is not None else None

    def fail_next(self, error: SyncError, operation: str | None = None) -> None:
        """Raise ``error`` on the next call (optionally only for ``operation``)."""
        self._failures.append((operation, error))

    def writes(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("insert", "update", "delete")]

    # -- BoardStore --

    async def find_product_id(self, slug: str, user_id: str) -> str | None:
        self._maybe_fail("find_product_id")
        return self._products.get((slug, user_id))

    async def fetch(
        self, kind: ItemKind, product_id: str, status: str | None = None
    ) -> list[dict]:
        self._maybe_fail("fetch")
        spec = TABLES[kind]
        rows = [r for r in self._rows[kind].values() if r.get("product_id") == product_id]
        if status is not None:
            rows = [r for r in rows if r.get(spec.status_column) == status]
        if spec.position_column is not None:
            rows.sort(key=lambda r: r.get(spec.position_column) or 0)
        return copy.deepcopy(rows)

    async def insert(self, kind: ItemKind, row: dict) -> dict:
        self._maybe_fail("insert")
        stored = self.seed(kind, {**row, "created_at": _now_iso()})
        self.calls.append(("insert", kind, stored["id"], dict(row)))
        return stored

    async def insert_many(self, kind: ItemKind, rows: list[dict]) -> list[dict]:
        return [await self.insert(kind, row) for row in rows]

    async def update(
        self,
        kind: ItemKind,
        item_id: str,
        values: dict,
        expected_version: int | None = None,
    ) -> dict:
        self.calls.append(("update", kind, item_id, dict(values)))
        self._maybe_fail("update")
        table = TABLES[kind].table
        row = self._rows[kind].get(item_id)
        if row is None:
            raise StaleReferenceError(table, item_id)
        if self._versioned and expected_version is not None:
            if row.get("version") != expected_version:
                raise VersionConflictError(table, item_id, expected_version)
        row.update(values)
        if self._versioned:
            row["version"] = (row.get("version") or 0) + 1
        row["updated_at"] = _now_iso()
        return copy.deepcopy(row)

    async def delete(self, kind: ItemKind, item_id: str) -> None:
        self.calls.append(("delete", kind, item_id, {}))
        self._maybe_fail("delete")
        if self._rows[kind].pop(item_id, None) is None:
            raise StaleReferenceError(TABLES[kind].table, item_id)

    async def remove_image(self, url: str) -> bool:
        self.removed_images.append(url)
        return True

    # -- Internals --

    def _new_id(self, kind: ItemKind) -> str:
        item_id = f"{kind.value}-{self._next_id}"
        self._next_id += 1
        return item_id

    def _maybe_fail(self, operation: str) -> None:
        for i, (op, error) in enumerate(self._failures):
            if op is None or op == operation:
                del self._failures[i]
                raise error


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


DEMO_SLUG = "demo"
DEMO_USER = "demo-user"


def demo_store(versioned: bool = False) -> InMemoryStore:
    """A store holding one small product, for --mock runs."""
    store = InMemoryStore(versioned=versioned)
    product_id = store.add_product(DEMO_SLUG, DEMO_USER)
    rows = [
        (ItemKind.FEATURE, {"name": "User sign-up", "priority": "must-have",
                            "implementation_status": "completed", "position": 0}),
        (ItemKind.FEATURE, {"name": "Board drag and drop", "priority": "must-have",
                            "implementation_status": "in_progress", "position": 0}),
        (ItemKind.FEATURE, {"name": "Dark mode", "priority": "nice-to-have",
                            "implementation_status": "not_started", "position": 0}),
        (ItemKind.FEATURE, {"name": "CSV export", "priority": None,
                            "implementation_status": "not_started", "position": 1}),
        (ItemKind.BUG, {"name": "Card flickers on drop", "priority": "must-have",
                        "status": "not_started", "position": 2}),
        (ItemKind.TASK, {"name": "Write onboarding copy", "status": "in_progress",
                         "position": 1}),
        (ItemKind.PAGE, {"name": "Settings page", "implementation_status": "not_started"}),
    ]
    for kind, row in rows:
        store.seed(kind, {"product_id": product_id, "description": "", **row})
    return store
