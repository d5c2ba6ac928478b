"""Board service: the item list for one product plus its operations."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from ..config import BoardConfig
from ..store.interface import BoardStore
from ..store.tables import TABLES
from ..sync.adapter import RemoteSyncAdapter
from ..sync.strategy import create_strategy
from .drag import DragController, DropResult
from .exceptions import ItemNotFoundError, ProductNotFoundError, StaleReferenceError
from .filters import FilterState
from .models import BoardItem, DragIntent, DragLocation, ItemKind, Priority, Status
from .normalizer import normalize_record, normalize_records
from .partition import matches, partition, visible_items

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"name", "description", "priority", "status", "position", "image_url"}


class BoardService:
    """Holds the board for one product and keeps it in step with the store.

    Moves are serialized: a second drop waits for the first write to settle,
    so an older response can never overwrite a newer move.
    """

    def __init__(self, store: BoardStore, config: BoardConfig | None = None) -> None:
        self._config = config or BoardConfig()
        self._store = store
        self._adapter = RemoteSyncAdapter(store, self._config)
        self.controller = DragController(self._adapter, create_strategy(self._config.sync_strategy))
        self.filters = FilterState()
        self.items: list[BoardItem] = []
        self.product_id: str | None = None
        self.last_error: str | None = None
        self._move_lock = asyncio.Lock()

    @property
    def store(self) -> BoardStore:
        return self._store

    # -- Loading --

    async def load(self, product_slug: str, user_id: str) -> list[BoardItem]:
        product_id = await self._store.find_product_id(product_slug, user_id)
        if product_id is None:
            raise ProductNotFoundError(product_slug)
        return await self.load_product(product_id)

    async def load_product(self, product_id: str) -> list[BoardItem]:
        self.product_id = product_id
        features, bugs, tasks, pages = await asyncio.gather(
            self._store.fetch(ItemKind.FEATURE, product_id),
            self._store.fetch(ItemKind.BUG, product_id),
            self._store.fetch(ItemKind.TASK, product_id),
            self._store.fetch(ItemKind.PAGE, product_id),
        )
        self.items = normalize_records(features=features, bugs=bugs, tasks=tasks, pages=pages)
        logger.info("Loaded %d items for product %s", len(self.items), product_id)
        return self.items

    # -- Views --

    def columns(self) -> dict[str, list[BoardItem]]:
        return partition(self.items, self.filters)

    def visible_items(self) -> list[BoardItem]:
        return visible_items(self.items, self.filters)

    def _is_visible(self, item: BoardItem) -> bool:
        return matches(item, self.filters)

    def get(self, item_id: str) -> BoardItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(item_id)

    def location_of(self, item_id: str) -> DragLocation:
        """Where the item currently sits in its (visible) bucket."""
        item = self.get(item_id)
        bucket = self.columns().get(item.status, [])
        ids = [i.id for i in bucket]
        index = ids.index(item_id) if item_id in ids else item.position
        return DragLocation(item.status, index)

    # -- CRUD --

    async def add_item(
        self,
        kind: ItemKind,
        name: str,
        description: str = "",
        priority: str | None = None,
        **extra,
    ) -> BoardItem:
        if self.product_id is None:
            raise ProductNotFoundError("(no product loaded)")
        spec = TABLES[kind]
        if kind is ItemKind.PAGE:
            position = 0
        else:
            position = sum(1 for i in self.items if i.kind is kind)
        updates = {
            "name": name,
            "description": description,
            "priority": priority or Priority.NOT_PRIORITIZED.value,
            "status": Status.NOT_STARTED.value,
            "position": position,
            **extra,
        }
        row = {"product_id": self.product_id, **spec.to_columns(updates)}
        stored = await self._store.insert(kind, row)
        item = normalize_record(kind, stored)
        self.items = [*self.items, item]
        return item

    async def import_generated(self, rows: list[dict]) -> list[BoardItem]:
        """Insert normalized feature rows (see ``normalize_generated_feature``)."""
        if self.product_id is None:
            raise ProductNotFoundError("(no product loaded)")
        stored = await self._store.insert_many(
            ItemKind.FEATURE, [{"product_id": self.product_id, **r} for r in rows]
        )
        created = [normalize_record(ItemKind.FEATURE, r) for r in stored]
        self.items = [*self.items, *created]
        return created

    async def update_item(self, item_id: str, **fields) -> BoardItem:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown item field: {', '.join(sorted(unknown))}")
        item = self.get(item_id)
        stored = await self._adapter.persist(
            item.kind, item_id, fields, expected_version=item.version
        )
        updated = normalize_record(item.kind, stored)
        if TABLES[item.kind].position_column is None:
            updated = replace(updated, position=item.position)
        self.items = [updated if i.id == item_id else i for i in self.items]
        return updated

    async def delete_item(self, item_id: str) -> None:
        item = self.get(item_id)
        try:
            await self._store.delete(item.kind, item_id)
        except StaleReferenceError:
            logger.info("Item %s was already deleted", item_id)
            self.items = [i for i in self.items if i.id != item_id]
            return
        self.items = [i for i in self.items if i.id != item_id]
        if item.image_url:
            await self._store.remove_image(item.image_url)

    # -- Moves --

    async def move(self, intent: DragIntent, on_optimistic=None) -> DropResult:
        async with self._move_lock:
            result = await self.controller.handle_drop(
                intent, self.items, self.product_id, on_optimistic, self._is_visible
            )
            self.items = result.items
            self.last_error = result.error
            return result

    def grab(self, item_id: str) -> DragLocation:
        source = self.location_of(item_id)
        self.controller.session.grab(item_id, source)
        return source

    def hover(self, destination: DragLocation | None) -> None:
        self.controller.session.hover(destination)

    async def release(self, on_optimistic=None) -> DropResult:
        async with self._move_lock:
            result = await self.controller.release(
                self.items, self.product_id, on_optimistic, self._is_visible
            )
            self.items = result.items
            self.last_error = result.error
            return result

    def abort(self) -> DropResult:
        return self.controller.abort(self.items)

    async def move_item(self, item_id: str, bucket_id: str, index: int = 0) -> DropResult:
        """Move without a gesture (CLI, tools). Unknown ids are a silent no-op."""
        try:
            source = self.location_of(item_id)
        except ItemNotFoundError:
            source = DragLocation("", -1)
        return await self.move(DragIntent(item_id, source, DragLocation(bucket_id, index)))
