"""How the local board reconciles with the store after a confirmed write.

One strategy is chosen for the whole board from config; every item kind
goes through the same one.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Protocol

from ..board.models import BoardItem, ItemKind
from ..board.normalizer import normalize_record
from ..store.interface import BoardStore


class SyncStrategy(Protocol):
    name: str

    async def reconcile(
        self,
        store: BoardStore,
        product_id: str | None,
        items: list[BoardItem],
        moved: BoardItem,
        confirmed: dict,
        buckets: set[str],
    ) -> list[BoardItem]: ...


class LocalPatchStrategy:
    """Keep the optimistic patch; take only the written row's server fields."""

    name = "local_patch"

    async def reconcile(self, store, product_id, items, moved, confirmed, buckets):
        server = normalize_record(moved.kind, confirmed)
        patched = replace(
            moved,
            version=server.version,
            raw=server.raw,
            image_url=server.image_url,
        )
        return [patched if i.id == moved.id else i for i in items]


class ResyncBucketStrategy:
    """Re-read every affected bucket (all kinds) and replace it locally."""

    name = "resync_bucket"

    async def reconcile(self, store, product_id, items, moved, confirmed, buckets):
        if product_id is None:
            return await LocalPatchStrategy().reconcile(
                store, product_id, items, moved, confirmed, buckets
            )
        requests = [
            (kind, status)
            for status in sorted(buckets)
            for kind in ItemKind
        ]
        results = await asyncio.gather(
            *(store.fetch(kind, product_id, status=status) for kind, status in requests)
        )
        fresh: list[BoardItem] = []
        for (kind, _), rows in zip(requests, results):
            fresh.extend(normalize_record(kind, row) for row in rows)
        kept = [i for i in items if i.status not in buckets]
        return kept + fresh


def create_strategy(name: str) -> SyncStrategy:
    if name == LocalPatchStrategy.name:
        return LocalPatchStrategy()
    if name == ResyncBucketStrategy.name:
        return ResyncBucketStrategy()
    raise ValueError(f"Unknown sync strategy: {name}")
