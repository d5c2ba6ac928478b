"""Abstract remote store protocol."""

from typing import Protocol

from ..board.models import ItemKind


class BoardStore(Protocol):
    """Interface that any board persistence backend must implement.

    Rows are plain dicts in the relation's own column names. Failures are
    raised as ``fluxr.board.exceptions.SyncError`` subclasses.
    """

    async def find_product_id(self, slug: str, user_id: str) -> str | None: ...

    async def fetch(
        self, kind: ItemKind, product_id: str, status: str | None = None
    ) -> list[dict]: ...

    async def insert(self, kind: ItemKind, row: dict) -> dict: ...

    async def insert_many(self, kind: ItemKind, rows: list[dict]) -> list[dict]: ...

    async def update(
        self,
        kind: ItemKind,
        item_id: str,
        values: dict,
        expected_version: int | None = None,
    ) -> dict: ...

    async def delete(self, kind: ItemKind, item_id: str) -> None: ...

    async def remove_image(self, url: str) -> bool: ...
