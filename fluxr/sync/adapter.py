"""Persist board intents to the remote store, one path per item kind."""

from __future__ import annotations

import asyncio
import logging

from ..board.exceptions import NetworkError
from ..board.models import ItemKind
from ..config import BoardConfig
from ..store.interface import BoardStore
from ..store.tables import TABLES, TableSpec

logger = logging.getLogger(__name__)


class RemoteSyncAdapter:
    """Writes logical ``{status, position}`` updates to the right relation.

    Features and pages store the bucket in ``implementation_status``, bugs
    and tasks in ``status``; pages have no board position. Transient
    ``NetworkError`` failures are retried with capped exponential backoff.
    Everything else propagates to the caller unchanged.
    """

    def __init__(
        self,
        store: BoardStore,
        config: BoardConfig | None = None,
        paths: dict[ItemKind, TableSpec] | None = None,
    ) -> None:
        self._store = store
        self._config = config or BoardConfig()
        self._paths = paths if paths is not None else TABLES

    @property
    def store(self) -> BoardStore:
        return self._store

    def columns_for(self, kind: ItemKind, updates: dict) -> dict:
        return self._paths[kind].to_columns(updates)

    async def persist(
        self,
        kind: ItemKind,
        item_id: str,
        updates: dict,
        expected_version: int | None = None,
    ) -> dict:
        """Write ``updates`` for one item and return the stored row."""
        if kind not in self._paths:
            raise ValueError(f"No sync path for kind: {kind}")
        values = self.columns_for(kind, updates)
        return await self._with_retry(kind, item_id, values, expected_version)

    async def _with_retry(
        self,
        kind: ItemKind,
        item_id: str,
        values: dict,
        expected_version: int | None,
    ) -> dict:
        attempt = 0
        while True:
            try:
                return await self._store.update(
                    kind, item_id, values, expected_version=expected_version
                )
            except NetworkError as e:
                if attempt >= self._config.max_retries:
                    raise
                delay = self._config.retry_delay(attempt)
                logger.warning(
                    "Retrying %s %s after network error (attempt %d/%d): %s",
                    kind.value, item_id, attempt + 1, self._config.max_retries, e,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1
