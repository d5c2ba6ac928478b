"""Supabase-backed board store.

Wraps the synchronous supabase client. Each query runs in a worker thread
via ``asyncio.to_thread`` so the event loop (and the TUI) stay responsive.
Client errors are translated once here into the board's sync taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable
from urllib.parse import unquote, urlparse

import httpx
from postgrest.exceptions import APIError

from ..board.exceptions import (
    NetworkError,
    PermissionDeniedError,
    StaleReferenceError,
    SyncError,
    ValidationError,
    VersionConflictError,
)
from ..board.models import ItemKind
from .tables import PRODUCTS_TABLE, TABLES

logger = logging.getLogger(__name__)

# PostgREST / Postgres codes for row-level security and JWT rejections.
PERMISSION_CODES = {"42501", "PGRST301", "PGRST302"}
# .single() on zero rows.
NOT_FOUND_CODES = {"PGRST116"}


def create_supabase_client(url: str, key: str):
    """Build a supabase client. Imported lazily so tests never need credentials."""
    from supabase import create_client

    return create_client(url, key)


def storage_path(url: str, bucket: str) -> str | None:
    """Extract the object path inside ``bucket`` from a public or signed URL."""
    if not url:
        return None
    path = unquote(urlparse(url).path)
    marker = f"/{bucket}/"
    if marker not in path:
        return None
    return path.split(marker, 1)[1] or None


class SupabaseStore:
    """BoardStore on top of a supabase ``Client``."""

    def __init__(self, client, image_bucket: str = "screenshots", versioned: bool = False):
        self._client = client
        self._image_bucket = image_bucket
        self._versioned = versioned

    @classmethod
    def from_config(cls, config) -> "SupabaseStore":
        if not config.supabase_url or not config.supabase_key:
            raise ValueError("supabase_url and supabase_key must be configured")
        client = create_supabase_client(config.supabase_url, config.supabase_key)
        return cls(client, image_bucket=config.image_bucket, versioned=config.versioned_writes)

    async def find_product_id(self, slug: str, user_id: str) -> str | None:
        def _query():
            return (
                self._client.table(PRODUCTS_TABLE)
                .select("id")
                .eq("slug", slug)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )

        response = await self._run(_query, PRODUCTS_TABLE)
        rows = response.data or []
        return rows[0]["id"] if rows else None

    async def fetch(
        self, kind: ItemKind, product_id: str, status: str | None = None
    ) -> list[dict]:
        spec = TABLES[kind]

        def _query():
            q = self._client.table(spec.table).select("*").eq("product_id", product_id)
            if status is not None:
                q = q.eq(spec.status_column, status)
            if spec.position_column is not None:
                q = q.order(spec.position_column, desc=False)
            return q.execute()

        response = await self._run(_query, spec.table)
        return list(response.data or [])

    async def insert(self, kind: ItemKind, row: dict) -> dict:
        rows = await self.insert_many(kind, [row])
        if not rows:
            raise ValidationError(f"Insert into {TABLES[kind].table} returned no row")
        return rows[0]

    async def insert_many(self, kind: ItemKind, rows: list[dict]) -> list[dict]:
        spec = TABLES[kind]
        if self._versioned:
            rows = [{"version": 1, **r} for r in rows]

        def _query():
            return self._client.table(spec.table).insert(rows).execute()

        response = await self._run(_query, spec.table)
        return list(response.data or [])

    async def update(
        self,
        kind: ItemKind,
        item_id: str,
        values: dict,
        expected_version: int | None = None,
    ) -> dict:
        spec = TABLES[kind]
        check_version = self._versioned and expected_version is not None
        payload = dict(values)
        if check_version:
            payload["version"] = expected_version + 1

        def _query():
            q = self._client.table(spec.table).update(payload).eq("id", item_id)
            if check_version:
                q = q.eq("version", expected_version)
            return q.execute()

        response = await self._run(_query, spec.table, item_id)
        rows = response.data or []
        if rows:
            return rows[0]

        # Nothing matched: the row is gone, its version moved on, or RLS hid the update.
        if not await self._exists(spec.table, item_id):
            raise StaleReferenceError(spec.table, item_id)
        if check_version:
            raise VersionConflictError(spec.table, item_id, expected_version)
        raise PermissionDeniedError(spec.table, item_id=item_id)

    async def delete(self, kind: ItemKind, item_id: str) -> None:
        spec = TABLES[kind]

        def _query():
            return self._client.table(spec.table).delete().eq("id", item_id).execute()

        response = await self._run(_query, spec.table, item_id)
        if not response.data:
            raise StaleReferenceError(spec.table, item_id)

    async def remove_image(self, url: str) -> bool:
        path = storage_path(url, self._image_bucket)
        if path is None:
            logger.info("Image URL is not in bucket %s: %s", self._image_bucket, url)
            return False
        try:
            await asyncio.to_thread(
                self._client.storage.from_(self._image_bucket).remove, [path]
            )
        except Exception as e:
            # Orphaned objects are tolerated; the row is already gone.
            logger.warning("Failed to delete image %s: %s", path, e)
            return False
        return True

    # -- Internals --

    async def _exists(self, table: str, item_id: str) -> bool:
        def _query():
            return self._client.table(table).select("id").eq("id", item_id).limit(1).execute()

        response = await self._run(_query, table, item_id)
        return bool(response.data)

    async def _run(self, query: Callable[[], Any], table: str, item_id: str | None = None):
        try:
            return await asyncio.to_thread(query)
        except APIError as e:
            raise translate_api_error(e, table, item_id) from e
        except httpx.TransportError as e:
            raise NetworkError(f"{table}: {e}", item_id=item_id) from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code >= 500:
                raise NetworkError(f"{table}: {e}", item_id=item_id) from e
            raise ValidationError(f"{table}: {e}", item_id=item_id) from e


def translate_api_error(error: APIError, table: str, item_id: str | None = None) -> SyncError:
    code = str(getattr(error, "code", "") or "")
    message = getattr(error, "message", None) or str(error)
    if code in PERMISSION_CODES:
        return PermissionDeniedError(table, item_id=item_id)
    if code in NOT_FOUND_CODES and item_id is not None:
        return StaleReferenceError(table, item_id)
    return ValidationError(message, item_id=item_id)
