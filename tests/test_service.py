"""Tests for BoardService against the in-memory store."""

import asyncio

import pytest

from fluxr.board.drag import MoveOutcome
from fluxr.board.exceptions import ItemNotFoundError, NetworkError, ProductNotFoundError
from fluxr.board.models import DragLocation, ItemKind
from fluxr.board.service import BoardService
from fluxr.config import BoardConfig

IMAGE_URL = "https://abc.supabase.co/storage/v1/object/public/screenshots/f1.png"


@pytest.fixture
def seeded(store, product_id):
    store.seed(ItemKind.FEATURE, {
        "id": "f1", "product_id": product_id, "name": "Login", "priority": "must-have",
        "implementation_status": "not_started", "position": 0, "screenshot_url": IMAGE_URL,
    })
    store.seed(ItemKind.FEATURE, {
        "id": "f2", "product_id": product_id, "name": "Billing",
        "implementation_status": "not_started", "position": 1,
    })
    store.seed(ItemKind.BUG, {
        "id": "b1", "product_id": product_id, "name": "Crash",
        "status": "in_progress", "position": 0,
    })
    store.seed(ItemKind.TASK, {
        "id": "t1", "product_id": product_id, "name": "Docs",
        "status": "completed", "position": 0,
    })
    store.seed(ItemKind.PAGE, {
        "id": "pg1", "product_id": product_id, "name": "Home",
        "implementation_status": "in_progress",
    })
    return store


@pytest.fixture
async def service(seeded, config):
    svc = BoardService(seeded, config)
    await svc.load("acme", "user-1")
    return svc


class TestLoad:
    async def test_loads_all_kinds(self, service):
        assert [i.id for i in service.items] == ["f1", "f2", "pg1", "b1", "t1"]
        assert service.product_id == "p-1"

    async def test_unknown_product(self, seeded):
        with pytest.raises(ProductNotFoundError, match="Product not found: nope"):
            await BoardService(seeded).load("nope", "user-1")

    async def test_columns(self, service):
        columns = service.columns()
        assert [i.id for i in columns["not_started"]] == ["f1", "f2"]
        assert {i.id for i in columns["in_progress"]} == {"b1", "pg1"}

    async def test_columns_apply_filters(self, service):
        service.filters.toggle_type("bug")
        assert [i.id for i in service.visible_items()] == ["b1"]

    async def test_location_of(self, service):
        assert service.location_of("f2") == DragLocation("not_started", 1)

    async def test_get_unknown(self, service):
        with pytest.raises(ItemNotFoundError):
            service.get("ghost")


class TestAddItem:
    async def test_feature_defaults(self, service, seeded):
        item = await service.add_item(ItemKind.FEATURE, "Search")
        assert item.status == "not_started"
        assert item.effective_priority == "not-prioritized"
        assert item.position == 2
        row = seeded.row(ItemKind.FEATURE, item.id)
        assert row["implementation_status"] == "not_started"
        assert row["product_id"] == "p-1"
        assert service.items[-1].id == item.id

    async def test_bug_uses_status_column(self, service, seeded):
        item = await service.add_item(ItemKind.BUG, "Typo", priority="nice-to-have")
        row = seeded.row(ItemKind.BUG, item.id)
        assert row["status"] == "not_started"
        assert row["priority"] == "nice-to-have"
        assert row["position"] == 1

    async def test_page_has_no_position(self, service, seeded):
        item = await service.add_item(ItemKind.PAGE, "Settings")
        assert "position" not in seeded.row(ItemKind.PAGE, item.id)

    async def test_requires_loaded_product(self, seeded):
        with pytest.raises(ProductNotFoundError):
            await BoardService(seeded).add_item(ItemKind.TASK, "x")


class TestUpdateAndDelete:
    async def test_update_item(self, service, seeded):
        updated = await service.update_item("b1", name="Crash on save", priority="must-have")
        assert updated.name == "Crash on save"
        assert seeded.row(ItemKind.BUG, "b1")["priority"] == "must-have"
        assert service.get("b1").name == "Crash on save"

    async def test_update_unknown_field(self, service):
        with pytest.raises(ValueError, match="Unknown item field: owner"):
            await service.update_item("b1", owner="me")

    async def test_delete_removes_image(self, service, seeded):
        await service.delete_item("f1")
        assert seeded.row(ItemKind.FEATURE, "f1") is None
        assert seeded.removed_images == [IMAGE_URL]
        assert "f1" not in {i.id for i in service.items}

    async def test_delete_without_image(self, service, seeded):
        await service.delete_item("t1")
        assert seeded.removed_images == []

    async def test_delete_unknown(self, service):
        with pytest.raises(ItemNotFoundError):
            await service.delete_item("ghost")

    async def test_delete_of_vanished_row_drops_card(self, service, seeded):
        await seeded.delete(ItemKind.FEATURE, "f1")

        await service.delete_item("f1")

        assert "f1" not in {i.id for i in service.items}
        assert seeded.removed_images == []


class TestMoves:
    async def test_move_item(self, service, seeded):
        result = await service.move_item("f2", "completed", 0)
        assert result.changed
        assert seeded.row(ItemKind.FEATURE, "f2")["implementation_status"] == "completed"
        assert [i.id for i in service.columns()["completed"]] == ["f2", "t1"]

    async def test_unknown_item_is_silent(self, service, seeded):
        result = await service.move_item("ghost", "completed", 0)
        assert result.outcome is MoveOutcome.STALE
        assert seeded.writes() == []

    async def test_failure_sets_last_error(self, service, seeded):
        seeded.fail_next(NetworkError("down"), "update")
        seeded.fail_next(NetworkError("down"), "update")
        seeded.fail_next(NetworkError("down"), "update")
        result = await service.move_item("f1", "in_progress", 0)
        assert service.last_error == result.error
        assert service.get("f1").status == "not_started"

    async def test_concurrent_moves_both_land(self, service, seeded):
        await asyncio.gather(
            service.move_item("f1", "in_progress", 0),
            service.move_item("t1", "not_started", 0),
        )
        assert service.get("f1").status == "in_progress"
        assert service.get("t1").status == "not_started"
        assert seeded.row(ItemKind.TASK, "t1")["status"] == "not_started"

    async def test_gesture(self, service, seeded):
        source = service.grab("f1")
        assert source == DragLocation("not_started", 0)
        service.hover(DragLocation("completed", 1))
        result = await service.release()
        assert result.changed
        assert service.location_of("f1") == DragLocation("completed", 1)

    async def test_abort_gesture(self, service, seeded):
        service.grab("f1")
        result = service.abort()
        assert result.outcome is MoveOutcome.CANCELLED
        assert seeded.writes() == []


class TestFilteredMoves:
    @pytest.fixture
    async def mixed(self, store, product_id, config):
        for i, (kind, item_id) in enumerate([
            (ItemKind.FEATURE, "f1"), (ItemKind.FEATURE, "f2"),
            (ItemKind.BUG, "b1"), (ItemKind.BUG, "b2"),
        ]):
            status_key = "implementation_status" if kind is ItemKind.FEATURE else "status"
            store.seed(kind, {
                "id": item_id, "product_id": product_id, "name": item_id,
                status_key: "not_started", "position": i,
            })
        svc = BoardService(store, config)
        await svc.load("acme", "user-1")
        return svc

    async def test_drop_lands_where_the_filtered_view_shows_it(self, mixed, store):
        mixed.filters.toggle_type("bug")
        assert mixed.location_of("b1") == DragLocation("not_started", 0)

        mixed.grab("b1")
        mixed.hover(DragLocation("not_started", 1))
        result = await mixed.release()

        assert result.changed
        assert [i.id for i in mixed.columns()["not_started"]] == ["b2", "b1"]
        assert store.row(ItemKind.BUG, "b1")["position"] == 3

    async def test_drop_to_top_of_filtered_bucket(self, mixed, store):
        mixed.filters.toggle_type("bug")

        result = await mixed.move_item("b2", "not_started", 0)

        assert result.changed
        assert [i.id for i in mixed.columns()["not_started"]] == ["b2", "b1"]
        mixed.filters.clear()
        assert [i.id for i in mixed.columns()["not_started"]] == ["b2", "f1", "f2", "b1"]

    async def test_unfiltered_index_is_unchanged(self, mixed, store):
        await mixed.move_item("f1", "not_started", 2)
        assert [i.id for i in mixed.columns()["not_started"]] == ["f2", "b1", "f1", "b2"]
        assert store.row(ItemKind.FEATURE, "f1")["position"] == 2


class TestImportGenerated:
    async def test_inserts_features(self, service, seeded):
        rows = [
            {"name": "A", "description": "", "priority": "must-have",
             "implementation_status": "not_started", "position": 0},
            {"name": "B", "description": "", "priority": "nice-to-have",
             "implementation_status": "not_started", "position": 1000},
        ]
        created = await service.import_generated(rows)
        assert [i.name for i in created] == ["A", "B"]
        assert all(i.kind is ItemKind.FEATURE for i in created)
        assert len(seeded.writes()) == 2


class TestResyncConfig:
    async def test_resync_strategy_reads_back_buckets(self, seeded):
        service = BoardService(seeded, BoardConfig(sync_strategy="resync_bucket", retry_delay_seconds=0.0))
        await service.load("acme", "user-1")
        await service.move_item("f1", "completed", 0)
        assert service.get("f1").status == "completed"
        assert {i.id for i in service.items} == {"f1", "f2", "b1", "t1", "pg1"}
