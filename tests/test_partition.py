"""Tests for splitting items into columns."""

import pytest

from fluxr.board.filters import FilterState
from fluxr.board.models import BoardItem, ItemKind
from fluxr.board.partition import matches, partition, visible_items


def _item(item_id, kind, status="not_started", position=0, priority=None, name="", description=""):
    return BoardItem(
        id=item_id, name=name or item_id, kind=kind, status=status,
        position=position, priority=priority, description=description,
    )


@pytest.fixture
def items():
    return [
        _item("f1", ItemKind.FEATURE, position=1, priority="must-have"),
        _item("f2", ItemKind.FEATURE, status="in_progress"),
        _item("b1", ItemKind.BUG, position=0, priority="nice-to-have"),
        _item("t1", ItemKind.TASK, status="completed"),
        _item("p1", ItemKind.PAGE, status="in_progress", name="Settings page"),
        _item("x1", ItemKind.TASK, status="archived"),
    ]


class TestPartition:
    def test_every_column_present(self):
        assert set(partition([])) == {"not_started", "in_progress", "completed"}

    def test_buckets_by_status_sorted_by_position(self, items):
        columns = partition(items)
        assert [i.id for i in columns["not_started"]] == ["b1", "f1"]
        assert [i.id for i in columns["in_progress"]] == ["f2", "p1"]
        assert [i.id for i in columns["completed"]] == ["t1"]

    def test_unknown_status_is_left_out(self, items):
        ids = {i.id for bucket in partition(items).values() for i in bucket}
        assert "x1" not in ids

    def test_type_filter_only_bugs(self, items):
        columns = partition(items, FilterState(types={"bug"}))
        kinds = {i.kind for bucket in columns.values() for i in bucket}
        assert kinds == {ItemKind.BUG}

    def test_filters_combine_with_and(self, items):
        filters = FilterState(types={"feature"}, priorities={"must-have"})
        columns = partition(items, filters)
        assert [i.id for bucket in columns.values() for i in bucket] == ["f1"]

    def test_missing_priority_matches_not_prioritized(self, items):
        columns = partition(items, FilterState(priorities={"not-prioritized"}))
        ids = {i.id for bucket in columns.values() for i in bucket}
        assert ids == {"f2", "t1", "p1"}

    def test_does_not_mutate_input(self, items):
        before = [(i.id, i.status, i.position) for i in items]
        partition(items, FilterState(types={"task"}))
        assert [(i.id, i.status, i.position) for i in items] == before


class TestMatches:
    def test_item_without_kind_counts_as_feature(self):
        legacy = _item("old", None)
        assert matches(legacy, FilterState(types={"feature"}))
        assert not matches(legacy, FilterState(types={"bug"}))

    def test_search_is_case_insensitive(self):
        item = _item("f1", ItemKind.FEATURE, name="Login Flow", description="OAuth support")
        assert matches(item, FilterState(search="login"))
        assert matches(item, FilterState(search="OAUTH"))
        assert not matches(item, FilterState(search="billing"))

    def test_no_filters(self, items):
        assert visible_items(items) == items
