"""Tests for FilterState toggles."""

from fluxr.board.filters import FilterState
from fluxr.board.models import ItemKind, Priority


class TestToggle:
    def test_toggle_type_is_self_inverse(self):
        filters = FilterState(types={"bug"})
        filters.toggle_type("feature")
        filters.toggle_type("feature")
        assert filters.types == {"bug"}

    def test_toggle_adds_then_removes(self):
        filters = FilterState()
        filters.toggle_type(ItemKind.TASK)
        assert filters.types == {"task"}
        filters.toggle_type(ItemKind.TASK)
        assert filters.types == set()

    def test_toggle_priority_accepts_enum_and_str(self):
        filters = FilterState()
        filters.toggle_priority(Priority.MUST_HAVE)
        filters.toggle_priority("nice-to-have")
        assert filters.priorities == {"must-have", "nice-to-have"}
        filters.toggle_priority("must-have")
        assert filters.priorities == {"nice-to-have"}


class TestCountAndClear:
    def test_active_filter_count(self):
        filters = FilterState(types={"bug", "task"}, priorities={"must-have"})
        assert filters.active_filter_count == 3

    def test_search_does_not_count(self):
        filters = FilterState(search="login")
        assert filters.active_filter_count == 0
        assert not filters.is_empty

    def test_clear(self):
        filters = FilterState(types={"bug"}, priorities={"must-have"}, search="x")
        filters.clear()
        assert filters.types == set()
        assert filters.priorities == set()
        assert filters.search == ""
        assert filters.is_empty

    def test_set_search_none(self):
        filters = FilterState()
        filters.set_search(None)
        assert filters.search == ""
