"""Type/priority facets and search query for the visible board."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


def _value(facet) -> str:
    return facet.value if isinstance(facet, Enum) else str(facet)


@dataclass
class FilterState:
    """Active facets. Empty sets mean "no filter"; never persisted."""

    types: set[str] = field(default_factory=set)
    priorities: set[str] = field(default_factory=set)
    search: str = ""

    def toggle_type(self, kind) -> None:
        self.types ^= {_value(kind)}

    def toggle_priority(self, priority) -> None:
        self.priorities ^= {_value(priority)}

    def set_search(self, query: str) -> None:
        self.search = query or ""

    def clear(self) -> None:
        self.types = set()
        self.priorities = set()
        self.search = ""

    @property
    def active_filter_count(self) -> int:
        return len(self.types) + len(self.priorities)

    @property
    def is_empty(self) -> bool:
        return not self.types and not self.priorities and not self.search.strip()
