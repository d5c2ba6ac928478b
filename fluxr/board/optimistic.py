"""Optimistic local updates with snapshot rollback.

A move is applied to the local item list before the store confirms it.
The ledger remembers the last committed version of every item the move
touched, so a failed write can put the board back exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

from .models import BoardItem


class MutationState(Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class Mutation:
    item_id: str
    snapshot: dict[str, BoardItem] = field(default_factory=dict)
    state: MutationState = MutationState.PENDING


def bucket_of(items: list[BoardItem], status: str, exclude: str | None = None) -> list[BoardItem]:
    return sorted(
        (i for i in items if i.status == status and i.id != exclude),
        key=lambda i: i.position,
    )


def reorder(items: list[BoardItem], item_id: str, bucket_id: str, index: int) -> list[BoardItem]:
    """Move ``item_id`` to ``bucket_id`` at ``index`` and renumber both buckets.

    Returns a new list; the input items are not mutated. Positions become a
    dense 0..n-1 sequence across kinds within each affected bucket.
    """
    moved = next(i for i in items if i.id == item_id)
    destination = bucket_of(items, bucket_id, exclude=item_id)
    index = max(0, min(index, len(destination)))
    destination.insert(index, replace(moved, status=bucket_id))

    updated: dict[str, BoardItem] = {}
    for pos, item in enumerate(destination):
        updated[item.id] = replace(item, position=pos)
    if moved.status != bucket_id:
        for pos, item in enumerate(bucket_of(items, moved.status, exclude=item_id)):
            updated[item.id] = replace(item, position=pos)

    return [updated.get(i.id, i) for i in items]


def bucket_index(
    items: list[BoardItem],
    item_id: str,
    bucket_id: str,
    index: int,
    visible: Callable[[BoardItem], bool],
) -> int:
    """Translate an index among the visible cards of a bucket to one in the whole bucket.

    The card lands just after the visible card above the drop point, or at
    the top of the bucket when there is none. Without hidden cards the
    index comes back unchanged.
    """
    destination = bucket_of(items, bucket_id, exclude=item_id)
    shown = [i for i in destination if visible(i)]
    index = max(0, min(index, len(shown)))
    if index == 0:
        return 0
    return destination.index(shown[index - 1]) + 1


def touched_ids(items: list[BoardItem], item_id: str, bucket_id: str) -> set[str]:
    """Ids whose position may change when ``item_id`` moves to ``bucket_id``."""
    moved = next(i for i in items if i.id == item_id)
    return {i.id for i in items if i.status in (moved.status, bucket_id)}


class OptimisticLedger:
    def __init__(self) -> None:
        self._mutations: dict[str, Mutation] = {}

    def begin(self, items: list[BoardItem], item_id: str, ids: set[str]) -> Mutation:
        snapshot = {i.id: i for i in items if i.id in ids}
        mutation = Mutation(item_id=item_id, snapshot=snapshot)
        self._mutations[item_id] = mutation
        return mutation

    def commit(self, item_id: str) -> None:
        mutation = self._mutations.get(item_id)
        if mutation is not None:
            mutation.state = MutationState.COMMITTED
            mutation.snapshot = {}

    def rollback(self, items: list[BoardItem], item_id: str) -> list[BoardItem]:
        """Reducer: restore every snapshotted item. Unknown ids are a no-op."""
        mutation = self._mutations.get(item_id)
        if mutation is None or mutation.state is not MutationState.PENDING:
            return list(items)
        restored = [mutation.snapshot.get(i.id, i) for i in items]
        present = {i.id for i in items}
        restored.extend(s for sid, s in mutation.snapshot.items() if sid not in present)
        mutation.state = MutationState.ROLLED_BACK
        return restored

    def state(self, item_id: str) -> MutationState | None:
        mutation = self._mutations.get(item_id)
        return mutation.state if mutation else None

    def pending(self) -> list[str]:
        return [m.item_id for m in self._mutations.values() if m.state is MutationState.PENDING]
