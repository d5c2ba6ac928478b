"""Drag session state machine and the drop-handling boundary.

One gesture at a time: IDLE -> DRAGGING (grab) -> RESOLVING (drop or
cancel) -> IDLE (finish). ``DragController.handle_drop`` turns a completed
gesture into at most one remote write, applying the move optimistically
and rolling it back if the store rejects it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .exceptions import DragInProgressError, StaleReferenceError, SyncError
from .models import BoardItem, DragIntent, DragLocation
from .optimistic import OptimisticLedger, bucket_index, reorder, touched_ids

logger = logging.getLogger(__name__)


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESOLVING = "resolving"


class MoveOutcome(Enum):
    CANCELLED = "cancelled"
    NOOP = "noop"
    STALE = "stale"
    MOVE = "move"


@dataclass(frozen=True)
class MoveDecision:
    outcome: MoveOutcome
    item: BoardItem | None = None
    updates: dict | None = None


def resolve(intent: DragIntent, items: list[BoardItem]) -> MoveDecision:
    """Decide what a drop means. Pure; never raises for unknown ids."""
    destination = intent.destination
    if destination is None:
        return MoveDecision(MoveOutcome.CANCELLED)
    if (
        destination.bucket_id == intent.source.bucket_id
        and destination.index == intent.source.index
    ):
        return MoveDecision(MoveOutcome.NOOP)
    item = next((i for i in items if i.id == intent.draggable_id), None)
    if item is None:
        return MoveDecision(MoveOutcome.STALE)
    return MoveDecision(
        MoveOutcome.MOVE,
        item=item,
        updates={"status": destination.bucket_id, "position": destination.index},
    )


class DragSession:
    """Transient state of the single in-flight gesture."""

    def __init__(self) -> None:
        self.state = DragState.IDLE
        self.draggable_id: str | None = None
        self.source: DragLocation | None = None
        self.destination: DragLocation | None = None

    def grab(self, draggable_id: str, source: DragLocation) -> None:
        if self.state is not DragState.IDLE:
            raise DragInProgressError(self.state)
        self.state = DragState.DRAGGING
        self.draggable_id = draggable_id
        self.source = source
        self.destination = source

    def hover(self, destination: DragLocation | None) -> None:
        if self.state is DragState.DRAGGING:
            self.destination = destination

    def drop(self) -> DragIntent:
        if self.state is not DragState.DRAGGING:
            raise ValueError(f"No drag to drop (state: {self.state.value})")
        self.state = DragState.RESOLVING
        return DragIntent(self.draggable_id, self.source, self.destination)

    def cancel(self) -> DragIntent:
        """Drop outside any bucket: the intent carries no destination."""
        self.hover(None)
        return self.drop()

    def finish(self) -> None:
        self.state = DragState.IDLE
        self.draggable_id = None
        self.source = None
        self.destination = None


@dataclass
class DropResult:
    outcome: MoveOutcome
    items: list[BoardItem] = field(default_factory=list)
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.outcome is MoveOutcome.MOVE and self.error is None


class DragController:
    """Runs drops against a sync adapter with optimistic apply and rollback.

    All ``SyncError`` failures end here: a stale reference is dropped
    silently, anything else becomes ``DropResult.error``.
    """

    def __init__(self, adapter, strategy, ledger: OptimisticLedger | None = None) -> None:
        self._adapter = adapter
        self._strategy = strategy
        self.ledger = ledger or OptimisticLedger()
        self.session = DragSession()

    async def release(
        self,
        items: list[BoardItem],
        product_id: str | None = None,
        on_optimistic: Callable[[list[BoardItem]], None] | None = None,
        visible: Callable[[BoardItem], bool] | None = None,
    ) -> DropResult:
        """Drop the current gesture and resolve it, returning to IDLE."""
        intent = self.session.drop()
        try:
            return await self.handle_drop(intent, items, product_id, on_optimistic, visible)
        finally:
            self.session.finish()

    def abort(self, items: list[BoardItem]) -> DropResult:
        """Cancel the current gesture. Synchronous and local."""
        self.session.cancel()
        self.session.finish()
        return DropResult(MoveOutcome.CANCELLED, items=list(items))

    async def handle_drop(
        self,
        intent: DragIntent,
        items: list[BoardItem],
        product_id: str | None = None,
        on_optimistic: Callable[[list[BoardItem]], None] | None = None,
        visible: Callable[[BoardItem], bool] | None = None,
    ) -> DropResult:
        """Resolve one drop. With ``visible``, the destination index counts only
        the cards that predicate keeps (the filtered view the user dropped into).
        """
        decision = resolve(intent, items)
        if decision.outcome is not MoveOutcome.MOVE:
            if decision.outcome is MoveOutcome.STALE:
                logger.info("Ignoring drop of unknown item %s", intent.draggable_id)
            return DropResult(decision.outcome, items=list(items))

        item = decision.item
        bucket_id = intent.destination.bucket_id
        index = intent.destination.index
        if visible is not None:
            index = bucket_index(items, item.id, bucket_id, index, visible)
        updates = {**decision.updates, "position": index}
        self.ledger.begin(items, item.id, touched_ids(items, item.id, bucket_id))
        optimistic = reorder(items, item.id, bucket_id, index)
        if on_optimistic is not None:
            on_optimistic(optimistic)

        try:
            confirmed = await self._adapter.persist(
                item.kind, item.id, updates, expected_version=item.version
            )
        except StaleReferenceError:
            logger.info("Item %s vanished before the move was saved", item.id)
            return DropResult(MoveOutcome.STALE, items=self.ledger.rollback(optimistic, item.id))
        except SyncError as e:
            logger.warning("Move of %s %s failed: %s", item.kind.value, item.id, e)
            return DropResult(
                MoveOutcome.MOVE,
                items=self.ledger.rollback(optimistic, item.id),
                error=e.user_message,
            )

        self.ledger.commit(item.id)
        moved = next(i for i in optimistic if i.id == item.id)
        try:
            reconciled = await self._strategy.reconcile(
                self._adapter.store, product_id, optimistic, moved, confirmed,
                {item.status, bucket_id},
            )
        except SyncError as e:
            # The write landed; only the refresh failed.
            logger.warning("Board refresh after moving %s failed: %s", item.id, e)
            reconciled = optimistic
        return DropResult(MoveOutcome.MOVE, items=reconciled)
