"""Board and sync exception types."""


class SyncError(Exception):
    """Base for failures talking to the remote store."""

    user_message = "Something went wrong while saving. Please try again."

    def __init__(self, message: str, item_id: str | None = None):
        self.item_id = item_id
        super().__init__(message)


class NetworkError(SyncError):
    """Transient transport failure. Safe to retry."""

    user_message = "Network error. Please check your connection and try again."


class ValidationError(SyncError):
    """The store rejected the write. The message is shown as-is."""

    @property
    def user_message(self) -> str:
        return str(self)


class PermissionDeniedError(ValidationError):
    """Row-level security rejected the write."""

    def __init__(self, table: str, item_id: str | None = None):
        self.table = table
        super().__init__(
            f"You don't have permission to change this item in {table}",
            item_id=item_id,
        )


class StaleReferenceError(SyncError):
    """The target row vanished between read and write."""

    def __init__(self, table: str, item_id: str):
        self.table = table
        super().__init__(f"Row {item_id} no longer exists in {table}", item_id=item_id)


NotFoundError = StaleReferenceError


class VersionConflictError(SyncError):
    """The row changed elsewhere since it was read."""

    user_message = "This item was changed somewhere else. Refresh the board and try again."

    def __init__(self, table: str, item_id: str, expected_version: int):
        self.table = table
        self.expected_version = expected_version
        super().__init__(
            f"Row {item_id} in {table} is no longer at version {expected_version}",
            item_id=item_id,
        )


class ProductNotFoundError(Exception):
    """Raised when a product slug does not resolve for the current user."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Product not found: {slug}")


class ItemNotFoundError(KeyError):
    """Raised when an operation names an item the board does not hold."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class DragInProgressError(Exception):
    """Raised when a second gesture starts before the first one resolved."""

    def __init__(self, state):
        self.state = state
        super().__init__(f"Cannot start a drag while {state.value}")
