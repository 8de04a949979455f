class InventoryError(Exception):
    """Base class for inventory operation failures. `message` is safe to show to users."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """A required field is missing or invalid; nothing was written."""


class InsufficientStockError(InventoryError):
    """A consume asked for more than the item holds; nothing was written."""


class NotFoundError(InventoryError):
    """The target item is no longer in the store."""


class ConflictError(InventoryError):
    """The write would collide with an existing row."""


class StoreWriteError(InventoryError):
    """The database rejected the write; the transaction was rolled back."""
