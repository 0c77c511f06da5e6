"""
Error taxonomy for the grocery list service.

- ValidationError: the action is rejected before any store call (e.g. empty name).
- StorageError: the local store failed (unreachable, constraint violation, I/O).
- NetworkError: the remote import failed (transport, non-success status, bad payload).
- ConfirmationError: a delete confirmation token is unknown, expired or already used.
- NotFoundError: the targeted item is not in the list or the store.

Each error carries a short machine-readable ``code`` used in notices and API details.
"""


class GroceryError(Exception):
    """Base class for all grocery list errors."""

    code = "grocery_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(GroceryError):
    """Raised when a draft or edit fails validation (blocks the store call)."""

    code = "validation_error"


# PUBLIC_INTERFACE
class StorageError(GroceryError):
    """Raised by the persistence module when a statement fails."""

    code = "storage_error"


# PUBLIC_INTERFACE
class NetworkError(GroceryError):
    """Raised by the remote import client when fetching or parsing fails."""

    code = "network_error"


# PUBLIC_INTERFACE
class ConfirmationError(GroceryError):
    """Raised when a pending deletion token does not exist."""

    code = "confirmation_error"


# PUBLIC_INTERFACE
class NotFoundError(GroceryError):
    """Raised when an action targets an item that is not in the list or the store."""

    code = "not_found"
