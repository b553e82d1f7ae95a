ERROR_MESSAGES = {
    "REQUIRED_FIELD": "This field is required",
    "INVALID_AMOUNT": "Please enter a valid amount",
    "AMOUNT_TOO_SMALL": "Amount must be greater than 0",
    "AMOUNT_TOO_LARGE": "Amount is too large",
    "INVALID_DATE": "Please select a valid date",
    "INVALID_TYPE": "Type must be either expense or income",
    "DESCRIPTION_TOO_SHORT": "Description must be at least 3 characters",
    "DESCRIPTION_TOO_LONG": "Description cannot exceed 100 characters",
    "STORAGE_SAVE_FAILED": "Failed to save data",
    "STORAGE_LOAD_FAILED": "Failed to load data",
    "STORAGE_DELETE_FAILED": "Failed to delete data",
    "TRANSACTION_NOT_FOUND": "Transaction not found",
    "TRANSACTION_ADD_FAILED": "Failed to add transaction",
    "TRANSACTION_UPDATE_FAILED": "Failed to update transaction",
    "TRANSACTION_DELETE_FAILED": "Failed to delete transaction",
    "TRANSACTION_LOAD_FAILED": "Failed to load transactions",
    "UNKNOWN_ERROR": "An unexpected error occurred",
}


class LedgerError(Exception):
    """Base class for errors raised by the ledger engine."""


class ValidationError(LedgerError, ValueError):
    """A field failed one of its validation rules.

    ``field`` names the first offending field; ``errors`` maps every reported
    field to its ordered list of messages.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ):
        super().__init__(message)
        self.field = field
        if errors is None:
            errors = {field: [message]} if field else {}
        self.errors = errors


class NotFoundError(LedgerError, LookupError):
    pass


class StorageError(LedgerError):
    """Raised by a key-value backend when a read or write cannot complete."""


class PersistenceError(LedgerError):
    """A repository write did not reach storage."""
