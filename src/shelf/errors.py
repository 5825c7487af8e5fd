"""Error taxonomy for the record store.

Storage, search and validation failures are subclasses of ShelfError.
Nothing in the core retries; the CLI reports the error and exits.
"""

from __future__ import annotations

from enum import StrEnum


class ShelfError(Exception):
    """Base class for all record store errors."""


class StorageUnavailable(ShelfError):
    """The storage engine could not be opened; no operation can proceed."""


class StorageReadError(ShelfError):
    """A read against the store failed."""


class StorageWriteError(ShelfError):
    """A write against the store failed and was rolled back."""


class RecordNotFound(ShelfError):
    """No record exists with the requested identifier."""

    def __init__(self, key: int) -> None:
        super().__init__(f"Record {key} not found")
        self.key = key


class IndexNotFound(ShelfError):
    """The requested index is not provisioned on the store."""

    def __init__(self, store_name: str, index_name: str) -> None:
        super().__init__(f"Store '{store_name}' has no index named '{index_name}'")
        self.store_name = store_name
        self.index_name = index_name


class InvalidSearchField(ShelfError):
    """A search was requested on a field that is not a search field."""

    def __init__(self, field: str, search_fields: list[str]) -> None:
        available = ", ".join(search_fields)
        super().__init__(f"'{field}' is not searchable. Available: {available}")
        self.field = field


class ValidationReason(StrEnum):
    """Why a record or snapshot was rejected."""

    MISSING_REQUIRED = "missing_required"
    DATE_OUT_OF_RANGE = "date_out_of_range"
    INVALID_NUMBER = "invalid_number"
    INVALID_DATE = "invalid_date"
    NOT_A_SEQUENCE = "not_a_sequence"


_REASON_MESSAGES = {
    ValidationReason.MISSING_REQUIRED: "is required",
    ValidationReason.DATE_OUT_OF_RANGE: "is after the latest allowed date",
    ValidationReason.INVALID_NUMBER: "is not a number",
    ValidationReason.INVALID_DATE: "is not a valid date",
    ValidationReason.NOT_A_SEQUENCE: "must be a list of records",
}


class RecordValidationError(ShelfError):
    """Raised when user input or an import snapshot fails validation.

    Attributes:
        field: Offending field name, or None for whole-snapshot failures.
        reason: Machine-readable reason.
    """

    def __init__(
        self,
        reason: ValidationReason,
        field: str | None = None,
        detail: str | None = None,
    ) -> None:
        subject = f"Field '{field}'" if field else "Import data"
        message = f"{subject} {_REASON_MESSAGES[reason]}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.field = field
        self.reason = reason
