"""Custom exceptions for the record store."""
from typing import Optional


class BitRecordException(Exception):
    """Base exception for record store errors."""
    pass


class AuthorizationError(BitRecordException):
    """Raised when a caller's permission level is too low for an operation."""

    def __init__(self, message: str, required=None, actual=None):
        super().__init__(message)
        self.required = required
        self.actual = actual


class AlreadyInitializedError(BitRecordException):
    """Raised on a second initialization of a collection or domain."""
    pass


class NotInitializedError(BitRecordException):
    """Raised when a collection or domain is used before initialization."""
    pass


class InvalidWidthError(BitRecordException):
    """Raised when a field width is not a supported power of two."""

    def __init__(self, message: str, width=None):
        super().__init__(message)
        self.width = width


class RecordNotFoundError(BitRecordException):
    """Raised when a record id is outside [0, record_count)."""
    pass


class UnknownCollectionError(BitRecordException):
    """Raised when a collection id is not registered in the domain."""
    pass


class FieldNotFoundError(BitRecordException):
    """Raised when a field index is outside the collection's field list."""
    pass


class ValueOverflowError(BitRecordException):
    """Raised when a value does not fit in its field's bit width."""

    def __init__(self, message: str, value: Optional[int] = None, width: Optional[int] = None):
        super().__init__(message)
        self.value = value
        self.width = width


class ArityError(BitRecordException):
    """Raised when a multimod call has mismatched or too few entries."""
    pass


class DuplicateFieldError(BitRecordException):
    """Raised when a multimod call names the same field twice."""
    pass


class TransactionStateError(BitRecordException):
    """Raised when a write buffer is used outside its active state."""
    pass


class SnapshotError(BitRecordException):
    """Raised when a domain snapshot cannot be saved or loaded."""
    pass
