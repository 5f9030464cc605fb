from .exceptions import (
    BitRecordException,
    AuthorizationError,
    AlreadyInitializedError,
    NotInitializedError,
    InvalidWidthError,
    RecordNotFoundError,
    UnknownCollectionError,
    FieldNotFoundError,
    ValueOverflowError,
    ArityError,
    DuplicateFieldError,
    TransactionStateError,
    SnapshotError,
)
from .types import FieldWidth

__all__ = [
    "BitRecordException",
    "AuthorizationError",
    "AlreadyInitializedError",
    "NotInitializedError",
    "InvalidWidthError",
    "RecordNotFoundError",
    "UnknownCollectionError",
    "FieldNotFoundError",
    "ValueOverflowError",
    "ArityError",
    "DuplicateFieldError",
    "TransactionStateError",
    "SnapshotError",
    "FieldWidth",
]
