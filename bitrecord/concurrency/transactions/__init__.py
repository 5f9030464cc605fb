"""Staged write buffers giving every call all-or-nothing semantics."""

from .transaction import Transaction, TransactionState

__all__ = ["Transaction", "TransactionState"]
