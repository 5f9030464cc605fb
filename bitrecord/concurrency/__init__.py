from .transactions import Transaction, TransactionState

__all__ = ["Transaction", "TransactionState"]
