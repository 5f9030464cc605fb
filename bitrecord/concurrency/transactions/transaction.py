import itertools
import logging
import threading
from enum import Enum
from typing import Callable, Mapping, MutableMapping, Optional

from ...core.exceptions import TransactionStateError

logger = logging.getLogger(__name__)

PageTable = MutableMapping[int, MutableMapping[int, int]]


class TransactionState(Enum):
    """States a write buffer can be in during its lifecycle."""
    CREATED = "CREATED"
    ACTIVE = "ACTIVE"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"


class Transaction:
    """
    Staged page writes for a single call.

    Every mutating call collects its page writes here instead of touching
    the record store. Only when all of the call's preconditions passed are
    the staged words copied into the store by commit(); any failure calls
    abort() and the store is left exactly as it was.

    Write Set:
    ------------------------------------------------------------
    (record_id, page) -> word     last staged value wins
    ------------------------------------------------------------

    Used as a context manager the buffer starts on entry, commits on a
    clean exit and aborts (re-raising) when the body raises.
    """

    _ids = itertools.count(1)
    _ids_lock = threading.Lock()

    def __init__(self, store: PageTable,
                 on_commit: Optional[Callable[[int], None]] = None):
        """
        Args:
            store: The record table the writes will be applied to on commit
            on_commit: Optional callback given the number of committed page writes
        """
        with Transaction._ids_lock:
            self.tid = next(Transaction._ids)
        self.state = TransactionState.CREATED
        self._store = store
        self._on_commit = on_commit
        self._writes: dict[tuple[int, int], int] = {}
        self._lock = threading.RLock()

    def start(self) -> None:
        with self._lock:
            if self.state != TransactionState.CREATED:
                raise TransactionStateError(
                    f"Cannot start transaction in state {self.state.value}")
            self.state = TransactionState.ACTIVE

    def is_active(self) -> bool:
        return self.state == TransactionState.ACTIVE

    def stage_write(self, record_id: int, page: int, word: int) -> None:
        """Buffer one page word; nothing is visible until commit()."""
        with self._lock:
            if self.state != TransactionState.ACTIVE:
                raise TransactionStateError(
                    f"Cannot stage writes in state {self.state.value}")
            self._writes[(record_id, page)] = word

    def staged_writes(self) -> Mapping[tuple[int, int], int]:
        with self._lock:
            return dict(self._writes)

    def commit(self) -> int:
        """
        Apply every staged write to the store.

        Returns:
            Number of page words written
        """
        with self._lock:
            if self.state != TransactionState.ACTIVE:
                raise TransactionStateError(
                    f"Cannot commit transaction in state {self.state.value}")

            for (record_id, page), word in self._writes.items():
                self._store.setdefault(record_id, {})[page] = word

            count = len(self._writes)
            self.state = TransactionState.COMMITTED
            logger.debug("Transaction %d committed %d page write(s)", self.tid, count)

            if self._on_commit is not None:
                self._on_commit(count)
            return count

    def abort(self, reason: str = "Explicit abort requested") -> None:
        """Discard every staged write. Aborting a finished transaction is a no-op."""
        with self._lock:
            if self.state in (TransactionState.COMMITTED, TransactionState.ABORTED):
                return
            discarded = len(self._writes)
            self._writes.clear()
            self.state = TransactionState.ABORTED
            logger.debug("Transaction %d aborted, discarded %d staged write(s): %s",
                         self.tid, discarded, reason)

    def get_statistics(self) -> dict:
        with self._lock:
            return {
                'transaction_id': self.tid,
                'state': self.state.value,
                'staged_writes': len(self._writes),
            }

    def __str__(self) -> str:
        return f"Transaction({self.tid}, state={self.state.value})"

    def __repr__(self) -> str:
        return self.__str__()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.abort(f"Exception occurred: {exc_val}")
        return False
