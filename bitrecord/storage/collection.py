import logging
import threading
from typing import Iterable, Sequence

from ..concurrency.transactions import Transaction
from ..core.exceptions import (
    ArityError,
    DuplicateFieldError,
    FieldNotFoundError,
    NotInitializedError,
    RecordNotFoundError,
)
from ..core.types import FieldWidth
from ..primitives import FieldOffset
from . import page_packer
from .field_layout import FieldLayout, PageInfo
from .interfaces import RecordCollection
from .utilities import check_fits

logger = logging.getLogger(__name__)


class Collection(RecordCollection):
    """
    An independently growable set of same-shaped packed records.

    A collection owns:
    1. A FieldLayout (append-only list of field widths)
    2. A record count; ids 0..record_count-1 are valid
    3. A page table: record id -> page index -> page word

    Records are created zeroed by push() without writing anything; a page
    word only appears in the table once a field on it has been written.

    All public operations run under one re-entrant lock, so concurrent
    callers are serialized per collection. Mutations stage their page
    writes in a Transaction and commit only after every check passed.
    """

    def __init__(self, collection_id: int = 0):
        self.collection_id = collection_id
        self.layout = FieldLayout()
        self._record_count = 0
        self._records: dict[int, dict[int, int]] = {}
        self._page_writes = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def initialize(self, widths: Iterable) -> None:
        with self._lock:
            self.layout.initialize(widths)
            logger.info("Collection %s initialized with %d field(s)",
                        self.collection_id, len(self.layout))

    def is_initialized(self) -> bool:
        return self.layout.is_initialized()

    def append_field(self, width) -> int:
        with self._lock:
            index = self.layout.append_field(width)
            logger.info("Collection %s gained field %d (%s)",
                        self.collection_id, index, self.layout.get_width(index))
            return index

    def resolve_offset(self, field_index: int) -> FieldOffset:
        with self._lock:
            return self.layout.resolve_offset(field_index)

    def get_widths(self) -> tuple[FieldWidth, ...]:
        return self.layout.widths

    def describe(self) -> list[PageInfo]:
        with self._lock:
            return self.layout.describe()

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def push(self) -> int:
        with self._lock:
            self._require_initialized()
            record_id = self._record_count
            self._record_count += 1
            return record_id

    def get_record_count(self) -> int:
        return self._record_count

    def get_page_words(self, record_id: int) -> dict[int, int]:
        """Copy of the stored page words of a record (unwritten pages absent)."""
        with self._lock:
            self._check_record(record_id)
            return dict(self._records.get(record_id, {}))

    def unpack(self, record_id: int) -> list[int]:
        with self._lock:
            self._check_record(record_id)
            return page_packer.unpack(self.layout.widths, self._records.get(record_id, {}))

    def read_field(self, record_id: int, field_index: int) -> int:
        with self._lock:
            self._check_record(record_id)
            return page_packer.unpack_field(
                self.layout.widths, self._records.get(record_id, {}), field_index)

    def pack_single(self, record_id: int, field_index: int, new_value: int) -> tuple[int, int]:
        """
        Compute the rewritten page for a single-field update without storing it.

        Returns:
            (page, word) for the one page holding field_index
        """
        with self._lock:
            self._check_record(record_id)
            return page_packer.pack_single(
                self.layout.widths, self._records.get(record_id, {}),
                field_index, new_value)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def modify(self, record_id: int, field_index: int, new_value: int) -> list[int]:
        """
        Overwrite one field of a record.

        Returns:
            The single page index written

        Raises:
            RecordNotFoundError: If record_id >= record_count
            FieldNotFoundError: If field_index is out of range
            ValueOverflowError: If new_value does not fit the field's width
        """
        with self._lock:
            page, word = self.pack_single(record_id, field_index, new_value)
            with self._begin() as txn:
                txn.stage_write(record_id, page, word)
            return [page]

    def multimod(self, record_id: int, field_indices: Sequence[int],
                 new_values: Sequence[int]) -> list[int]:
        """
        Atomically overwrite several fields of one record.

        Only the pages that hold at least one modified field are rebuilt,
        each from the full patched value vector, so the number of page
        writes equals the number of distinct touched pages.

        Process:
        1. Arity: same number of indices and values, at least two
        2. Sort (index, value) pairs by index
        3. Reject out-of-range and duplicate indices
        4. Validate every value against its field's mask
        5. Unpack the record once and patch the values in memory
        6. Rebuild and stage each touched page, then commit

        Returns:
            The page indices written, ascending

        Raises:
            ArityError: On mismatched lengths or fewer than two entries
            RecordNotFoundError: If record_id >= record_count
            FieldNotFoundError: If an index is outside the field list
            DuplicateFieldError: If an index appears twice
            ValueOverflowError: On the first value that does not fit
        """
        field_indices = list(field_indices)
        new_values = list(new_values)
        if len(field_indices) != len(new_values):
            raise ArityError(
                f"Got {len(field_indices)} field indices but {len(new_values)} values")
        if len(field_indices) < 2:
            raise ArityError(
                f"multimod needs at least 2 fields, got {len(field_indices)}; use modify")

        with self._lock:
            self._check_record(record_id)
            widths = self.layout.widths

            pairs = sorted(zip(field_indices, new_values), key=lambda pair: pair[0])
            indices = [index for index, _ in pairs]

            if indices[0] < 0 or indices[-1] >= len(widths):
                bad = indices[0] if indices[0] < 0 else indices[-1]
                raise FieldNotFoundError(
                    f"Field index {bad} out of range [0, {len(widths)})")
            for previous, current in zip(indices, indices[1:]):
                if previous == current:
                    raise DuplicateFieldError(
                        f"Field index {current} given more than once")

            for index, value in pairs:
                check_fits(value, widths[index])

            values = page_packer.unpack(widths, self._records.get(record_id, {}))
            for index, value in pairs:
                values[index] = value

            pages = self.layout.touched_pages(indices)
            with self._begin() as txn:
                for page in pages:
                    txn.stage_write(record_id, page,
                                    page_packer.pack_page(widths, values, page))
            return pages

    # ------------------------------------------------------------------
    # Diagnostics and conversion
    # ------------------------------------------------------------------

    def get_statistics(self) -> dict:
        with self._lock:
            return {
                'collection_id': self.collection_id,
                'field_count': len(self.layout),
                'page_count': self.layout.page_count(),
                'record_count': self._record_count,
                'page_writes': self._page_writes,
            }

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "fields": [w.bits for w in self.layout.widths],
                "record_count": self._record_count,
                "records": {
                    str(record_id): {str(page): hex(word) for page, word in pages.items()}
                    for record_id, pages in self._records.items()
                },
            }

    @classmethod
    def from_dict(cls, data: dict, collection_id: int = 0) -> 'Collection':
        collection = cls(collection_id)
        collection.load_dict(data)
        return collection

    def load_dict(self, data: dict) -> None:
        """
        Populate an empty collection from a to_dict() snapshot.

        Every stored word must fit inside the bits its page's fields occupy,
        and every record id must be below the record count.

        Raises:
            ValueError: If the collection is not empty or the snapshot
                breaks a layout or record invariant
            InvalidWidthError: If a field width is unsupported
        """
        with self._lock:
            if self.layout.is_initialized() or self._record_count:
                raise ValueError(f"Collection {self.collection_id} is not empty")

            fields = data.get("fields") or []
            if fields:
                self.layout.initialize(fields)

            record_count = int(data.get("record_count", 0))
            if record_count < 0:
                raise ValueError(f"Negative record count {record_count}")
            if record_count and not fields:
                raise ValueError(f"{record_count} record(s) stored without any fields")

            # Fields fill each page from bit 0, so a page's bits are a low mask
            page_masks = {info.page: (1 << info.used_bits) - 1
                          for info in self.layout.describe()}

            records: dict[int, dict[int, int]] = {}
            for record_id, pages in data.get("records", {}).items():
                record_id = int(record_id)
                if not (0 <= record_id < record_count):
                    raise ValueError(
                        f"Record {record_id} outside record count {record_count}")

                words = {}
                for page, word in pages.items():
                    page, word = int(page), int(word, 16)
                    if page not in page_masks:
                        raise ValueError(
                            f"Record {record_id} stores page {page}, layout has "
                            f"{len(page_masks)} page(s)")
                    if word < 0 or word & ~page_masks[page]:
                        raise ValueError(
                            f"Record {record_id} page {page} word {hex(word)} sets "
                            f"bits outside its fields")
                    words[page] = word
                records[record_id] = words

            self._record_count = record_count
            self._records = records

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin(self) -> Transaction:
        return Transaction(self._records, on_commit=self._count_writes)

    def _count_writes(self, count: int) -> None:
        self._page_writes += count

    def _require_initialized(self) -> None:
        if not self.layout.is_initialized():
            raise NotInitializedError(
                f"Collection {self.collection_id} has not been initialized")

    def _check_record(self, record_id: int) -> None:
        if isinstance(record_id, bool) or not isinstance(record_id, int):
            raise TypeError(f"Record id must be int, got {type(record_id).__name__}")
        if not (0 <= record_id < self._record_count):
            raise RecordNotFoundError(
                f"Record {record_id} not found in collection {self.collection_id} "
                f"(record count {self._record_count})")

    def __str__(self) -> str:
        return (f"Collection({self.collection_id}, fields={len(self.layout)}, "
                f"records={self._record_count})")

    def __repr__(self) -> str:
        return self.__str__()
