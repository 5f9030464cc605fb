"""
Field layout engine.

Lays out an ordered list of field widths across fixed-width page words.
A field never spans two words: when the next field would overflow the
current word, it starts a fresh word and the unused high bits of the old
word stay zero forever.

Offsets are recomputed from the full field list on every query. The list
only ever grows at the end, so offsets of existing fields never move, but
the functions below are pure over a snapshot of widths and hold no cache.
"""
import logging
from dataclasses import dataclass
from itertools import islice
from typing import Iterable, Iterator, Sequence

from ..config import WORD_WIDTH
from ..core.exceptions import (
    AlreadyInitializedError,
    FieldNotFoundError,
    InvalidWidthError,
    NotInitializedError,
)
from ..core.types import FieldWidth
from ..primitives import FieldOffset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageInfo:
    page: int
    field_indices: tuple[int, ...]
    used_bits: int
    padding_bits: int


def iter_offsets(widths: Iterable) -> Iterator[FieldOffset]:
    """
    Walk the field list once, yielding the offset of every field in order.
    Widths may be FieldWidth members or plain bit counts.

    Cumulative sum with reset: current_bit accumulates widths and is reset
    to 0 (with current_page bumped) whenever the next field would not fit.
    """
    current_page = 0
    current_bit = 0
    for width in map(FieldWidth.of, widths):
        if current_bit + width.bits > WORD_WIDTH:
            current_page += 1
            current_bit = 0
        yield FieldOffset(current_page, current_bit)
        current_bit += width.bits


def resolve_offset(widths: Sequence[FieldWidth], field_index: int) -> FieldOffset:
    """
    Resolve the (page, bit_offset) of one field.

    Raises:
        FieldNotFoundError: If field_index is outside the field list
    """
    _check_index(widths, field_index)
    return next(islice(iter_offsets(widths), field_index, None))


def page_count(widths: Sequence[FieldWidth]) -> int:
    """Number of page words a record with this layout occupies."""
    last = None
    for last in iter_offsets(widths):
        pass
    return 0 if last is None else last.page + 1


def fields_on_page(widths: Sequence[FieldWidth], page: int) -> range:
    """Return the contiguous run of field indices that share a page."""
    start = None
    stop = None
    for index, offset in enumerate(iter_offsets(widths)):
        if offset.page == page:
            if start is None:
                start = index
            stop = index + 1
        elif offset.page > page:
            break
    if start is None:
        return range(0)
    return range(start, stop)


def touched_pages(widths: Sequence[FieldWidth], field_indices: Iterable[int]) -> list[int]:
    """Ordered distinct pages containing at least one of the given fields."""
    wanted = set(field_indices)
    for index in wanted:
        _check_index(widths, index)

    pages = []
    for index, offset in enumerate(iter_offsets(widths)):
        if index in wanted and (not pages or pages[-1] != offset.page):
            pages.append(offset.page)
    return pages


def padding_bits(widths: Sequence[FieldWidth]) -> int:
    """Total bits wasted as zero-padding at the top of non-final pages."""
    widths = normalize_widths(widths)
    used = sum(w.bits for w in widths)
    return page_count(widths) * WORD_WIDTH - used - _trailing_free_bits(widths)


def normalize_widths(widths: Iterable) -> tuple[FieldWidth, ...]:
    """Validate a field list given as FieldWidth members or plain bit counts."""
    return tuple(FieldWidth.of(w) for w in widths)


def sorted_widths(widths: Iterable) -> list[FieldWidth]:
    """
    Sort a batch of widths ascending, as tooling does before submitting an
    initial field list. The engine itself never reorders fields.
    """
    return sorted((FieldWidth.of(w) for w in widths), key=lambda w: w.bits)


def _trailing_free_bits(widths: Sequence[FieldWidth]) -> int:
    if not widths:
        return 0
    last_offset = None
    for last_offset in iter_offsets(widths):
        pass
    return WORD_WIDTH - (last_offset.bit_offset + widths[-1].bits)


def _check_index(widths: Sequence[FieldWidth], field_index: int) -> None:
    if isinstance(field_index, bool) or not isinstance(field_index, int):
        raise TypeError(f"Field index must be int, got {type(field_index).__name__}")
    if not (0 <= field_index < len(widths)):
        raise FieldNotFoundError(
            f"Field index {field_index} out of range [0, {len(widths)})")


class FieldLayout:
    """
    Append-only, ordered list of field widths for one collection.

    Lifecycle:
    1. Created empty (uninitialized)
    2. initialize(widths) exactly once with a non-empty list
    3. append_field(width) any number of times afterwards

    There is no removal or reordering operation.
    """

    def __init__(self):
        self._widths: list[FieldWidth] = []
        self._initialized = False

    def initialize(self, widths: Iterable) -> None:
        """
        Set the initial field list.

        Raises:
            AlreadyInitializedError: If called a second time
            InvalidWidthError: If the list is empty or holds an unsupported width
        """
        if self._initialized:
            raise AlreadyInitializedError("Field layout is already initialized")

        validated = [FieldWidth.of(w) for w in widths]
        if not validated:
            raise InvalidWidthError("Initial field list must not be empty")

        ascending = sorted_widths(validated)
        if validated != ascending:
            logger.warning(
                "Initial field widths %s are not in ascending order "
                "(%d padding bits, %d if sorted)",
                [w.bits for w in validated], padding_bits(validated),
                padding_bits(ascending))

        self._widths = validated
        self._initialized = True

    def append_field(self, width) -> int:
        """
        Append one field at the end of the list.

        Returns:
            The index of the new field

        Raises:
            NotInitializedError: If the layout was never initialized
            InvalidWidthError: If width is unsupported
        """
        self._require_initialized()
        self._widths.append(FieldWidth.of(width))
        return len(self._widths) - 1

    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def widths(self) -> tuple[FieldWidth, ...]:
        """Immutable snapshot of the current field list."""
        return tuple(self._widths)

    def num_fields(self) -> int:
        return len(self._widths)

    def get_width(self, field_index: int) -> FieldWidth:
        _check_index(self._widths, field_index)
        return self._widths[field_index]

    def resolve_offset(self, field_index: int) -> FieldOffset:
        return resolve_offset(self.widths, field_index)

    def offsets(self) -> list[FieldOffset]:
        return list(iter_offsets(self.widths))

    def page_count(self) -> int:
        return page_count(self.widths)

    def fields_on_page(self, page: int) -> range:
        return fields_on_page(self.widths, page)

    def touched_pages(self, field_indices: Iterable[int]) -> list[int]:
        return touched_pages(self.widths, field_indices)

    def describe(self) -> list[PageInfo]:
        """Diagnostic view: which fields each page holds and how full it is."""
        widths = self.widths
        pages: dict[int, list[int]] = {}
        for index, offset in enumerate(iter_offsets(widths)):
            pages.setdefault(offset.page, []).append(index)

        info = []
        for page, indices in pages.items():
            used = sum(widths[i].bits for i in indices)
            info.append(PageInfo(
                page=page,
                field_indices=tuple(indices),
                used_bits=used,
                padding_bits=WORD_WIDTH - used,
            ))
        return info

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("Field layout has not been initialized")

    def __len__(self) -> int:
        return len(self._widths)

    def __str__(self) -> str:
        return f"FieldLayout({', '.join(str(w) for w in self._widths)})"

    def __repr__(self) -> str:
        return self.__str__()
