"""
Page packer / unpacker.

Converts between a record's field values (one unsigned int per field, in
field order) and its page words (page index -> WORD_WIDTH-bit int).
Missing page words read as zero, so a freshly pushed record unpacks to
all zeros without ever being written.
"""
from typing import Mapping, Sequence

from ..core.types import FieldWidth
from .field_layout import fields_on_page, iter_offsets, normalize_widths, resolve_offset
from .utilities import check_fits, extract_bits, place_bits


def unpack(widths: Sequence[FieldWidth], words: Mapping[int, int]) -> list[int]:
    """
    Read every field value of a record, in field order.

    Args:
        widths: Snapshot of the collection's field widths
        words: The record's stored page words (absent pages are zero)

    Returns:
        One value per field
    """
    widths = normalize_widths(widths)
    values = []
    for width, offset in zip(widths, iter_offsets(widths)):
        word = words.get(offset.page, 0)
        values.append(extract_bits(word, offset.bit_offset, width))
    return values


def unpack_field(widths: Sequence[FieldWidth], words: Mapping[int, int],
                 field_index: int) -> int:
    """Read a single field value without unpacking the whole record."""
    widths = normalize_widths(widths)
    offset = resolve_offset(widths, field_index)
    return extract_bits(words.get(offset.page, 0), offset.bit_offset, widths[field_index])


def pack_page(widths: Sequence[FieldWidth], values: Sequence[int], page: int) -> int:
    """
    Rebuild one page word from the values of every field sharing that page.

    Raises:
        ValueOverflowError: If any of those values does not fit its width
    """
    widths = normalize_widths(widths)
    word = 0
    offsets = list(iter_offsets(widths))
    for index in fields_on_page(widths, page):
        word |= place_bits(values[index], offsets[index].bit_offset, widths[index])
    return word


def pack(widths: Sequence[FieldWidth], values: Sequence[int]) -> dict[int, int]:
    """
    Pack a full value vector into page words.

    Raises:
        ValueError: If the number of values differs from the number of fields
        ValueOverflowError: If any value does not fit its width
    """
    widths = normalize_widths(widths)
    if len(values) != len(widths):
        raise ValueError(
            f"Expected {len(widths)} values, got {len(values)}")

    words: dict[int, int] = {}
    for value, width, offset in zip(values, widths, iter_offsets(widths)):
        words[offset.page] = words.get(offset.page, 0) | place_bits(
            value, offset.bit_offset, width)
    return words


def pack_single(widths: Sequence[FieldWidth], words: Mapping[int, int],
                field_index: int, new_value: int) -> tuple[int, int]:
    """
    Replace one field and rebuild only the page that holds it.

    Args:
        widths: Snapshot of the collection's field widths
        words: The record's current page words
        field_index: Field to replace
        new_value: Its new value

    Returns:
        (page, word): the single page index to rewrite and its new word

    Raises:
        FieldNotFoundError: If field_index is out of range
        ValueOverflowError: If new_value exceeds the field's mask
    """
    widths = normalize_widths(widths)
    offset = resolve_offset(widths, field_index)
    check_fits(new_value, widths[field_index])

    values = unpack(widths, words)
    values[field_index] = new_value
    return offset.page, pack_page(widths, values, offset.page)
