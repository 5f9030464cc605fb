"""
Checked fixed-width word helpers.

Every page word is an unsigned WORD_WIDTH-bit integer. These helpers are
the only places that shift and mask raw words; callers pass a validated
FieldWidth so a mask can never exceed the word.
"""
from ..config import WORD_WIDTH
from ..core.exceptions import ValueOverflowError
from ..core.types import FieldWidth

WORD_MASK = (1 << WORD_WIDTH) - 1


def field_mask(width: FieldWidth) -> int:
    """Return the all-ones mask for a field of the given width."""
    return width.mask()


def check_fits(value: int, width: FieldWidth) -> int:
    """
    Validate that value is an unsigned integer representable in width bits.

    Args:
        value: Candidate field value
        width: Width of the destination field

    Returns:
        The value unchanged

    Raises:
        TypeError: If value is not an int (bools are rejected too)
        ValueOverflowError: If value is negative or larger than the mask
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Field values must be int, got {type(value).__name__}")

    if value < 0 or value > width.mask():
        raise ValueOverflowError(
            f"Value {value} does not fit in a {width.bits}-bit field "
            f"(max {width.mask()})",
            value=value, width=width.bits)
    return value


def extract_bits(word: int, bit_offset: int, width: FieldWidth) -> int:
    """Read width bits starting at bit_offset out of a page word."""
    _check_range(bit_offset, width)
    return (word >> bit_offset) & width.mask()


def place_bits(value: int, bit_offset: int, width: FieldWidth) -> int:
    """
    Shift a checked value into position for OR-ing into a page word.

    Raises:
        ValueOverflowError: If value does not fit in width bits
    """
    _check_range(bit_offset, width)
    check_fits(value, width)
    return (value << bit_offset) & WORD_MASK


def _check_range(bit_offset: int, width: FieldWidth) -> None:
    if bit_offset < 0 or bit_offset + width.bits > WORD_WIDTH:
        raise ValueError(
            f"Field of {width.bits} bits at offset {bit_offset} "
            f"crosses the {WORD_WIDTH}-bit word boundary")
