from typing import NamedTuple


class FieldOffset(NamedTuple):
    """
    Physical location of a field inside a record.

    A FieldOffset consists of:
    1. page: index of the page word holding the field (0-based)
    2. bit_offset: position of the field's lowest bit inside that word

    Unpacks and compares like a plain (page, bit_offset) tuple.
    """
    page: int
    bit_offset: int

    def __str__(self) -> str:
        return f"FieldOffset(page={self.page}, bit={self.bit_offset})"
