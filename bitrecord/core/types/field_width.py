from enum import Enum

from ...config import SUPPORTED_WIDTHS
from ..exceptions import InvalidWidthError


class FieldWidth(Enum):
    """
    Enum for the supported field widths, in bits.

    Only powers of two between 8 and 256 are representable. A W256 field
    always fills a whole page word on its own.
    """
    W8 = 8
    W16 = 16
    W32 = 32
    W64 = 64
    W128 = 128
    W256 = 256

    @classmethod
    def of(cls, bits) -> 'FieldWidth':
        """
        Validate a raw bit count and return its FieldWidth.

        Raises:
            InvalidWidthError: If bits is not one of the supported widths
        """
        if isinstance(bits, FieldWidth):
            return bits
        if isinstance(bits, bool) or not isinstance(bits, int) or bits not in SUPPORTED_WIDTHS:
            raise InvalidWidthError(
                f"Unsupported field width {bits!r}; expected one of {SUPPORTED_WIDTHS}",
                width=bits)
        return cls(bits)

    @property
    def bits(self) -> int:
        return self.value

    def mask(self) -> int:
        """Return the all-ones mask for this width (the full word for W256)."""
        return (1 << self.value) - 1

    def max_value(self) -> int:
        """Largest unsigned value this width can hold."""
        return self.mask()

    def __str__(self) -> str:
        return f"u{self.value}"
