import pytest

from bitrecord.core.exceptions import InvalidWidthError
from bitrecord.core.types import FieldWidth


class TestFieldWidth:
    """Tests for FieldWidth validation and masks."""

    @pytest.mark.parametrize("bits", [8, 16, 32, 64, 128, 256])
    def test_of_accepts_supported_widths(self, bits):
        """Every power of two between 8 and 256 is accepted."""
        width = FieldWidth.of(bits)
        assert width.bits == bits
        assert width.mask() == (1 << bits) - 1

    @pytest.mark.parametrize("bits", [0, 1, 4, 7, 12, 24, 100, 512, -8])
    def test_of_rejects_unsupported_widths(self, bits):
        """Anything else raises InvalidWidthError carrying the bad width."""
        with pytest.raises(InvalidWidthError, match="Unsupported field width") as exc_info:
            FieldWidth.of(bits)
        assert exc_info.value.width == bits

    def test_of_rejects_non_integers(self):
        """Strings, floats and bools are not widths."""
        for bad in ("8", 8.0, True, None):
            with pytest.raises(InvalidWidthError):
                FieldWidth.of(bad)

    def test_of_passes_through_enum_members(self):
        assert FieldWidth.of(FieldWidth.W64) is FieldWidth.W64

    def test_full_word_mask(self):
        """A 256-bit field's mask is the whole word."""
        assert FieldWidth.W256.mask() == 2**256 - 1
        assert FieldWidth.W256.max_value() == FieldWidth.W256.mask()

    def test_str(self):
        assert str(FieldWidth.W16) == "u16"
