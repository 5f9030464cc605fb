"""
bitrecord - a variable-width bitfield record store.

Packs many unsigned integer fields of power-of-two widths into fixed
256-bit page words, and routes reads and writes through a permission
gated domain directory.
"""
import logging

from .config import LOGGER_NAME
from .core.exceptions import BitRecordException
from .core.types import FieldWidth
from .storage import Collection, FieldLayout
from .catalog import Domain, PermissionLevel, CallerContext

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())

__all__ = [
    "BitRecordException",
    "FieldWidth",
    "Collection",
    "FieldLayout",
    "Domain",
    "PermissionLevel",
    "CallerContext",
]
