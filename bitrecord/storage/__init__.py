from .field_layout import FieldLayout, PageInfo, resolve_offset, sorted_widths
from .collection import Collection
from .interfaces import RecordCollection

__all__ = [
    "FieldLayout",
    "PageInfo",
    "resolve_offset",
    "sorted_widths",
    "Collection",
    "RecordCollection",
]
