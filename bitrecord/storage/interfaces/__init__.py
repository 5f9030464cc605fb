"""
Interfaces for the storage layer.

The domain directory depends only on these abstractions, not on the
concrete collection implementation.
"""

from .record_collection import RecordCollection

__all__ = ['RecordCollection']
