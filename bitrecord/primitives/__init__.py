"""
Primitive types used throughout the record store.

This module contains basic types that have no dependencies on other parts
of the system, avoiding circular imports.
"""

from .field_offset import FieldOffset

__all__ = ["FieldOffset"]
