from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from ...core.types import FieldWidth
from ...primitives import FieldOffset


class RecordCollection(ABC):
    """
    Abstract capability of a growable collection of packed records. 📦

    The domain directory only talks to collections through this interface,
    so any implementation that honours the packing rules can be registered.

    Key Concepts:
    - Every record shares one append-only list of field widths 📝
    - Fields are packed into fixed-width page words, never split 📄
    - Writes go through a staged buffer and are all-or-nothing 🔒
    """

    @abstractmethod
    def initialize(self, widths: Iterable) -> None:
        """
        Set the initial field list. May be called exactly once. 🎬

        Raises:
            AlreadyInitializedError: On a second call
            InvalidWidthError: If the list is empty or holds an unsupported width
        """
        pass

    @abstractmethod
    def append_field(self, width) -> int:
        """
        Grow the field list by one field at the end. ➕

        Returns:
            Index of the new field
        """
        pass

    @abstractmethod
    def push(self) -> int:
        """
        Create a new zeroed record. 🆕

        Returns:
            The new record id
        """
        pass

    @abstractmethod
    def modify(self, record_id: int, field_index: int, new_value: int) -> list[int]:
        """
        Update a single field, rewriting exactly one page. ✍️

        Returns:
            The page indices written
        """
        pass

    @abstractmethod
    def multimod(self, record_id: int, field_indices: Sequence[int],
                 new_values: Sequence[int]) -> list[int]:
        """
        Atomically update several fields, one write per touched page. ✍️

        Returns:
            The page indices written
        """
        pass

    @abstractmethod
    def unpack(self, record_id: int) -> list[int]:
        """Return every field value of a record, in field order. 📖"""
        pass

    @abstractmethod
    def read_field(self, record_id: int, field_index: int) -> int:
        """Return a single field value. 📖"""
        pass

    @abstractmethod
    def resolve_offset(self, field_index: int) -> FieldOffset:
        """Return the (page, bit_offset) of a field. 🔍"""
        pass

    @abstractmethod
    def get_widths(self) -> tuple[FieldWidth, ...]:
        """Return a snapshot of the field widths. 📋"""
        pass

    @abstractmethod
    def get_record_count(self) -> int:
        """Return the number of records pushed so far. 🔢"""
        pass

    @abstractmethod
    def to_dict(self) -> dict:
        """Return a JSON-serializable snapshot of fields and page words. 💾"""
        pass

    @abstractmethod
    def load_dict(self, data: dict) -> None:
        """Populate an empty collection from a to_dict() snapshot. 📥"""
        pass
