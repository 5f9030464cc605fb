import logging
import threading
from typing import Callable, Hashable, Iterable, Optional, Sequence

from ..core.exceptions import (
    AlreadyInitializedError,
    AuthorizationError,
    NotInitializedError,
    UnknownCollectionError,
)
from ..core.types import FieldWidth
from ..primitives import FieldOffset
from ..storage import Collection, RecordCollection
from .caller_context import CallerContext
from .permissions import PermissionLevel

logger = logging.getLogger(__name__)


class Domain:
    """
    Permission-gated directory of record collections.

    The domain owns three tables and routes every call through them:

    ```
    Domain
    ├── permissions     identity -> PermissionLevel
    ├── collections     collection id -> RecordCollection
    └── private fields  {(collection id, field index)}
    ```

    Every operation takes an explicit CallerContext (see context()) and is
    authorized before the target collection is touched:

    | Operation        | Required level                      |
    |------------------|-------------------------------------|
    | grant_permission | OWNER                               |
    | create_collection| OWNER                               |
    | append_field     | OWNER                               |
    | toggle_private   | ADMIN                               |
    | push / modify    | ADMIN                               |
    | multimod         | ADMIN                               |
    | read_record      | ADMIN (privacy flags never apply)   |
    | read_field       | VIEWER, or ADMIN if the field is private |
    | layout queries   | VIEWER                              |

    Calls are serialized by one re-entrant lock. Every check runs before
    any state changes, so a failed call leaves the domain untouched.
    """

    def __init__(self, collection_factory: Optional[Callable[[int], RecordCollection]] = None):
        """
        Args:
            collection_factory: Builds an empty collection for a new id.
                Defaults to the packed Collection implementation.
        """
        self._collection_factory = collection_factory or Collection
        self._collections: dict[int, RecordCollection] = {}
        self._permissions: dict[Hashable, PermissionLevel] = {}
        self._private_fields: set[tuple[int, int]] = set()
        self._next_collection_id = 0
        self._initialized = False
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def context(self, identity: Hashable) -> CallerContext:
        """Resolve an identity to its current permission level for one call."""
        with self._lock:
            return CallerContext(identity, self.get_permission(identity))

    def get_permission(self, identity: Hashable) -> PermissionLevel:
        with self._lock:
            return self._permissions.get(identity, PermissionLevel.NONE)

    def is_initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def initialize_domain(self, caller: CallerContext, initial_fields: Iterable) -> int:
        """
        Make the caller OWNER and register collection 0 with initial_fields.

        Returns:
            The id of the first collection (always 0)

        Raises:
            AlreadyInitializedError: If the domain was already initialized
            InvalidWidthError: If initial_fields is empty or invalid
        """
        with self._lock:
            if self._initialized:
                raise AlreadyInitializedError("Domain is already initialized")

            collection_id = self._register_collection(initial_fields)
            self._permissions[caller.identity] = PermissionLevel.OWNER
            self._initialized = True
            logger.info("Domain initialized by %r", caller.identity)
            return collection_id

    def grant_permission(self, caller: CallerContext, target: Hashable, level) -> None:
        """
        Set target's permission level. Granting NONE revokes.

        Raises:
            AuthorizationError: If caller is not OWNER, or if the change
                would leave the domain without any OWNER
        """
        level = PermissionLevel.parse(level)
        with self._lock:
            self._authorize(caller, PermissionLevel.OWNER, "grant permissions")

            current = self.get_permission(target)
            if current.is_owner() and not level.is_owner():
                owners = sum(1 for lvl in self._permissions.values() if lvl.is_owner())
                if owners == 1:
                    raise AuthorizationError(
                        f"Cannot demote {target!r}: the domain must keep an owner",
                        required=PermissionLevel.OWNER, actual=current)

            if level == PermissionLevel.NONE:
                self._permissions.pop(target, None)
            else:
                self._permissions[target] = level
            logger.info("%r set permission of %r to %s", caller.identity, target, level)

    def create_collection(self, caller: CallerContext, fields: Iterable) -> int:
        """
        Register a new collection initialized with fields.

        Returns:
            The new collection id (ids increase monotonically from 0)
        """
        with self._lock:
            self._authorize(caller, PermissionLevel.OWNER, "create collections")
            return self._register_collection(fields)

    def toggle_private(self, caller: CallerContext, collection_id: int, field_index: int) -> bool:
        """
        Flip the privacy flag of one field.

        Returns:
            The new flag value

        Raises:
            FieldNotFoundError: If the field does not exist
        """
        with self._lock:
            self._authorize(caller, PermissionLevel.ADMIN, "toggle field privacy")
            collection = self._get_collection(collection_id)
            collection.resolve_offset(field_index)

            key = (collection_id, field_index)
            if key in self._private_fields:
                self._private_fields.discard(key)
                return False
            self._private_fields.add(key)
            return True

    def is_private(self, collection_id: int, field_index: int) -> bool:
        with self._lock:
            return (collection_id, field_index) in self._private_fields

    # ------------------------------------------------------------------
    # Forwarded collection operations
    # ------------------------------------------------------------------

    def push(self, caller: CallerContext, collection_id: int) -> int:
        with self._lock:
            self._authorize(caller, PermissionLevel.ADMIN, "push records")
            return self._get_collection(collection_id).push()

    def append_field(self, caller: CallerContext, collection_id: int, width) -> int:
        with self._lock:
            self._authorize(caller, PermissionLevel.OWNER, "append fields")
            index = self._get_collection(collection_id).append_field(width)
            logger.info("%r appended field %d to collection %d",
                        caller.identity, index, collection_id)
            return index

    def modify(self, caller: CallerContext, collection_id: int, record_id: int,
               field_index: int, value: int) -> list[int]:
        with self._lock:
            self._authorize(caller, PermissionLevel.ADMIN, "modify records")
            return self._get_collection(collection_id).modify(record_id, field_index, value)

    def multimod(self, caller: CallerContext, collection_id: int, record_id: int,
                 field_indices: Sequence[int], values: Sequence[int]) -> list[int]:
        with self._lock:
            self._authorize(caller, PermissionLevel.ADMIN, "modify records")
            return self._get_collection(collection_id).multimod(
                record_id, field_indices, values)

    def read_field(self, caller: CallerContext, collection_id: int, record_id: int,
                   field_index: int) -> int:
        with self._lock:
            self._authorize(caller, PermissionLevel.VIEWER, "read fields")
            collection = self._get_collection(collection_id)
            if self.is_private(collection_id, field_index):
                self._authorize(caller, PermissionLevel.ADMIN, "read private fields")
            return collection.read_field(record_id, field_index)

    def read_record(self, caller: CallerContext, collection_id: int, record_id: int) -> list[int]:
        with self._lock:
            self._authorize(caller, PermissionLevel.ADMIN, "read whole records")
            return self._get_collection(collection_id).unpack(record_id)

    # ------------------------------------------------------------------
    # Layout queries
    # ------------------------------------------------------------------

    def resolve_offset(self, caller: CallerContext, collection_id: int,
                       field_index: int) -> FieldOffset:
        with self._lock:
            self._authorize(caller, PermissionLevel.VIEWER, "inspect layouts")
            return self._get_collection(collection_id).resolve_offset(field_index)

    def field_widths(self, caller: CallerContext, collection_id: int) -> tuple[FieldWidth, ...]:
        with self._lock:
            self._authorize(caller, PermissionLevel.VIEWER, "inspect layouts")
            return self._get_collection(collection_id).get_widths()

    def record_count(self, caller: CallerContext, collection_id: int) -> int:
        with self._lock:
            self._authorize(caller, PermissionLevel.VIEWER, "inspect layouts")
            return self._get_collection(collection_id).get_record_count()

    def collection_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._collections)

    def get_collection(self, collection_id: int) -> RecordCollection:
        """Direct access for embedding code; bypasses authorization."""
        with self._lock:
            return self._get_collection(collection_id)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Raises:
            ValueError: If an identity is not a str or int, the identity
                types a JSON snapshot keeps apart
        """
        with self._lock:
            permissions = []
            for identity, level in self._permissions.items():
                _check_identity(identity)
                permissions.append([identity, level.name])
            return {
                "initialized": self._initialized,
                "next_collection_id": self._next_collection_id,
                "permissions": permissions,
                "private_fields": [list(key) for key in sorted(self._private_fields)],
                "collections": {str(cid): collection.to_dict()
                                for cid, collection in sorted(self._collections.items())},
            }

    @classmethod
    def from_dict(cls, data: dict,
                  collection_factory: Optional[Callable[[int], RecordCollection]] = None
                  ) -> 'Domain':
        """
        Rebuild a domain, restoring each collection through collection_factory.

        Raises:
            ValueError: If the snapshot breaks a domain invariant: a repeated
                identity, an initialized domain without an OWNER, a private
                flag on a missing field, or a reused collection id
        """
        domain = cls(collection_factory)
        for cid, collection_data in data.get("collections", {}).items():
            cid = int(cid)
            collection = domain._collection_factory(cid)
            collection.load_dict(collection_data)
            domain._collections[cid] = collection

        entries = data.get("permissions", [])
        if not isinstance(entries, list):
            raise ValueError("Permissions must be a list of [identity, level] pairs")
        for entry in entries:
            if not isinstance(entry, list) or len(entry) != 2:
                raise ValueError(f"Permission entry {entry!r} is not an [identity, level] pair")
            identity, name = entry
            _check_identity(identity)
            if identity in domain._permissions:
                raise ValueError(f"Identity {identity!r} listed more than once")
            domain._permissions[identity] = PermissionLevel[name]

        for cid, field in data.get("private_fields", []):
            cid, field = int(cid), int(field)
            if cid not in domain._collections:
                raise ValueError(f"Private field {field} names unknown collection {cid}")
            if not (0 <= field < len(domain._collections[cid].get_widths())):
                raise ValueError(f"Private field {field} does not exist in collection {cid}")
            domain._private_fields.add((cid, field))

        domain._next_collection_id = int(data.get(
            "next_collection_id", max(domain._collections, default=-1) + 1))
        if domain._next_collection_id <= max(domain._collections, default=-1):
            raise ValueError(
                f"Next collection id {domain._next_collection_id} is already in use")

        domain._initialized = bool(data.get("initialized", bool(domain._collections)))
        if domain._initialized and not any(
                level.is_owner() for level in domain._permissions.values()):
            raise ValueError("Initialized domain has no owner")
        return domain

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _register_collection(self, fields: Iterable) -> int:
        collection_id = self._next_collection_id
        collection = self._collection_factory(collection_id)
        collection.initialize(fields)

        self._collections[collection_id] = collection
        self._next_collection_id += 1
        logger.info("Registered collection %d", collection_id)
        return collection_id

    def _get_collection(self, collection_id: int) -> RecordCollection:
        try:
            return self._collections[collection_id]
        except (KeyError, TypeError):
            raise UnknownCollectionError(f"Collection {collection_id!r} is not registered")

    def _authorize(self, caller: CallerContext, required: PermissionLevel, action: str) -> None:
        if not self._initialized:
            raise NotInitializedError("Domain has not been initialized")

        actual = self.get_permission(caller.identity)
        if caller.level != actual:
            logger.info("Rejected stale context for %r (claims %s, holds %s)",
                        caller.identity, caller.level, actual)
            raise AuthorizationError(
                f"Caller context for {caller.identity!r} is stale: "
                f"claims {caller.level}, holds {actual}",
                required=required, actual=actual)

        if not actual.at_least(required):
            logger.info("%r (%s) may not %s", caller.identity, actual, action)
            raise AuthorizationError(
                f"{caller.identity!r} needs {required} to {action}, has {actual}",
                required=required, actual=actual)

    def __str__(self) -> str:
        return (f"Domain(collections={len(self._collections)}, "
                f"members={len(self._permissions)})")

    def __repr__(self) -> str:
        return self.__str__()


def _check_identity(identity) -> None:
    if isinstance(identity, bool) or not isinstance(identity, (str, int)):
        raise ValueError(
            f"Identity {identity!r} cannot be stored in a snapshot; use a str or int")
