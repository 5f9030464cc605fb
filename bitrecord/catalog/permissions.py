from enum import Enum


class PermissionLevel(Enum):
    """
    Ordered capability tier of a caller within a domain.

    NONE < VIEWER < ADMIN < OWNER

    - VIEWER: may read non-private fields
    - ADMIN: may push records, write fields, read private fields and
      whole records, and toggle privacy flags
    - OWNER: may additionally create collections, append fields and
      grant permissions
    """

    NONE = 0
    VIEWER = 1
    ADMIN = 2
    OWNER = 3

    def at_least(self, other: 'PermissionLevel') -> bool:
        """Return True if this level is the same as or above other."""
        return self.value >= other.value

    def is_owner(self) -> bool:
        return self == PermissionLevel.OWNER

    @classmethod
    def parse(cls, level) -> 'PermissionLevel':
        """Accept a PermissionLevel, its name ("admin") or its integer value."""
        if isinstance(level, PermissionLevel):
            return level
        if isinstance(level, str):
            try:
                return cls[level.upper()]
            except KeyError:
                raise ValueError(f"Unknown permission level '{level}'")
        if isinstance(level, int) and not isinstance(level, bool):
            return cls(level)
        raise ValueError(f"Unknown permission level {level!r}")

    def __str__(self) -> str:
        return self.name
