from dataclasses import dataclass
from typing import Hashable

from .permissions import PermissionLevel


@dataclass(frozen=True)
class CallerContext:
    """
    The identity behind one call and the permission level it resolved to.

    Contexts are issued by Domain.context() at the start of a call and
    passed explicitly to every domain operation. A context whose level no
    longer matches the domain's permission table is rejected.
    """

    identity: Hashable
    level: PermissionLevel = PermissionLevel.NONE

    def at_least(self, level: PermissionLevel) -> bool:
        return self.level.at_least(level)

    def __str__(self) -> str:
        return f"CallerContext({self.identity!r}, {self.level})"
