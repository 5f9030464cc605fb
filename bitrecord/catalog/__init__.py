from .permissions import PermissionLevel
from .caller_context import CallerContext
from .domain import Domain
from .persistence import DomainPersistence

__all__ = [
    "PermissionLevel",
    "CallerContext",
    "Domain",
    "DomainPersistence",
]
