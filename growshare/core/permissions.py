"""Roles and the acting principal passed into engine operations."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    """User roles in the system."""

    RENTER = "RENTER"
    LANDOWNER = "LANDOWNER"
    BUYER = "BUYER"
    ORGANIZATION = "ORGANIZATION"
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"  # internal scheduler principal, never assigned to users


def parse_roles(raw_roles: Iterable[str] | None) -> frozenset[UserRole]:
    """Map stored role names onto the enum, dropping unknown values."""
    roles: set[UserRole] = set()
    for raw in raw_roles or ():
        try:
            role = UserRole(str(raw).upper())
        except ValueError:
            logger.warning(f"Ignoring unknown role {raw!r}")
            continue
        if role is not UserRole.SYSTEM:
            roles.add(role)
    return frozenset(roles)


@dataclass(frozen=True)
class Actor:
    """The principal performing an operation."""

    id: UUID | None
    roles: frozenset[UserRole] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return UserRole.ADMIN in self.roles

    @property
    def is_system(self) -> bool:
        return UserRole.SYSTEM in self.roles

    @classmethod
    def system(cls) -> "Actor":
        """Principal used by scheduled lifecycle sweeps."""
        return cls(id=None, roles=frozenset({UserRole.SYSTEM}))
