"""
Domain: role-to-permission access policy.

A static lookup table consulted once by the HTTP boundary before any core
operation runs. Services are not role-aware.

- ADMIN: everything, including user management.
- STAFF: land and transaction reads/writes, statistics; no user management.
- AUDITOR: read-only across land and transaction data.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Mapping

from .user import Role


class Permission(str, Enum):
    LAND_READ = "land:read"
    LAND_WRITE = "land:write"
    TRANSACTION_READ = "transaction:read"
    TRANSACTION_WRITE = "transaction:write"
    STATISTICS_READ = "statistics:read"
    USER_MANAGE = "user:manage"


_READ_ONLY: FrozenSet[Permission] = frozenset(
    {Permission.LAND_READ, Permission.TRANSACTION_READ, Permission.STATISTICS_READ}
)

ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = {
    Role.ADMIN: frozenset(Permission),
    Role.STAFF: _READ_ONLY | {Permission.LAND_WRITE, Permission.TRANSACTION_WRITE},
    Role.AUDITOR: _READ_ONLY,
}


def permissions_for(role: Role) -> FrozenSet[Permission]:
    return ROLE_PERMISSIONS.get(role, frozenset())


def is_permitted(role: Role, permission: Permission) -> bool:
    return permission in permissions_for(role)


__all__ = ["Permission", "ROLE_PERMISSIONS", "permissions_for", "is_permitted"]
