"""
Tests for `domain/access_policy.py`.

Covers contract rules:
- ADMIN may do everything.
- STAFF reads and writes land and transactions but cannot manage users.
- AUDITOR is read-only.
"""

from __future__ import annotations

import pytest

from domain.access_policy import Permission, ROLE_PERMISSIONS, is_permitted, permissions_for
from domain.user import Role

READS = [Permission.LAND_READ, Permission.TRANSACTION_READ, Permission.STATISTICS_READ]
WRITES = [Permission.LAND_WRITE, Permission.TRANSACTION_WRITE]


def test_every_role_has_an_entry() -> None:
    assert set(ROLE_PERMISSIONS) == set(Role)


def test_admin_has_every_permission() -> None:
    assert permissions_for(Role.ADMIN) == frozenset(Permission)


@pytest.mark.parametrize("permission", READS + WRITES)
def test_staff_reads_and_writes(permission: Permission) -> None:
    assert is_permitted(Role.STAFF, permission)


def test_staff_cannot_manage_users() -> None:
    assert not is_permitted(Role.STAFF, Permission.USER_MANAGE)


@pytest.mark.parametrize("permission", READS)
def test_auditor_reads(permission: Permission) -> None:
    assert is_permitted(Role.AUDITOR, permission)


@pytest.mark.parametrize("permission", WRITES + [Permission.USER_MANAGE])
def test_auditor_never_writes(permission: Permission) -> None:
    assert not is_permitted(Role.AUDITOR, permission)
