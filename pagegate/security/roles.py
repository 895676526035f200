"""
Roles, permissions, and the policy table.

This defines WHAT each role can do, not HOW we check a request.
The actual checking happens in policies.py.

Roles and permissions are opaque strings. The concrete vocabulary is
supplied by the embedding application as a PolicyTable (see defaults.py
for the product's own table).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

Role = str
PermissionValue = str


class PolicyConfigError(Exception):
    """Raised when a policy table is incomplete or inconsistent."""
    pass


# =============================================================================
# Policy Table
# =============================================================================


class PolicyTable(BaseModel):
    """
    Role ordering and role → permissions mapping.

    Immutable for the lifetime of the process: the model is frozen and both
    mappings are read-only views. The table must be total:
    every role with a level has a (possibly empty) permission set and
    vice versa. A higher level is NOT assumed to be a superset of a lower
    one; the table is authoritative.
    """

    model_config = ConfigDict(frozen=True)

    role_levels: Mapping[Role, int]
    permissions: Mapping[Role, frozenset[PermissionValue]]
    super_admin_role: Role = "super_admin"
    guest_role: Role = "guest"

    @field_validator("role_levels", "permissions", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping) -> Mapping:
        return MappingProxyType(dict(value))

    @model_validator(mode="after")
    def _check_total(self) -> PolicyTable:
        leveled = set(self.role_levels)
        mapped = set(self.permissions)
        if leveled != mapped:
            missing = sorted(leveled ^ mapped)
            raise PolicyConfigError(
                f"Policy table is not total, roles without both a level "
                f"and a permission set: {missing}"
            )
        for role in (self.guest_role, self.super_admin_role):
            if role not in leveled:
                raise PolicyConfigError(f"Designated role '{role}' is not in the policy table")
        return self

    @property
    def roles(self) -> list[Role]:
        """All roles, lowest level first."""
        return sorted(self.role_levels, key=lambda r: self.role_levels[r])

    @property
    def lowest_level(self) -> int:
        return min(self.role_levels.values())


# =============================================================================
# Resolver
# =============================================================================


def get_role_level(role: Role, policy: PolicyTable) -> int:
    """
    Get the numeric level for a role.

    Unknown roles get the lowest level in the table.
    """
    return policy.role_levels.get(role, policy.lowest_level)


def get_permissions_for_role(role: Role, policy: PolicyTable) -> frozenset[PermissionValue]:
    """Get all permissions granted to a role. Unknown roles get none."""
    return policy.permissions.get(role, frozenset())


def is_super_admin(role: Role, policy: PolicyTable) -> bool:
    return role == policy.super_admin_role


def role_has_permission(role: Role, permission: PermissionValue, policy: PolicyTable) -> bool:
    """
    Check if a role has a specific permission.

    The super admin role has every permission. This is the only place
    the permission bypass is implemented; the ownership bypass lives in
    run_ownership_check.
    """
    if is_super_admin(role, policy):
        return True
    return permission in get_permissions_for_role(role, policy)


def role_has_any_permission(
    role: Role,
    permissions: Iterable[PermissionValue],
    policy: PolicyTable,
) -> bool:
    """Check if a role has ANY of the permissions."""
    return any(role_has_permission(role, p, policy) for p in permissions)


def role_has_all_permissions(
    role: Role,
    permissions: Iterable[PermissionValue],
    policy: PolicyTable,
) -> bool:
    """Check if a role has ALL of the permissions."""
    return all(role_has_permission(role, p, policy) for p in permissions)


def meets_role_level(role: Role, minimum_level: int, policy: PolicyTable) -> bool:
    """Check if a role is at or above a level. The super admin always is."""
    if is_super_admin(role, policy):
        return True
    return get_role_level(role, policy) >= minimum_level


def has_role(role: Role, allowed_roles: Iterable[Role], policy: PolicyTable) -> bool:
    """Check if a role is one of the allowed roles. The super admin always is."""
    if is_super_admin(role, policy):
        return True
    return role in set(allowed_roles)
