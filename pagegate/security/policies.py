"""
Policies - declarative requirements and the layered checker.

A SecurityMiddlewareConfig says what a screen or endpoint needs:

    SecurityMiddlewareConfig(
        required_permissions=("pages.edit_own", "pages.edit_team"),
        combinator=Combinator.ANY,
        min_role_level=1,
        ownership=OwnershipRequirement("pages", allow_team_access=True),
    )

The checker evaluates it against a SecurityContext, layer by layer, and
stops at the first layer that denies:

    1. Authentication  → not_authenticated
    2. Authorization   → insufficient_role / insufficient_permissions
    3. Ownership       → not_owner / resource_not_found

Exactly one SecurityCheckResult comes out. Nothing here raises on a
denial and nothing here has side effects, so a check can be re-run on
every render or request.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from pagegate.security.results import DeniedReason, SecurityCheckResult, SecurityLayer
from pagegate.security.roles import PermissionValue, Role

if TYPE_CHECKING:
    from pagegate.security.context import SecurityContext
    from pagegate.security.ownership import OwnershipResolver

logger = logging.getLogger(__name__)


# =============================================================================
# Requirements
# =============================================================================


class Combinator(str, Enum):
    """How a list of required permissions is combined."""

    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class OwnershipRequirement:
    """
    The resource must be owned by the principal (or its team, if allowed).

    ``required_team_roles`` narrows team access to members holding one of
    those team roles (see storage.TeamRoles).
    """

    resource_type: str
    allow_team_access: bool = False
    required_team_roles: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "required_team_roles", tuple(self.required_team_roles))


@dataclass(frozen=True)
class SecurityMiddlewareConfig:
    """
    A declarative security requirement, immutable per call site.

    Empty ``required_permissions`` means no permission requirement.
    ``require_auth=False`` is only for public surfaces.
    """

    required_permissions: tuple[PermissionValue, ...] = ()
    combinator: Combinator = Combinator.ALL
    min_role_level: int | None = None
    allowed_roles: tuple[Role, ...] = ()
    ownership: OwnershipRequirement | None = None
    require_auth: bool = True

    def __post_init__(self):
        object.__setattr__(self, "required_permissions", tuple(self.required_permissions))
        object.__setattr__(self, "allowed_roles", tuple(self.allowed_roles))
        object.__setattr__(self, "combinator", Combinator(self.combinator))

    @property
    def has_authorization_requirements(self) -> bool:
        return bool(
            self.required_permissions
            or self.allowed_roles
            or self.min_role_level is not None
        )


# =============================================================================
# Layers
# =============================================================================


def check_authentication(context: SecurityContext, config: SecurityMiddlewareConfig) -> SecurityCheckResult:
    """Layer 1: is anybody signed in?"""
    if config.require_auth and not context.is_authenticated:
        return SecurityCheckResult.deny(
            DeniedReason.NOT_AUTHENTICATED,
            SecurityLayer.AUTHENTICATION,
            details="User is not authenticated",
        )
    return SecurityCheckResult.allow()


def check_authorization(context: SecurityContext, config: SecurityMiddlewareConfig) -> SecurityCheckResult:
    """
    Layer 2: role level, allowed roles, then permissions.

    The super admin bypass lives in the role resolver, so it applies here
    without being special-cased.
    """
    if config.min_role_level is not None and not context.has_min_role_level(config.min_role_level):
        return SecurityCheckResult.deny(
            DeniedReason.INSUFFICIENT_ROLE,
            SecurityLayer.AUTHORIZATION,
            details=(
                f"Role level {context.role_level} does not meet minimum "
                f"requirement of {config.min_role_level}"
            ),
        )

    if config.allowed_roles and not context.has_role(config.allowed_roles):
        return SecurityCheckResult.deny(
            DeniedReason.INSUFFICIENT_ROLE,
            SecurityLayer.AUTHORIZATION,
            details=f"Role '{context.role}' is not in allowed roles: {', '.join(config.allowed_roles)}",
        )

    if config.required_permissions:
        if config.combinator == Combinator.ANY:
            if not context.can_any(*config.required_permissions):
                return SecurityCheckResult.deny(
                    DeniedReason.INSUFFICIENT_PERMISSIONS,
                    SecurityLayer.AUTHORIZATION,
                    details=f"Requires one of: {', '.join(config.required_permissions)}",
                )
        elif not context.can_all(*config.required_permissions):
            missing = [p for p in config.required_permissions if not context.can(p)]
            return SecurityCheckResult.deny(
                DeniedReason.INSUFFICIENT_PERMISSIONS,
                SecurityLayer.AUTHORIZATION,
                details=f"Missing permissions: {', '.join(missing)}",
            )

    return SecurityCheckResult.allow()


async def run_ownership_check(
    context: SecurityContext,
    resource_type: str,
    resource_id: str,
    ownership: OwnershipResolver,
    allow_team_access: bool = False,
    required_team_roles: tuple[str, ...] = (),
) -> SecurityCheckResult:
    """
    Layer 3 on its own (still guarded by authentication).

    The super admin owns every resource; the store is not consulted for it.
    """
    if not context.is_authenticated:
        return SecurityCheckResult.deny(
            DeniedReason.NOT_AUTHENTICATED,
            SecurityLayer.AUTHENTICATION,
            details="Ownership requires an authenticated user",
        )

    if not resource_id:
        return SecurityCheckResult.deny(
            DeniedReason.RESOURCE_NOT_FOUND,
            SecurityLayer.OWNERSHIP,
            details=f"No {resource_type} id given",
        )

    if context.is_super_admin:
        return SecurityCheckResult.allow()

    return await ownership.check_ownership(
        resource_type,
        resource_id,
        context.user_id,
        allow_team_access=allow_team_access,
        required_team_roles=required_team_roles,
    )


async def require_team_membership(
    context: SecurityContext,
    team_id: str,
    ownership: OwnershipResolver,
    roles: Iterable[str] = (),
) -> SecurityCheckResult:
    """
    Verdict for acting inside a team rather than on one resource.

    The user must be a member of ``team_id``, and hold one of ``roles``
    inside it when given. Membership is read from the store.
    """
    if not context.is_authenticated:
        return SecurityCheckResult.deny(
            DeniedReason.NOT_AUTHENTICATED,
            SecurityLayer.AUTHENTICATION,
            details="Team access requires an authenticated user",
        )

    if context.is_super_admin:
        return SecurityCheckResult.allow()

    roles = tuple(roles)
    if roles:
        if not await ownership.has_team_role(context.user_id, team_id, roles):
            return SecurityCheckResult.deny(
                DeniedReason.NOT_OWNER,
                SecurityLayer.OWNERSHIP,
                details=f"User does not have required role ({', '.join(roles)}) in team {team_id}",
            )
    elif not await ownership.is_team_member(context.user_id, team_id):
        return SecurityCheckResult.deny(
            DeniedReason.NOT_OWNER,
            SecurityLayer.OWNERSHIP,
            details=f"User is not a member of team {team_id}",
        )

    return SecurityCheckResult.allow()


# =============================================================================
# Entry Points
# =============================================================================


def run_security_checks(context: SecurityContext, config: SecurityMiddlewareConfig) -> SecurityCheckResult:
    """
    Capability check: layers 1 and 2, no resource.

    Synchronous and pure. Use it to decide whether a screen or a button
    is available at all ("can this user create pages?").
    """
    result = check_authentication(context, config)
    if not result.allowed:
        return result

    if config.has_authorization_requirements:
        result = check_authorization(context, config)
        if not result.allowed:
            return result

    return SecurityCheckResult.allow()


async def check_resource(
    context: SecurityContext,
    config: SecurityMiddlewareConfig,
    resource_id: str,
    ownership: OwnershipResolver,
) -> SecurityCheckResult:
    """
    Resource check: layers 1, 2 and 3, resource id required.

    This is the entry point for mutations. Unlike run_full_security_check
    it never skips the ownership layer: a config without an ownership
    requirement, or an empty resource id, is denied.
    """
    result = run_security_checks(context, config)
    if not result.allowed:
        return result

    if config.ownership is None:
        return SecurityCheckResult.deny(
            DeniedReason.NOT_OWNER,
            SecurityLayer.OWNERSHIP,
            details="Config declares no ownership requirement to check",
        )

    return await run_ownership_check(
        context,
        config.ownership.resource_type,
        resource_id,
        ownership,
        allow_team_access=config.ownership.allow_team_access,
        required_team_roles=config.ownership.required_team_roles,
    )


async def run_full_security_check(
    context: SecurityContext,
    config: SecurityMiddlewareConfig,
    resource_id: str | None = None,
    *,
    ownership: OwnershipResolver,
) -> SecurityCheckResult:
    """
    Layers 1-3, with the ownership layer conditional on ``resource_id``.

    WARNING: when the config declares an ownership requirement but no
    resource id is passed, the ownership layer is treated as passed. That
    supports screens that check a capability before a resource exists
    ("can this user create a page?"). Mutation endpoints that act on an
    existing resource must call check_resource instead, so a forgotten id
    cannot silently skip ownership enforcement.
    """
    result = run_security_checks(context, config)
    if not result.allowed:
        return result

    if config.ownership is not None:
        if resource_id:
            return await run_ownership_check(
                context,
                config.ownership.resource_type,
                resource_id,
                ownership,
                allow_team_access=config.ownership.allow_team_access,
                required_team_roles=config.ownership.required_team_roles,
            )
        logger.debug(
            f"Ownership of {config.ownership.resource_type} not checked: no resource id"
        )

    return SecurityCheckResult.allow()


# =============================================================================
# Helpers
# =============================================================================


def create_security_config(
    base: str | SecurityMiddlewareConfig,
    **overrides: Any,
) -> SecurityMiddlewareConfig:
    """
    Derive a config from a named preset (see defaults.SECURITY_CONFIGS) or
    from another config.

    Permission and role lists are concatenated; the ownership requirement
    is replaced only if passed (``ownership=None`` clears it); anything
    else is replaced.

    Usage:
        create_security_config("pages_management", required_permissions=["pages.publish"])
    """
    if isinstance(base, str):
        from pagegate.security.defaults import SECURITY_CONFIGS
        if base not in SECURITY_CONFIGS:
            raise KeyError(f"Unknown security preset '{base}'")
        base = SECURITY_CONFIGS[base]

    merged = dict(overrides)
    merged["required_permissions"] = tuple(dict.fromkeys(
        base.required_permissions + tuple(overrides.get("required_permissions", ()))
    ))
    merged["allowed_roles"] = tuple(dict.fromkeys(
        base.allowed_roles + tuple(overrides.get("allowed_roles", ()))
    ))
    if "ownership" not in overrides:
        merged["ownership"] = base.ownership

    return dataclasses.replace(base, **merged)
