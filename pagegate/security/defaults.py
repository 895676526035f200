"""
Default policy for the landing-page product.

The engine itself is vocabulary-agnostic. This module is the product's
configuration: its role ladder, permission tokens, the role table and
the named middleware presets used by screens and endpoints.
"""

from __future__ import annotations

from pagegate.security.policies import (
    Combinator,
    OwnershipRequirement,
    SecurityMiddlewareConfig,
)
from pagegate.security.roles import PolicyTable
from pagegate.storage.base import ResourceTypes, TeamRoles


class Roles:
    """Platform-wide roles, lowest first."""

    GUEST = "guest"
    USER = "user"
    PRO_USER = "pro_user"
    TEAM_ADMIN = "team_admin"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Permissions:
    """Permission tokens, formatted as ``<domain>.<action>``."""

    # Pages
    PAGES_VIEW_OWN = "pages.view_own"
    PAGES_VIEW_TEAM = "pages.view_team"
    PAGES_VIEW_ALL = "pages.view_all"
    PAGES_CREATE = "pages.create"
    PAGES_EDIT_OWN = "pages.edit_own"
    PAGES_EDIT_TEAM = "pages.edit_team"
    PAGES_EDIT_ALL = "pages.edit_all"
    PAGES_DELETE_OWN = "pages.delete_own"
    PAGES_DELETE_TEAM = "pages.delete_team"
    PAGES_DELETE_ALL = "pages.delete_all"
    PAGES_PUBLISH = "pages.publish"

    # Resources
    RESOURCES_VIEW_OWN = "resources.view_own"
    RESOURCES_VIEW_TEAM = "resources.view_team"
    RESOURCES_CREATE = "resources.create"
    RESOURCES_EDIT_OWN = "resources.edit_own"
    RESOURCES_DELETE_OWN = "resources.delete_own"
    RESOURCES_DELETE_TEAM = "resources.delete_team"

    # Analytics
    ANALYTICS_VIEW_OWN = "analytics.view_own"
    ANALYTICS_VIEW_TEAM = "analytics.view_team"
    ANALYTICS_VIEW_ALL = "analytics.view_all"
    ANALYTICS_EXPORT = "analytics.export"

    # Teams
    TEAMS_VIEW = "teams.view"
    TEAMS_CREATE = "teams.create"
    TEAMS_MANAGE = "teams.manage"
    TEAMS_DELETE = "teams.delete"
    TEAMS_INVITE = "teams.invite"

    # Email captures
    EMAIL_CAPTURES_VIEW_OWN = "email_captures.view_own"
    EMAIL_CAPTURES_VIEW_TEAM = "email_captures.view_team"
    EMAIL_CAPTURES_EXPORT = "email_captures.export"

    # Webhooks (pro+)
    WEBHOOKS_VIEW = "webhooks.view"
    WEBHOOKS_CREATE = "webhooks.create"
    WEBHOOKS_MANAGE = "webhooks.manage"
    WEBHOOKS_DELETE = "webhooks.delete"

    # Custom domains (pro+)
    DOMAINS_VIEW = "domains.view"
    DOMAINS_CREATE = "domains.create"
    DOMAINS_MANAGE = "domains.manage"
    DOMAINS_DELETE = "domains.delete"

    # Settings
    SETTINGS_VIEW = "settings.view"
    SETTINGS_EDIT = "settings.edit"
    SETTINGS_BILLING = "settings.billing"

    # Admin console
    ADMIN_ACCESS = "admin.access"
    ADMIN_USERS_VIEW = "admin.users.view"
    ADMIN_USERS_EDIT = "admin.users.edit"
    ADMIN_USERS_DELETE = "admin.users.delete"
    ADMIN_CONTENT_MODERATE = "admin.content.moderate"
    ADMIN_SETTINGS = "admin.settings"


P = Permissions


# =============================================================================
# Role Table
# =============================================================================


ROLE_LEVELS: dict[str, int] = {
    Roles.GUEST: 0,
    Roles.USER: 1,
    Roles.PRO_USER: 2,
    Roles.TEAM_ADMIN: 3,
    Roles.ADMIN: 4,
    Roles.SUPER_ADMIN: 5,
}

_USER = {
    P.PAGES_VIEW_OWN,
    P.PAGES_CREATE,
    P.PAGES_EDIT_OWN,
    P.PAGES_DELETE_OWN,
    P.PAGES_PUBLISH,
    P.RESOURCES_VIEW_OWN,
    P.RESOURCES_CREATE,
    P.RESOURCES_EDIT_OWN,
    P.RESOURCES_DELETE_OWN,
    P.ANALYTICS_VIEW_OWN,
    P.EMAIL_CAPTURES_VIEW_OWN,
    P.SETTINGS_VIEW,
    P.SETTINGS_EDIT,
}

_PRO_USER = _USER | {
    P.ANALYTICS_EXPORT,
    P.EMAIL_CAPTURES_EXPORT,
    P.WEBHOOKS_VIEW,
    P.WEBHOOKS_CREATE,
    P.WEBHOOKS_MANAGE,
    P.WEBHOOKS_DELETE,
    P.DOMAINS_VIEW,
    P.DOMAINS_CREATE,
    P.DOMAINS_MANAGE,
    P.DOMAINS_DELETE,
    P.SETTINGS_BILLING,
}

_TEAM_ADMIN = _PRO_USER | {
    P.PAGES_VIEW_TEAM,
    P.PAGES_EDIT_TEAM,
    P.PAGES_DELETE_TEAM,
    P.RESOURCES_VIEW_TEAM,
    P.RESOURCES_DELETE_TEAM,
    P.ANALYTICS_VIEW_TEAM,
    P.EMAIL_CAPTURES_VIEW_TEAM,
    P.TEAMS_VIEW,
    P.TEAMS_CREATE,
    P.TEAMS_MANAGE,
    P.TEAMS_INVITE,
}

# Everything except the super-admin-only user deletion and settings
_ADMIN = _TEAM_ADMIN | {
    P.PAGES_VIEW_ALL,
    P.PAGES_EDIT_ALL,
    P.PAGES_DELETE_ALL,
    P.ANALYTICS_VIEW_ALL,
    P.TEAMS_DELETE,
    P.ADMIN_ACCESS,
    P.ADMIN_USERS_VIEW,
    P.ADMIN_USERS_EDIT,
    P.ADMIN_CONTENT_MODERATE,
}

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    Roles.GUEST: frozenset(),
    Roles.USER: frozenset(_USER),
    Roles.PRO_USER: frozenset(_PRO_USER),
    Roles.TEAM_ADMIN: frozenset(_TEAM_ADMIN),
    Roles.ADMIN: frozenset(_ADMIN),
    # Bypass, see roles.role_has_permission
    Roles.SUPER_ADMIN: frozenset(),
}

DEFAULT_POLICY = PolicyTable(
    role_levels=ROLE_LEVELS,
    permissions=ROLE_PERMISSIONS,
    super_admin_role=Roles.SUPER_ADMIN,
    guest_role=Roles.GUEST,
)


# =============================================================================
# Middleware Presets
# =============================================================================


SECURITY_CONFIGS: dict[str, SecurityMiddlewareConfig] = {
    # No authentication required
    "public": SecurityMiddlewareConfig(require_auth=False),
    "authenticated": SecurityMiddlewareConfig(),
    "pages_management": SecurityMiddlewareConfig(
        required_permissions=(P.PAGES_VIEW_OWN, P.PAGES_VIEW_TEAM, P.PAGES_VIEW_ALL),
        combinator=Combinator.ANY,
        ownership=OwnershipRequirement(ResourceTypes.PAGES, allow_team_access=True),
    ),
    "resources_management": SecurityMiddlewareConfig(
        required_permissions=(P.RESOURCES_VIEW_OWN,),
        ownership=OwnershipRequirement(ResourceTypes.RESOURCES),
    ),
    "analytics": SecurityMiddlewareConfig(
        required_permissions=(P.ANALYTICS_VIEW_OWN, P.ANALYTICS_VIEW_TEAM, P.ANALYTICS_VIEW_ALL),
        combinator=Combinator.ANY,
    ),
    "webhooks": SecurityMiddlewareConfig(
        required_permissions=(P.WEBHOOKS_VIEW,),
        ownership=OwnershipRequirement(ResourceTypes.WEBHOOKS),
    ),
    "custom_domains": SecurityMiddlewareConfig(
        required_permissions=(P.DOMAINS_VIEW,),
        ownership=OwnershipRequirement(ResourceTypes.CUSTOM_DOMAINS),
    ),
    "team_management": SecurityMiddlewareConfig(
        required_permissions=(P.TEAMS_VIEW,),
        ownership=OwnershipRequirement(ResourceTypes.TEAMS, allow_team_access=True),
    ),
    # Changing a team takes an owner or admin of that team, not just a member
    "team_administration": SecurityMiddlewareConfig(
        required_permissions=(P.TEAMS_MANAGE,),
        ownership=OwnershipRequirement(
            ResourceTypes.TEAMS,
            allow_team_access=True,
            required_team_roles=(TeamRoles.OWNER, TeamRoles.ADMIN),
        ),
    ),
    "admin": SecurityMiddlewareConfig(
        required_permissions=(P.ADMIN_ACCESS,),
        min_role_level=ROLE_LEVELS[Roles.ADMIN],
    ),
    "super_admin": SecurityMiddlewareConfig(
        allowed_roles=(Roles.SUPER_ADMIN,),
        min_role_level=ROLE_LEVELS[Roles.SUPER_ADMIN],
    ),
}
