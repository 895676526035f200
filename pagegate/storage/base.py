"""
Collaborator interfaces.

The engine never persists anything itself. Everything it needs to know
about principals and resources comes through these two interfaces, which
the embedding application implements on top of its real backend.

- SessionProvider → who is signed in right now
- ResourceStore   → roles, team memberships, resource ownership
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict


# =============================================================================
# Records
# =============================================================================


class Identity(BaseModel):
    """The signed-in principal as reported by the session provider."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None

    # Carried through to the context, never interpreted by the engine
    tenant_id: str | None = None
    subscription_plan: str = "free"


class ResourceOwner(BaseModel):
    """Ownership record of a single resource."""

    model_config = ConfigDict(frozen=True)

    owner_user_id: str
    owner_team_id: str | None = None


# =============================================================================
# Interfaces
# =============================================================================


class SessionProvider(ABC):
    """
    Source of the current session identity.

    Invoked on assembler start and on every identity-change notification.
    """

    @abstractmethod
    async def get_current_identity(self) -> Identity | None:
        """Return the signed-in identity, or None when signed out."""
        pass


class ResourceStore(ABC):
    """
    Read access to users, teams and resources.

    Implementations may raise on transport/backend failures; the engine
    turns those into denials at its own boundaries. Retry policy, if any,
    belongs here and not in the engine.
    """

    @abstractmethod
    async def get_user_role(self, user_id: str) -> str:
        """Get the role token assigned to a user."""
        pass

    @abstractmethod
    async def get_user_team_ids(self, user_id: str) -> set[str]:
        """Get the ids of every team the user belongs to."""
        pass

    @abstractmethod
    async def get_team_role(self, user_id: str, team_id: str) -> str | None:
        """Get the user's role inside a team, or None if not a member."""
        pass

    @abstractmethod
    async def get_resource_owner(
        self,
        resource_type: str,
        resource_id: str,
    ) -> ResourceOwner | None:
        """Get the ownership record of a resource, or None if it doesn't exist."""
        pass


# =============================================================================
# Team Roles
# =============================================================================


class TeamRoles:
    """Roles a member can hold inside one team (independent of platform roles)."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# =============================================================================
# Resource Types
# =============================================================================


class ResourceTypes:
    """Standard resource type names used in ownership requirements."""

    PAGES = "pages"
    RESOURCES = "resources"
    EMAIL_CAPTURES = "email_captures"
    WEBHOOKS = "webhooks"
    CUSTOM_DOMAINS = "custom_domains"
    TEAMS = "teams"
    TEAM_MEMBERS = "team_members"
    PROFILES = "profiles"
