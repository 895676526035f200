"""
Local collaborator implementations for development and tests.

These are in-memory implementations that work without any
external services.
"""

from __future__ import annotations

from pagegate.storage.base import (
    Identity,
    ResourceOwner,
    ResourceStore,
    SessionProvider,
    TeamRoles,
)


# =============================================================================
# In-Memory Resource Store
# =============================================================================


class InMemoryResourceStore(ResourceStore):
    """In-memory users, teams and resources for development."""

    def __init__(self, default_role: str = "user"):
        self.default_role = default_role
        self._roles: dict[str, str] = {}
        # user_id -> team_id -> team role
        self._team_members: dict[str, dict[str, str]] = {}
        self._resources: dict[str, dict[str, ResourceOwner]] = {}

    # -------------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------------

    def set_role(self, user_id: str, role: str) -> None:
        self._roles[user_id] = role

    def add_team_member(self, team_id: str, user_id: str, role: str = TeamRoles.MEMBER) -> None:
        self._team_members.setdefault(user_id, {})[team_id] = role

    def remove_team_member(self, team_id: str, user_id: str) -> None:
        self._team_members.get(user_id, {}).pop(team_id, None)

    def add_resource(
        self,
        resource_type: str,
        resource_id: str,
        owner_user_id: str,
        owner_team_id: str | None = None,
    ) -> None:
        self._resources.setdefault(resource_type, {})[resource_id] = ResourceOwner(
            owner_user_id=owner_user_id,
            owner_team_id=owner_team_id,
        )

    def delete_resource(self, resource_type: str, resource_id: str) -> bool:
        if resource_id in self._resources.get(resource_type, {}):
            del self._resources[resource_type][resource_id]
            return True
        return False

    # -------------------------------------------------------------------------
    # ResourceStore
    # -------------------------------------------------------------------------

    async def get_user_role(self, user_id: str) -> str:
        return self._roles.get(user_id, self.default_role)

    async def get_user_team_ids(self, user_id: str) -> set[str]:
        return set(self._team_members.get(user_id, {}))

    async def get_team_role(self, user_id: str, team_id: str) -> str | None:
        return self._team_members.get(user_id, {}).get(team_id)

    async def get_resource_owner(
        self,
        resource_type: str,
        resource_id: str,
    ) -> ResourceOwner | None:
        return self._resources.get(resource_type, {}).get(resource_id)


# =============================================================================
# Static Session Provider
# =============================================================================


class StaticSessionProvider(SessionProvider):
    """
    Session provider holding one identity in memory.

    Call ``sign_in`` / ``sign_out`` to simulate identity changes.
    """

    def __init__(self, identity: Identity | None = None):
        self._identity = identity

    def sign_in(self, user_id: str, email: str | None = None, **extra) -> Identity:
        self._identity = Identity(user_id=user_id, email=email, **extra)
        return self._identity

    def sign_out(self) -> None:
        self._identity = None

    async def get_current_identity(self) -> Identity | None:
        return self._identity
