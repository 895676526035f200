"""
Resource ownership (IS this yours?).

Ownership is checked independently of role and permission:
- Direct ownership: the resource's owner is the principal
- Team ownership: the resource's owning team is one of the principal's teams

Every check is a point-in-time read against the resource store. The
guarded action must re-validate if it needs transactional guarantees.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from pagegate.integrations.sentry import capture_exception
from pagegate.security.results import DeniedReason, SecurityCheckResult, SecurityLayer
from pagegate.storage.base import ResourceOwner, ResourceStore

logger = logging.getLogger(__name__)


class OwnershipLookupError(Exception):
    """Raised internally when the store could not answer an ownership query."""
    pass


class OwnershipResolver:
    """
    Decides whether a user owns a resource, directly or via a team.

    Stateless: safe to share and to call concurrently for different
    resources. Store failures never escape; they resolve to "not owner".
    """

    def __init__(self, store: ResourceStore):
        self.store = store

    # =========================================================================
    # Store access
    # =========================================================================

    async def _get_owner(self, resource_type: str, resource_id: str) -> ResourceOwner | None:
        try:
            return await self.store.get_resource_owner(resource_type, resource_id)
        except Exception as e:
            capture_exception(e, resource_type=resource_type, resource_id=resource_id)
            raise OwnershipLookupError(f"Could not load owner of {resource_type}/{resource_id}") from e

    async def _get_team_ids(self, user_id: str) -> set[str]:
        try:
            return set(await self.store.get_user_team_ids(user_id))
        except Exception as e:
            capture_exception(e, user_id=user_id)
            raise OwnershipLookupError(f"Could not load teams of user {user_id}") from e

    async def _get_team_role(self, user_id: str, team_id: str) -> str | None:
        try:
            return await self.store.get_team_role(user_id, team_id)
        except Exception as e:
            capture_exception(e, user_id=user_id, team_id=team_id)
            raise OwnershipLookupError(f"Could not load role of user {user_id} in team {team_id}") from e

    # =========================================================================
    # Boolean checks
    # =========================================================================

    async def is_resource_owner(self, resource_type: str, resource_id: str, user_id: str) -> bool:
        """Check if the user directly owns the resource. Missing resource → False."""
        try:
            owner = await self._get_owner(resource_type, resource_id)
        except OwnershipLookupError:
            return False
        return owner is not None and owner.owner_user_id == user_id

    async def is_team_member(self, user_id: str, team_id: str) -> bool:
        try:
            return team_id in await self._get_team_ids(user_id)
        except OwnershipLookupError:
            return False

    async def has_team_role(self, user_id: str, team_id: str, roles: Iterable[str]) -> bool:
        """Check if the user holds one of ``roles`` inside the team. Non-members → False."""
        try:
            role = await self._get_team_role(user_id, team_id)
        except OwnershipLookupError:
            return False
        return role is not None and role in tuple(roles)

    async def is_team_resource_owner(
        self,
        resource_type: str,
        resource_id: str,
        user_id: str,
    ) -> bool:
        """
        Check if the resource belongs to one of the user's teams.

        Team membership is fetched from the store, not taken from a
        possibly stale context.
        """
        try:
            owner = await self._get_owner(resource_type, resource_id)
        except OwnershipLookupError:
            return False
        if owner is None or not owner.owner_team_id:
            return False
        return await self.is_team_member(user_id, owner.owner_team_id)

    # =========================================================================
    # Verdicts
    # =========================================================================

    async def check_ownership(
        self,
        resource_type: str,
        resource_id: str,
        user_id: str,
        allow_team_access: bool = False,
        required_team_roles: Iterable[str] = (),
    ) -> SecurityCheckResult:
        """
        Ownership verdict for one resource.

        Allowed if the user owns it directly, or (when ``allow_team_access``)
        if it belongs to one of the user's teams. With ``required_team_roles``
        plain membership is not enough: the user must hold one of those
        roles in the owning team. A missing resource is denied as
        ``resource_not_found``; anything else as ``not_owner``.
        """
        try:
            owner = await self._get_owner(resource_type, resource_id)
        except OwnershipLookupError as e:
            return SecurityCheckResult.deny(
                DeniedReason.NOT_OWNER,
                SecurityLayer.OWNERSHIP,
                details=str(e),
            )

        if owner is None:
            return SecurityCheckResult.deny(
                DeniedReason.RESOURCE_NOT_FOUND,
                SecurityLayer.OWNERSHIP,
                details=f"{resource_type} {resource_id} does not exist",
            )

        if owner.owner_user_id == user_id:
            return SecurityCheckResult.allow()

        if allow_team_access and owner.owner_team_id:
            required_team_roles = tuple(required_team_roles)
            if required_team_roles:
                in_team = await self.has_team_role(user_id, owner.owner_team_id, required_team_roles)
            else:
                in_team = await self.is_team_member(user_id, owner.owner_team_id)
            if in_team:
                return SecurityCheckResult.allow()

        scope = "direct or via team" if allow_team_access else "direct"
        return SecurityCheckResult.deny(
            DeniedReason.NOT_OWNER,
            SecurityLayer.OWNERSHIP,
            details=f"User does not own {resource_type} {resource_id} ({scope})",
        )

    async def check_ownership_many(
        self,
        resource_type: str,
        resource_ids: Iterable[str],
        user_id: str,
        allow_team_access: bool = False,
        required_team_roles: Iterable[str] = (),
    ) -> dict[str, bool]:
        """Check several resources concurrently. Returns id → allowed."""
        ids = list(dict.fromkeys(resource_ids))
        required_team_roles = tuple(required_team_roles)
        results = await asyncio.gather(*(
            self.check_ownership(resource_type, rid, user_id, allow_team_access, required_team_roles)
            for rid in ids
        ))
        return {rid: result.allowed for rid, result in zip(ids, results)}
