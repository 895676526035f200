"""
Security context - the "who is asking" snapshot.

This is the immutable object every check runs against. It is assembled
from the session identity, the user's role and the user's team
memberships, and rebuilt whenever the session identity changes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from pagegate.integrations.sentry import capture_exception, set_user
from pagegate.security.roles import (
    PermissionValue,
    PolicyTable,
    Role,
    get_permissions_for_role,
    get_role_level,
    has_role,
    is_super_admin,
    meets_role_level,
    role_has_all_permissions,
    role_has_any_permission,
    role_has_permission,
)
from pagegate.storage.base import Identity, ResourceStore, SessionProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecurityContext:
    """
    Authorization context for one principal at one point in time.

    ``role_level`` and ``permissions`` are always derived from ``role``
    through the policy table; they cannot be passed in. An unauthenticated
    context always carries the guest role and no user or teams.

    Usage:
        if ctx.can("pages.create"):
            ...
        if ctx.has_min_role_level(4):
            ...
    """

    policy: PolicyTable = field(repr=False, compare=False)

    # Who
    is_authenticated: bool = False
    user_id: str | None = None
    email: str | None = None

    # What they can do
    role: Role | None = None
    team_ids: frozenset[str] = frozenset()

    # Carried through, not interpreted
    tenant_id: str | None = None
    subscription_plan: str = "free"

    # Derived
    role_level: int = field(init=False)
    permissions: frozenset[PermissionValue] = field(init=False)

    def __post_init__(self):
        if not self.is_authenticated or self.user_id is None:
            object.__setattr__(self, "is_authenticated", False)
            object.__setattr__(self, "user_id", None)
            object.__setattr__(self, "role", self.policy.guest_role)
            object.__setattr__(self, "team_ids", frozenset())
        elif self.role is None:
            object.__setattr__(self, "role", self.policy.guest_role)
        else:
            object.__setattr__(self, "team_ids", frozenset(self.team_ids))

        object.__setattr__(self, "role_level", get_role_level(self.role, self.policy))
        object.__setattr__(self, "permissions", get_permissions_for_role(self.role, self.policy))

    @property
    def is_super_admin(self) -> bool:
        return is_super_admin(self.role, self.policy)

    def can(self, permission: PermissionValue) -> bool:
        """Check if the principal has a permission."""
        return role_has_permission(self.role, permission, self.policy)

    def can_any(self, *permissions: PermissionValue) -> bool:
        """Check if the principal has ANY of the permissions."""
        return role_has_any_permission(self.role, permissions, self.policy)

    def can_all(self, *permissions: PermissionValue) -> bool:
        """Check if the principal has ALL of the permissions."""
        return role_has_all_permissions(self.role, permissions, self.policy)

    def has_min_role_level(self, level: int) -> bool:
        return meets_role_level(self.role, level, self.policy)

    def has_role(self, roles: Iterable[Role]) -> bool:
        return has_role(self.role, roles, self.policy)

    def is_member_of(self, team_id: str) -> bool:
        return team_id in self.team_ids

    @classmethod
    def anonymous(cls, policy: PolicyTable) -> SecurityContext:
        """Create the signed-out (guest) context."""
        return cls(policy=policy)

    @classmethod
    def for_identity(
        cls,
        policy: PolicyTable,
        identity: Identity,
        role: Role,
        team_ids: Iterable[str] = (),
    ) -> SecurityContext:
        return cls(
            policy=policy,
            is_authenticated=True,
            user_id=identity.user_id,
            email=identity.email,
            role=role,
            team_ids=frozenset(team_ids),
            tenant_id=identity.tenant_id,
            subscription_plan=identity.subscription_plan,
        )


# =============================================================================
# Context Resolution
# =============================================================================


async def assemble_context(
    sessions: SessionProvider,
    store: ResourceStore,
    policy: PolicyTable,
) -> SecurityContext:
    """
    Build a complete context for whoever the session says is signed in.

    1. Identity from the session provider (none → guest)
    2. Role and team ids, fetched concurrently
    3. Level and permissions derived from the role

    Any failure collapses the result to the guest context, never to a
    partially populated one.
    """
    try:
        identity = await sessions.get_current_identity()
    except Exception as e:
        capture_exception(e, stage="session")
        return SecurityContext.anonymous(policy)

    if identity is None:
        return SecurityContext.anonymous(policy)

    # Unusable store answers (a None team set, a non-string role) fail here too
    try:
        role, team_ids = await asyncio.gather(
            store.get_user_role(identity.user_id),
            store.get_user_team_ids(identity.user_id),
        )
        if not isinstance(role, str):
            raise TypeError(f"Role must be a string, got {type(role).__name__}")
        context = SecurityContext.for_identity(policy, identity, role, team_ids)
    except Exception as e:
        capture_exception(e, stage="role_and_teams", user_id=getattr(identity, "user_id", None))
        return SecurityContext.anonymous(policy)

    if role not in policy.role_levels:
        logger.warning(f"User {identity.user_id} has unknown role '{role}'")

    return context


class ContextState(str, Enum):
    """Lifecycle of an assembler."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


class SecurityContextAssembler:
    """
    Owns the current SecurityContext for one session.

    Call ``refresh()`` on start and ``on_identity_changed()`` whenever the
    session provider reports a sign-in or sign-out. Each refresh takes a
    new generation number; only the newest generation may publish, so a
    slow lookup for a previous identity can never overwrite the context
    of a newer one.

    Consumers read ``context``; the published snapshot is immutable.
    """

    def __init__(
        self,
        sessions: SessionProvider,
        store: ResourceStore,
        policy: PolicyTable,
    ):
        self.sessions = sessions
        self.store = store
        self.policy = policy

        self._context = SecurityContext.anonymous(policy)
        self._state = ContextState.UNLOADED
        self._generation = 0
        self._published_generation = 0

    @property
    def context(self) -> SecurityContext:
        """The last published context (guest until the first load)."""
        return self._context

    @property
    def state(self) -> ContextState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state == ContextState.LOADING

    @property
    def generation(self) -> int:
        return self._generation

    async def refresh(self) -> SecurityContext:
        """
        Rebuild the context from the current session.

        Returns the published context. If a newer refresh started while
        this one was waiting on the store, this result is discarded and the
        currently published context is returned instead.
        """
        self._generation += 1
        generation = self._generation
        self._state = ContextState.LOADING

        try:
            context = await assemble_context(self.sessions, self.store, self.policy)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._state = (
                    ContextState.READY if self._published_generation else ContextState.UNLOADED
                )
            raise

        if generation != self._generation:
            logger.debug(
                f"Discarding stale context for generation {generation} "
                f"(current is {self._generation})"
            )
            return self._context

        self._context = context
        self._published_generation = generation
        self._state = ContextState.READY

        if context.user_id:
            set_user(context.user_id, context.email)

        return context

    async def on_identity_changed(self) -> SecurityContext:
        """Hook for session change notifications (sign-in, sign-out, switch)."""
        return await self.refresh()
