"""
Security engine - one object with every entry point.

Initialize once at startup with the policy table and the resource store,
then hand it to whatever needs to check access:

    engine = SecurityEngine(get_policy_table(), store)

    assembler = engine.assembler(session_provider)
    ctx = await assembler.refresh()

    engine.run_security_checks(ctx, SECURITY_CONFIGS["analytics"])
    await engine.check_resource(ctx, SECURITY_CONFIGS["pages_management"], page_id)
"""

from __future__ import annotations

from pagegate.security.context import (
    SecurityContext,
    SecurityContextAssembler,
    assemble_context,
)
from pagegate.security.ownership import OwnershipResolver
from pagegate.security import policies
from pagegate.security.policies import SecurityMiddlewareConfig
from pagegate.security.results import SecurityCheckResult
from pagegate.security.roles import PolicyTable
from pagegate.security import verdicts
from pagegate.storage.base import ResourceStore, SessionProvider


class SecurityEngine:
    """Binds a policy table and a resource store to the checker."""

    def __init__(self, policy: PolicyTable, store: ResourceStore):
        self.policy = policy
        self.store = store
        self.ownership = OwnershipResolver(store)

    # =========================================================================
    # Contexts
    # =========================================================================

    async def assemble(self, sessions: SessionProvider) -> SecurityContext:
        """One-shot context for a request."""
        return await assemble_context(sessions, self.store, self.policy)

    def assembler(self, sessions: SessionProvider) -> SecurityContextAssembler:
        """Long-lived context owner for a session."""
        return SecurityContextAssembler(sessions, self.store, self.policy)

    def anonymous(self) -> SecurityContext:
        return SecurityContext.anonymous(self.policy)

    # =========================================================================
    # Checks
    # =========================================================================

    def run_security_checks(
        self,
        context: SecurityContext,
        config: SecurityMiddlewareConfig,
    ) -> SecurityCheckResult:
        return policies.run_security_checks(context, config)

    async def check_resource(
        self,
        context: SecurityContext,
        config: SecurityMiddlewareConfig,
        resource_id: str,
    ) -> SecurityCheckResult:
        return await policies.check_resource(context, config, resource_id, self.ownership)

    async def run_full_security_check(
        self,
        context: SecurityContext,
        config: SecurityMiddlewareConfig,
        resource_id: str | None = None,
    ) -> SecurityCheckResult:
        return await policies.run_full_security_check(
            context, config, resource_id, ownership=self.ownership
        )

    async def check_ownership(
        self,
        context: SecurityContext,
        resource_type: str,
        resource_id: str,
        allow_team_access: bool = False,
        required_team_roles: tuple[str, ...] = (),
    ) -> SecurityCheckResult:
        return await policies.run_ownership_check(
            context, resource_type, resource_id, self.ownership, allow_team_access, required_team_roles
        )

    async def require_team_membership(
        self,
        context: SecurityContext,
        team_id: str,
        roles: tuple[str, ...] = (),
    ) -> SecurityCheckResult:
        return await policies.require_team_membership(context, team_id, self.ownership, roles)

    async def is_owner(self, context: SecurityContext, resource_type: str, resource_id: str) -> bool:
        if not context.user_id:
            return False
        return await self.ownership.is_resource_owner(resource_type, resource_id, context.user_id)

    async def is_team_owner(self, context: SecurityContext, resource_type: str, resource_id: str) -> bool:
        if not context.user_id:
            return False
        return await self.ownership.is_team_resource_owner(resource_type, resource_id, context.user_id)

    # =========================================================================
    # Translation
    # =========================================================================

    @staticmethod
    def get_error_message(result: SecurityCheckResult) -> str:
        return verdicts.get_error_message(result)

    @staticmethod
    def get_redirect_path(result: SecurityCheckResult, fallback: str | None = None) -> str:
        return verdicts.get_redirect_path(result, fallback)
