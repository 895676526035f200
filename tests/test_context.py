"""
Tests for security contexts and their assembly lifecycle.
"""

import asyncio

import pytest

from conftest import FailingStore, GatedStore
from pagegate.security.context import (
    ContextState,
    SecurityContext,
    SecurityContextAssembler,
    assemble_context,
)
from pagegate.storage.base import Identity, SessionProvider
from pagegate.storage.local import InMemoryResourceStore, StaticSessionProvider


# =============================================================================
# SecurityContext Tests
# =============================================================================


class TestSecurityContext:
    def test_anonymous_is_guest(self, policy):
        ctx = SecurityContext.anonymous(policy)
        assert not ctx.is_authenticated
        assert ctx.user_id is None
        assert ctx.role == "guest"
        assert ctx.role_level == 0
        assert ctx.permissions == frozenset()
        assert ctx.team_ids == frozenset()

    def test_derived_fields_follow_role(self, make_context):
        ctx = make_context(role="admin", team_ids=["t1", "t2"])
        assert ctx.role_level == 30
        assert ctx.permissions == {"pages.delete"}
        assert ctx.team_ids == {"t1", "t2"}

    def test_derived_fields_cannot_be_passed(self, policy):
        with pytest.raises(TypeError):
            SecurityContext(policy=policy, is_authenticated=True, user_id="u1", role="member", role_level=99)

    def test_unauthenticated_context_is_forced_to_guest(self, policy):
        ctx = SecurityContext(policy=policy, is_authenticated=False, user_id="u1", role="admin", team_ids={"t1"})
        assert ctx.user_id is None
        assert ctx.role == "guest"
        assert ctx.team_ids == frozenset()
        assert not ctx.can("pages.delete")

    def test_is_immutable(self, make_context):
        ctx = make_context()
        with pytest.raises(AttributeError):
            ctx.role = "admin"

    def test_queries(self, make_context):
        admin = make_context(role="admin", team_ids=["t1"])
        assert admin.can("pages.delete")
        assert admin.can_any("pages.create", "pages.delete")
        assert not admin.can_all("pages.create", "pages.delete")
        assert admin.has_min_role_level(30)
        assert admin.has_role(["admin"])
        assert admin.is_member_of("t1")
        assert not admin.is_super_admin

    def test_super_admin_context(self, make_context):
        root = make_context(role="super_admin")
        assert root.is_super_admin
        assert root.permissions == frozenset()
        assert root.can("pages.delete")

    def test_carries_tenant_and_plan(self, policy):
        identity = Identity(user_id="u1", tenant_id="acme", subscription_plan="business")
        ctx = SecurityContext.for_identity(policy, identity, "member")
        assert ctx.tenant_id == "acme"
        assert ctx.subscription_plan == "business"

    def test_equal_snapshots_compare_equal(self, make_context):
        assert make_context(team_ids=["a", "b"]) == make_context(team_ids=["b", "a"])


# =============================================================================
# Assembly Tests
# =============================================================================


class TestAssembleContext:
    @pytest.mark.asyncio
    async def test_signed_out(self, sessions, store, policy):
        ctx = await assemble_context(sessions, store, policy)
        assert ctx == SecurityContext.anonymous(policy)

    @pytest.mark.asyncio
    async def test_signed_in(self, sessions, store, policy):
        sessions.sign_in("alice", "alice@example.com")
        store.set_role("alice", "admin")
        store.add_team_member("t1", "alice")

        ctx = await assemble_context(sessions, store, policy)
        assert ctx.is_authenticated
        assert ctx.user_id == "alice"
        assert ctx.email == "alice@example.com"
        assert ctx.role == "admin"
        assert ctx.team_ids == {"t1"}

    @pytest.mark.asyncio
    async def test_store_failure_collapses_to_guest(self, sessions, policy):
        sessions.sign_in("alice")
        ctx = await assemble_context(sessions, FailingStore(), policy)
        assert not ctx.is_authenticated
        assert ctx.role == "guest"

    @pytest.mark.asyncio
    async def test_team_failure_alone_collapses_to_guest(self, sessions, policy):
        class NoTeams(InMemoryResourceStore):
            async def get_user_team_ids(self, user_id):
                raise ConnectionError("boom")

        store = NoTeams()
        store.set_role("alice", "admin")
        sessions.sign_in("alice")

        ctx = await assemble_context(sessions, store, policy)
        assert not ctx.is_authenticated
        assert ctx.role == "guest"

    @pytest.mark.asyncio
    async def test_unusable_team_ids_collapse_to_guest(self, sessions, policy):
        class NoneTeams(InMemoryResourceStore):
            async def get_user_team_ids(self, user_id):
                return None

        sessions.sign_in("alice")
        ctx = await assemble_context(sessions, NoneTeams(default_role="admin"), policy)
        assert ctx == SecurityContext.anonymous(policy)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [None, ["admin"], 30])
    async def test_unusable_role_collapses_to_guest(self, sessions, policy, role):
        class OddRoles(InMemoryResourceStore):
            async def get_user_role(self, user_id):
                return role

        sessions.sign_in("alice")
        ctx = await assemble_context(sessions, OddRoles(), policy)
        assert not ctx.is_authenticated
        assert ctx.role == "guest"

    @pytest.mark.asyncio
    async def test_session_failure_collapses_to_guest(self, store, policy):
        class BrokenSessions(SessionProvider):
            async def get_current_identity(self):
                raise RuntimeError("session backend down")

        ctx = await assemble_context(BrokenSessions(), store, policy)
        assert not ctx.is_authenticated

    @pytest.mark.asyncio
    async def test_role_and_teams_fetched_concurrently(self, sessions, policy):
        class Rendezvous(InMemoryResourceStore):
            """Each lookup waits for the other to have started."""

            def __init__(self):
                super().__init__(default_role="member")
                self.role_started = asyncio.Event()
                self.teams_started = asyncio.Event()

            async def get_user_role(self, user_id):
                self.role_started.set()
                await self.teams_started.wait()
                return await super().get_user_role(user_id)

            async def get_user_team_ids(self, user_id):
                self.teams_started.set()
                await self.role_started.wait()
                return await super().get_user_team_ids(user_id)

        sessions.sign_in("alice")
        ctx = await asyncio.wait_for(assemble_context(sessions, Rendezvous(), policy), timeout=1)
        assert ctx.role == "member"


# =============================================================================
# Assembler Lifecycle Tests
# =============================================================================


class TestSecurityContextAssembler:
    @pytest.mark.asyncio
    async def test_state_machine(self, sessions, store, policy):
        assembler = SecurityContextAssembler(sessions, store, policy)
        assert assembler.state == ContextState.UNLOADED
        assert assembler.context == SecurityContext.anonymous(policy)

        sessions.sign_in("alice")
        ctx = await assembler.refresh()
        assert assembler.state == ContextState.READY
        assert assembler.context is ctx
        assert ctx.user_id == "alice"

    @pytest.mark.asyncio
    async def test_loading_while_in_flight(self, sessions, policy):
        store = GatedStore()
        gate = store.gate("alice")
        sessions.sign_in("alice")
        assembler = SecurityContextAssembler(sessions, store, policy)

        task = asyncio.create_task(assembler.refresh())
        await store.started["alice"].wait()
        assert assembler.is_loading
        assert not assembler.context.is_authenticated

        gate.set()
        await task
        assert assembler.state == ContextState.READY
        assert assembler.context.user_id == "alice"

    @pytest.mark.asyncio
    async def test_identity_change_rebuilds(self, sessions, store, policy):
        store.set_role("alice", "admin")
        assembler = SecurityContextAssembler(sessions, store, policy)

        sessions.sign_in("alice")
        assert (await assembler.on_identity_changed()).role == "admin"

        sessions.sign_out()
        ctx = await assembler.on_identity_changed()
        assert not ctx.is_authenticated
        assert assembler.generation == 2

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, policy):
        store = GatedStore()
        store.set_role("alice", "admin")
        store.set_role("bob", "member")
        store.add_team_member("t-alice", "alice")
        gate = store.gate("alice")

        sessions = StaticSessionProvider()
        sessions.sign_in("alice")
        assembler = SecurityContextAssembler(sessions, store, policy)

        # Alice's build stalls on the role lookup
        stale = asyncio.create_task(assembler.refresh())
        await store.started["alice"].wait()

        # Sign out, then sign in as Bob; both complete first
        sessions.sign_out()
        await assembler.on_identity_changed()
        sessions.sign_in("bob")
        await assembler.on_identity_changed()
        assert assembler.context.user_id == "bob"

        # Alice's lookups finally resolve
        gate.set()
        returned = await stale

        assert returned.user_id == "bob"
        ctx = assembler.context
        assert ctx.user_id == "bob"
        assert ctx.role == "member"
        assert ctx.team_ids == frozenset()
        assert assembler.state == ContextState.READY

    @pytest.mark.asyncio
    async def test_cancelled_first_load_returns_to_unloaded(self, sessions, policy):
        store = GatedStore()
        store.gate("alice")
        sessions.sign_in("alice")
        assembler = SecurityContextAssembler(sessions, store, policy)

        task = asyncio.create_task(assembler.refresh())
        await store.started["alice"].wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert assembler.state == ContextState.UNLOADED
        assert not assembler.context.is_authenticated
