"""Shared test fixtures."""

import asyncio

import pytest

from pagegate.security.context import SecurityContext
from pagegate.security.engine import SecurityEngine
from pagegate.security.roles import PolicyTable
from pagegate.storage.base import Identity, ResourceStore
from pagegate.storage.local import InMemoryResourceStore, StaticSessionProvider


# =============================================================================
# Test Stores
# =============================================================================


class FailingStore(ResourceStore):
    """Every lookup blows up."""

    async def get_user_role(self, user_id):
        raise ConnectionError("store unavailable")

    async def get_user_team_ids(self, user_id):
        raise ConnectionError("store unavailable")

    async def get_team_role(self, user_id, team_id):
        raise ConnectionError("store unavailable")

    async def get_resource_owner(self, resource_type, resource_id):
        raise ConnectionError("store unavailable")


class GatedStore(InMemoryResourceStore):
    """Role lookups for gated users wait until the test releases them."""

    def __init__(self):
        super().__init__()
        self.gates: dict[str, asyncio.Event] = {}
        self.started: dict[str, asyncio.Event] = {}

    def gate(self, user_id: str) -> asyncio.Event:
        self.gates[user_id] = asyncio.Event()
        self.started[user_id] = asyncio.Event()
        return self.gates[user_id]

    async def get_user_role(self, user_id):
        if user_id in self.gates:
            self.started[user_id].set()
            await self.gates[user_id].wait()
        return await super().get_user_role(user_id)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def policy():
    """Small table: member has nothing, admin can delete pages."""
    return PolicyTable(
        role_levels={"guest": 0, "member": 10, "admin": 30, "super_admin": 100},
        permissions={
            "guest": [],
            "member": [],
            "admin": ["pages.delete"],
            "super_admin": [],
        },
    )


@pytest.fixture
def store():
    return InMemoryResourceStore(default_role="member")


@pytest.fixture
def sessions():
    return StaticSessionProvider()


@pytest.fixture
def engine(policy, store):
    return SecurityEngine(policy, store)


@pytest.fixture
def make_context(policy):
    """Build an authenticated context directly."""

    def _make(user_id="u1", role="member", team_ids=()):
        return SecurityContext.for_identity(
            policy,
            Identity(user_id=user_id, email=f"{user_id}@example.com"),
            role,
            team_ids,
        )

    return _make


@pytest.fixture
def anonymous(policy):
    return SecurityContext.anonymous(policy)
