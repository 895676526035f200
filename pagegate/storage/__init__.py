"""
Collaborator interfaces.

- SessionProvider → identity/session backend (Supabase auth, JWT, ...)
- ResourceStore   → users, teams and resource ownership
"""

from pagegate.storage.base import (
    Identity,
    ResourceOwner,
    ResourceStore,
    SessionProvider,
    ResourceTypes,
    TeamRoles,
)
from pagegate.storage.local import InMemoryResourceStore, StaticSessionProvider

__all__ = [
    "Identity",
    "ResourceOwner",
    "ResourceStore",
    "SessionProvider",
    "ResourceTypes",
    "TeamRoles",
    "InMemoryResourceStore",
    "StaticSessionProvider",
]
