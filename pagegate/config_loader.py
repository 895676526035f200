"""
Policy table loader.

Loads a role/permission table from YAML so each deployment can supply
its own vocabulary. File format:

    super_admin_role: super_admin   # optional
    guest_role: guest               # optional
    role_levels:
      guest: 0
      member: 10
      admin: 30
      super_admin: 100
    permissions:
      guest: []
      member: [pages.create]
      admin: [pages.create, pages.delete]
      super_admin: []
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pagegate.config import get_settings
from pagegate.security.roles import PolicyConfigError, PolicyTable

logger = logging.getLogger(__name__)


def policy_from_dict(data: dict[str, Any]) -> PolicyTable:
    """Build a validated policy table from plain data."""
    if not isinstance(data, dict):
        raise PolicyConfigError("Policy must be a mapping")

    permissions = {
        role: perms or []
        for role, perms in (data.get("permissions") or {}).items()
    }

    try:
        return PolicyTable(
            role_levels=data.get("role_levels") or {},
            permissions=permissions,
            **{
                key: data[key]
                for key in ("super_admin_role", "guest_role")
                if key in data
            },
        )
    except ValidationError as e:
        raise PolicyConfigError(f"Invalid policy table: {e}") from e


def load_policy(path: Path | str) -> PolicyTable:
    """Load a policy table from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise PolicyConfigError(f"Policy file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PolicyConfigError(f"Could not parse {path}: {e}") from e

    policy = policy_from_dict(data)
    logger.info(f"Loaded policy with {len(policy.role_levels)} roles from {path}")
    return policy


@lru_cache
def get_policy_table() -> PolicyTable:
    """
    Get the process-wide policy table.

    Uses the file named by ``PAGEGATE_POLICY_FILE`` if set, otherwise the
    product defaults. Loaded once; the table is read-only afterwards.
    """
    settings = get_settings()
    if settings.policy_file:
        return load_policy(settings.policy_file)

    from pagegate.security.defaults import DEFAULT_POLICY
    return DEFAULT_POLICY
