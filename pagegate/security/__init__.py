"""
Authorization and ownership engine.

Every protected action goes through three ordered layers:

1. Authentication - WHO are you?
2. Authorization  - WHAT can you do? (role level, roles, permissions)
3. Ownership      - IS this yours? (directly or via your team)

Design principles:
1. Fail closed: every failure is a denial, never an exception
2. One verdict per check, with the reason and the layer that denied
3. Vocabulary-agnostic: roles and permissions come from a policy table
4. Immutable contexts, pure checks
"""

from pagegate.security.roles import (
    PolicyTable,
    PolicyConfigError,
    get_role_level,
    get_permissions_for_role,
    role_has_permission,
    role_has_any_permission,
    role_has_all_permissions,
)
from pagegate.security.results import (
    DeniedReason,
    SecurityCheckResult,
    SecurityLayer,
)
from pagegate.security.context import (
    ContextState,
    SecurityContext,
    SecurityContextAssembler,
    assemble_context,
)
from pagegate.security.ownership import OwnershipResolver
from pagegate.security.policies import (
    Combinator,
    OwnershipRequirement,
    SecurityMiddlewareConfig,
    check_resource,
    create_security_config,
    require_team_membership,
    run_full_security_check,
    run_ownership_check,
    run_security_checks,
)
from pagegate.security.verdicts import get_error_message, get_redirect_path
from pagegate.security.engine import SecurityEngine
from pagegate.security.defaults import (
    DEFAULT_POLICY,
    SECURITY_CONFIGS,
    Permissions,
    Roles,
)

__all__ = [
    # Main interface
    "SecurityEngine",
    "SecurityContext",
    "SecurityContextAssembler",
    "SecurityMiddlewareConfig",
    "OwnershipRequirement",
    "Combinator",
    "run_security_checks",
    "check_resource",
    "run_full_security_check",
    "run_ownership_check",
    "require_team_membership",
    "create_security_config",
    "get_error_message",
    "get_redirect_path",
    # Types
    "ContextState",
    "DeniedReason",
    "SecurityCheckResult",
    "SecurityLayer",
    "OwnershipResolver",
    "assemble_context",
    # Policy
    "PolicyTable",
    "PolicyConfigError",
    "get_role_level",
    "get_permissions_for_role",
    "role_has_permission",
    "role_has_any_permission",
    "role_has_all_permissions",
    "DEFAULT_POLICY",
    "SECURITY_CONFIGS",
    "Permissions",
    "Roles",
]
