"""
Security check verdicts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SecurityLayer(str, Enum):
    """The ordered stages of a security check."""

    AUTHENTICATION = "authentication"  # WHO are you?
    AUTHORIZATION = "authorization"    # WHAT can you do?
    OWNERSHIP = "ownership"            # IS this yours?


class DeniedReason(str, Enum):
    """Why a check was denied."""

    NOT_AUTHENTICATED = "not_authenticated"
    INSUFFICIENT_ROLE = "insufficient_role"
    INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
    NOT_OWNER = "not_owner"
    RESOURCE_NOT_FOUND = "resource_not_found"


@dataclass(frozen=True)
class SecurityCheckResult:
    """
    One verdict.

    There is no "unknown" verdict: a result is either allowed, or denied
    with a reason and the layer that produced the denial. ``details`` is
    diagnostic text for logs, never for end users.
    """

    allowed: bool
    denied_reason: DeniedReason | None = None
    layer: SecurityLayer | None = None
    details: str | None = None

    @classmethod
    def allow(cls) -> SecurityCheckResult:
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        reason: DeniedReason,
        layer: SecurityLayer,
        details: str | None = None,
    ) -> SecurityCheckResult:
        return cls(allowed=False, denied_reason=reason, layer=layer, details=details)

    def to_dict(self) -> dict[str, str | bool | None]:
        return {
            "allowed": self.allowed,
            "denied_reason": self.denied_reason.value if self.denied_reason else None,
            "layer": self.layer.value if self.layer else None,
            "details": self.details,
        }
