"""
Security audit logging.

Verdicts are recorded as structured events on the ``pagegate.audit``
logger. Route the logger wherever the deployment keeps its audit trail
(a log pipeline, a database handler, ...). The checker itself never
audits; callers that act on a verdict do.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from pagegate.security.context import SecurityContext
from pagegate.security.results import SecurityCheckResult

audit_logger = logging.getLogger("pagegate.audit")


class SecurityAuditEvent(BaseModel):
    """One audited security decision."""

    id: str = Field(default_factory=lambda: f"evt_{uuid.uuid4().hex[:12]}")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    action: str
    resource: str
    resource_id: str | None = None
    layer: str | None = None
    result: str  # "allowed" or "denied"
    denied_reason: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


def build_event(
    context: SecurityContext,
    result: SecurityCheckResult,
    action: str,
    resource: str,
    resource_id: str | None = None,
    **metadata: Any,
) -> SecurityAuditEvent:
    """Build an audit event from a context and the verdict it got."""
    if result.details:
        metadata.setdefault("details", result.details)
    return SecurityAuditEvent(
        user_id=context.user_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        layer=result.layer.value if result.layer else None,
        result="allowed" if result.allowed else "denied",
        denied_reason=result.denied_reason.value if result.denied_reason else None,
        ip_address=metadata.pop("ip_address", None),
        user_agent=metadata.pop("user_agent", None),
        metadata={"role": context.role, **metadata},
    )


def log_security_event(event: SecurityAuditEvent) -> None:
    """Emit an audit event. Denials are logged at WARNING, allows at INFO."""
    level = logging.INFO if event.result == "allowed" else logging.WARNING
    audit_logger.log(
        level,
        f"{event.action} {event.resource} {event.result}"
        + (f" ({event.denied_reason})" if event.denied_reason else ""),
        extra={"audit": event.model_dump(mode="json")},
    )


def audit_check(
    context: SecurityContext,
    result: SecurityCheckResult,
    action: str,
    resource: str,
    resource_id: str | None = None,
    **metadata: Any,
) -> SecurityAuditEvent:
    """Build and emit an audit event for a verdict."""
    event = build_event(context, result, action, resource, resource_id, **metadata)
    log_security_event(event)
    return event
