"""
FastAPI dependencies - the HTTP side of the presentation contract.

Usage:
    app.state.security = SecurityEngine(get_policy_table(), store)

    @app.delete("/pages/{page_id}")
    async def delete_page(
        page_id: str,
        ctx: SecurityContext = Depends(
            require_security(SECURITY_CONFIGS["pages_management"], resource_param="page_id")
        ),
    ):
        ...

If the check fails the dependency raises HTTPException; the detail carries
the denial reason, the layer, the user-facing message and the redirect
target. If it passes, the route receives the SecurityContext.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pagegate.security.audit import audit_check
from pagegate.security.context import SecurityContext
from pagegate.security.engine import SecurityEngine
from pagegate.security.policies import SecurityMiddlewareConfig
from pagegate.security.results import DeniedReason, SecurityCheckResult, SecurityLayer
from pagegate.security.sessions import BearerSessionProvider
from pagegate.security.verdicts import get_error_message, get_redirect_path

logger = logging.getLogger(__name__)

# Optional bearer (doesn't fail if no token)
optional_bearer = HTTPBearer(auto_error=False)


def get_engine(request: Request) -> SecurityEngine:
    engine = getattr(request.app.state, "security", None)
    if engine is None:
        raise RuntimeError("app.state.security is not configured")
    return engine


async def get_security_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
    engine: SecurityEngine = Depends(get_engine),
) -> SecurityContext:
    """Assemble the context for the request's bearer token (guest if none)."""
    token = credentials.credentials if credentials else None
    return await engine.assemble(BearerSessionProvider(token))


def status_for(result: SecurityCheckResult) -> int:
    """HTTP status for a denial."""
    if result.layer == SecurityLayer.AUTHENTICATION:
        return status.HTTP_401_UNAUTHORIZED
    if result.denied_reason == DeniedReason.RESOURCE_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_403_FORBIDDEN


def require_security(
    config: SecurityMiddlewareConfig,
    *,
    resource_param: str | None = None,
    fallback: str | None = None,
) -> Callable:
    """
    Require a security config to access a route.

    Args:
        config: The requirement to enforce
        resource_param: Path parameter holding the resource id. When given,
            the ownership layer is mandatory (check_resource).
        fallback: Redirect target for non-authentication denials

    Returns:
        FastAPI dependency that resolves to SecurityContext
    """

    async def dependency(
        request: Request,
        ctx: SecurityContext = Depends(get_security_context),
        engine: SecurityEngine = Depends(get_engine),
    ) -> SecurityContext:
        resource_id = None
        if resource_param:
            resource_id = request.path_params.get(resource_param, "")
            result = await engine.check_resource(ctx, config, resource_id)
        else:
            result = engine.run_security_checks(ctx, config)

        resource = config.ownership.resource_type if config.ownership else request.url.path
        audit_check(
            ctx,
            result,
            action=request.method.lower(),
            resource=resource,
            resource_id=resource_id,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )

        if not result.allowed:
            raise HTTPException(
                status_code=status_for(result),
                detail={
                    "reason": result.denied_reason.value,
                    "layer": result.layer.value,
                    "message": get_error_message(result),
                    "redirect": get_redirect_path(result, fallback),
                },
            )

        return ctx

    return dependency
