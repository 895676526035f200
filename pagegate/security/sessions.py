# =============================================================================
# Bearer Session Provider
# =============================================================================
#
# Verifies a signed JWT access token and reports the identity it names.
# Tokens are issued and rotated by the identity provider; this module only
# checks them. Expected claims:
#
#   sub                user id (required)
#   email              optional
#   tenant_id          optional
#   subscription_plan  optional, defaults to "free"
#   type               "access" when present
#
# =============================================================================

from __future__ import annotations

import logging

import jwt

from pagegate.config import Settings, get_settings
from pagegate.storage.base import Identity, SessionProvider

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Base exception for token errors."""
    pass


class TokenExpiredError(TokenError):
    """Token has expired."""
    pass


class TokenInvalidError(TokenError):
    """Token is invalid or malformed."""
    pass


def decode_identity(token: str, settings: Settings | None = None) -> Identity:
    """
    Decode and validate an access token.

    Raises:
        TokenExpiredError: Token has expired
        TokenInvalidError: Token is invalid
    """
    settings = settings or get_settings()
    options = {"require": ["sub", "exp"]}

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenInvalidError(f"Invalid token: {e}")

    token_type = payload.get("type", "access")
    if token_type != "access":
        raise TokenInvalidError(f"Expected access token, got {token_type}")

    return Identity(
        user_id=str(payload["sub"]),
        email=payload.get("email"),
        tenant_id=payload.get("tenant_id"),
        subscription_plan=payload.get("subscription_plan", "free"),
    )


class BearerSessionProvider(SessionProvider):
    """
    Session provider for one request's bearer token.

    A missing, expired or invalid token is a signed-out session.
    """

    def __init__(self, token: str | None, settings: Settings | None = None):
        self.token = token
        self.settings = settings

    async def get_current_identity(self) -> Identity | None:
        if not self.token:
            return None
        try:
            return decode_identity(self.token, self.settings)
        except TokenError as e:
            logger.info(f"Rejected bearer token: {e}")
            return None
