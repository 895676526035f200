"""
Tests for bearer token verification.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from pagegate.config import Settings
from pagegate.security.sessions import (
    BearerSessionProvider,
    TokenExpiredError,
    TokenInvalidError,
    decode_identity,
)

SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def settings():
    return Settings(jwt_secret_key=SECRET)


def make_token(secret=SECRET, expires_in=timedelta(minutes=15), **claims):
    payload = {"sub": "user_1", "exp": datetime.now(timezone.utc) + expires_in, **claims}
    return jwt.encode(payload, secret, algorithm="HS256")


class TestDecodeIdentity:
    def test_valid_token(self, settings):
        token = make_token(email="a@example.com", tenant_id="acme", subscription_plan="pro")
        identity = decode_identity(token, settings)

        assert identity.user_id == "user_1"
        assert identity.email == "a@example.com"
        assert identity.tenant_id == "acme"
        assert identity.subscription_plan == "pro"

    def test_plan_defaults_to_free(self, settings):
        assert decode_identity(make_token(), settings).subscription_plan == "free"

    def test_expired(self, settings):
        with pytest.raises(TokenExpiredError):
            decode_identity(make_token(expires_in=timedelta(minutes=-1)), settings)

    def test_wrong_secret(self, settings):
        with pytest.raises(TokenInvalidError):
            decode_identity(make_token(secret="some-other-secret-that-is-also-long-enough"), settings)

    def test_refresh_token_rejected(self, settings):
        with pytest.raises(TokenInvalidError, match="access token"):
            decode_identity(make_token(type="refresh"), settings)

    def test_sub_required(self, settings):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalidError):
            decode_identity(token, settings)

    def test_audience(self):
        settings = Settings(jwt_secret_key=SECRET, jwt_audience="pagegate")
        assert decode_identity(make_token(aud="pagegate"), settings).user_id == "user_1"
        with pytest.raises(TokenInvalidError):
            decode_identity(make_token(aud="elsewhere"), settings)


class TestBearerSessionProvider:
    @pytest.mark.asyncio
    async def test_valid(self, settings):
        identity = await BearerSessionProvider(make_token(), settings).get_current_identity()
        assert identity.user_id == "user_1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    async def test_missing_or_garbage_is_signed_out(self, settings, token):
        assert await BearerSessionProvider(token, settings).get_current_identity() is None

    @pytest.mark.asyncio
    async def test_expired_is_signed_out(self, settings):
        token = make_token(expires_in=timedelta(seconds=-5))
        assert await BearerSessionProvider(token, settings).get_current_identity() is None
