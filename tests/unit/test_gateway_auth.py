"""Unit tests for JWT decoding and capability dependencies."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from config.settings import settings
from src.pm_common.enums import Capability
from src.pm_common.errors import CapabilityRequiredError, InvalidTokenError
from src.pm_gateway.auth.dependencies import (
    Principal,
    get_current_principal,
    require_capability,
)
from src.pm_gateway.auth.jwt_handler import create_access_token, decode_token


def _creds(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _sign(payload: dict) -> str:
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class TestJwtHandler:
    def test_access_token_claims(self) -> None:
        token = create_access_token("user-123", ["predictions:settle"])
        payload = jwt.get_unverified_claims(token)
        assert payload["sub"] == "user-123"
        assert payload["type"] == "access"
        assert payload["scope"] == "predictions:settle"

    def test_decode_round_trip(self) -> None:
        payload = decode_token(create_access_token("user-abc"))
        assert payload["sub"] == "user-abc"
        assert payload["scope"] == ""

    def test_expired_token_rejected(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        token = _sign({"sub": "u", "type": "access", "iat": past, "exp": past + timedelta(minutes=1)})
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_wrong_secret_rejected(self) -> None:
        token = jwt.encode({"sub": "u", "type": "access"}, "other-secret", algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_wrong_type_rejected(self) -> None:
        token = _sign({"sub": "u", "type": "refresh"})
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_missing_sub_rejected(self) -> None:
        token = _sign({"type": "access"})
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_garbage_rejected(self) -> None:
        with pytest.raises(InvalidTokenError):
            decode_token("not-a-jwt")


class TestPrincipal:
    @pytest.mark.asyncio
    async def test_missing_credentials(self) -> None:
        with pytest.raises(InvalidTokenError):
            await get_current_principal(None)

    @pytest.mark.asyncio
    async def test_principal_from_token(self) -> None:
        token = create_access_token("user-9", ["stakes:confirm", "predictions:settle"])
        principal = await get_current_principal(_creds(token))
        assert principal.user_id == "user-9"
        assert principal.can(Capability.CONFIRM_STAKES)
        assert principal.can(Capability.SETTLE_PREDICTIONS)

    def test_principal_without_scope(self) -> None:
        principal = Principal(user_id="u")
        assert not principal.can(Capability.SETTLE_PREDICTIONS)


class TestRequireCapability:
    @pytest.mark.asyncio
    async def test_admits_holder(self) -> None:
        check = require_capability(Capability.SETTLE_PREDICTIONS)
        principal = Principal("ops", frozenset({"predictions:settle"}))
        assert await check(principal) is principal

    @pytest.mark.asyncio
    async def test_rejects_missing_capability(self) -> None:
        check = require_capability(Capability.SETTLE_PREDICTIONS)
        principal = Principal("user", frozenset({"stakes:confirm"}))
        with pytest.raises(CapabilityRequiredError):
            await check(principal)
