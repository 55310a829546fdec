"""
QuickNotes Backend — Security Unit Tests
==========================================

What we test:
    ✅ bcrypt hash/verify round trip, empty input handling, malformed hashes
    ✅ Token claims (sub as string, email, 7-day expiry)
    ✅ Expired, tampered and malformed tokens are rejected
    ✅ get_current_user header parsing
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from quicknotes.config import settings
from quicknotes.exceptions import AuthenticationError
from quicknotes.security import (
    create_access_token,
    decode_access_token,
    get_current_user,
    hash_password,
    verify_password,
)


class TestPasswordHashing:

    def test_hash_then_verify(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert len(hashed) == 60
        assert verify_password("correct horse", hashed) is True
        assert verify_password("wrong horse", hashed) is False

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_empty_password_cannot_be_hashed(self):
        with pytest.raises(ValueError):
            hash_password("")

    def test_verify_rejects_empty_inputs(self):
        hashed = hash_password("secret")
        assert verify_password("", hashed) is False
        assert verify_password("secret", "") is False

    def test_verify_returns_false_for_malformed_hash(self):
        assert verify_password("secret", "not-a-bcrypt-hash") is False

    def test_passwords_beyond_72_bytes_are_accepted(self):
        long_password = "x" * 100
        hashed = hash_password(long_password)
        assert verify_password(long_password, hashed) is True


class TestAccessTokens:

    def test_claims(self):
        issued = datetime(2024, 1, 15, tzinfo=timezone.utc)
        token = create_access_token(42, "ada@example.com", now=issued)
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            options={"verify_exp": False},
        )
        assert claims["sub"] == "42"
        assert claims["email"] == "ada@example.com"
        assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())

    def test_decode_round_trip(self):
        payload = decode_access_token(create_access_token(7, "bob@example.com"))
        assert payload.user_id == 7
        assert payload.email == "bob@example.com"

    def test_expired_token_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(days=8)
        token = create_access_token(1, "a@example.com", now=issued)
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert exc_info.value.message == "Invalid token"
        assert exc_info.value.context["reason"] == "expired"

    def test_wrong_signature_rejected(self):
        token = jwt.encode(
            {"sub": "1", "email": "a@example.com",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(token)

    def test_non_numeric_subject_rejected(self):
        token = jwt.encode(
            {"sub": "abc", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            decode_access_token("not.a.jwt")


class TestGetCurrentUser:

    @pytest.mark.asyncio
    async def test_valid_header(self):
        token = create_access_token(3, "c@example.com")
        user = await get_current_user(authorization=f"Bearer {token}")
        assert user.user_id == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "Bearer    "])
    async def test_missing_or_malformed_header(self, header):
        with pytest.raises(AuthenticationError, match="Missing Authorization header"):
            await get_current_user(authorization=header)

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        with pytest.raises(AuthenticationError, match="Invalid token"):
            await get_current_user(authorization="Bearer garbage")
