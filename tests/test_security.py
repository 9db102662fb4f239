"""
DevCamper API — Security Helper Tests
======================================

Password hashing, JWT issue/verify and reset-token generation.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from devcamper.config import settings
from devcamper.exceptions import AuthenticationError
from devcamper.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)


class TestPasswords:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("123456")
        assert hashed != "123456"
        assert verify_password("123456", hashed)
        assert not verify_password("654321", hashed)

    def test_same_password_hashes_differently(self):
        assert hash_password("123456") != hash_password("123456")


class TestAccessTokens:
    def test_round_trip_returns_user_id(self):
        user_id = uuid.uuid4()
        assert decode_access_token(create_access_token(user_id)) == user_id

    def test_expired_token_rejected(self):
        token = create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not.a.jwt")

    def test_non_uuid_subject_rejected(self):
        token = jwt.encode(
            {"sub": "42", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)


class TestResetTokens:
    def test_stored_value_is_digest_of_raw_token(self):
        raw, digest, expires = generate_reset_token()
        assert len(raw) == 40
        assert digest == hash_reset_token(raw)
        assert digest != raw

    def test_expiry_window(self):
        _, _, expires = generate_reset_token()
        remaining = expires - datetime.now(timezone.utc)
        assert timedelta(0) < remaining <= timedelta(minutes=settings.reset_token_expire_minutes)
