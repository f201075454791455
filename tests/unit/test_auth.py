"""Access token verification."""

from __future__ import annotations

import uuid
from datetime import timedelta

import jwt
import pytest

from newsiq.auth.jwt import verify_token
from tests.conftest import make_token


class TestVerifyToken:
    def test_valid_token(self):
        user_id = uuid.uuid4()
        payload = verify_token(make_token(user_id))
        assert payload["sub"] == str(user_id)
        assert payload["email"] == "reader@example.com"

    def test_expired_token(self):
        token = make_token(uuid.uuid4(), expires_in=timedelta(seconds=-10))
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_audience(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(make_token(uuid.uuid4(), aud="anon"))

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "aud": "authenticated"},
            "not-the-secret-but-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_missing_subject(self):
        with pytest.raises(jwt.InvalidTokenError, match="subject"):
            verify_token(make_token(uuid.uuid4(), sub=""))

    def test_garbage(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token("not.a.jwt")
