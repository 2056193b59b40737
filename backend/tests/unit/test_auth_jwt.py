"""Unit tests for JWT token generation and validation

Tests cover:
- Token creation with valid claims
- Token decoding and validation
- Token expiration handling
- Invalid token handling
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4
import jwt

from auth.jwt import create_access_token, decode_token
from config import get_settings


@pytest.fixture
def secret():
    return get_settings().JWT_SECRET


class TestCreateAccessToken:
    """Test JWT token creation"""

    def test_create_token_with_valid_claims(self):
        """Test token has three parts and carries the expected claims"""
        user_id = uuid4()

        token = create_access_token(user_id=user_id, role="user", email="alice@example.com")

        assert len(token.split('.')) == 3
        payload = decode_token(token)
        assert payload['sub'] == str(user_id)
        assert payload['role'] == "user"
        assert payload['email'] == "alice@example.com"

    def test_token_expiration_set_from_settings(self):
        """Test exp - iat matches JWT_EXPIRY_MINUTES"""
        token = create_access_token(user_id=uuid4(), role="admin", email="ada@example.com")
        payload = decode_token(token)

        assert payload['exp'] - payload['iat'] == get_settings().JWT_EXPIRY_MINUTES * 60

    def test_missing_secret_raises(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "JWT_SECRET", None)
        with pytest.raises(ValueError, match="JWT_SECRET"):
            create_access_token(user_id=uuid4(), role="user", email="x@example.com")


class TestDecodeToken:
    """Test JWT validation"""

    def test_expired_token(self, secret):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {'sub': str(uuid4()), 'iat': int((now - timedelta(hours=2)).timestamp()),
             'exp': int((now - timedelta(hours=1)).timestamp())},
            secret,
            algorithm='HS256',
        )

        with pytest.raises(jwt.ExpiredSignatureError):
            decode_token(token)

    def test_wrong_signature(self):
        token = jwt.encode({'sub': str(uuid4())}, 'another-secret-entirely-different-key', algorithm='HS256')

        with pytest.raises(jwt.InvalidTokenError):
            decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_token("not.a.token")
