"""
Unit tests for AccessToken extraction and payload_from_headers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from apitools.security.jwt import (
    AccessToken,
    ExpiredTokenError,
    InvalidHeadersError,
    InvalidTokenError,
    MissingTokenError,
    TokenEngine,
    payload_from_headers,
    peek_expiry,
)


class TestFromHeaders:
    """Tests for AccessToken.from_headers()."""

    def test_bearer_token(self):
        token = AccessToken.from_headers({"Authorization": "Bearer my_token"})

        assert token is not None
        assert token.token == "my_token"
        assert str(token) == "my_token"

    def test_header_name_is_case_insensitive(self):
        token = AccessToken.from_headers({"authorization": "Bearer my_token"})

        assert token.token == "my_token"

    def test_other_scheme(self):
        assert AccessToken.from_headers({"Authorization": "Invalid my_token"}) is None

    def test_basic_scheme(self):
        assert AccessToken.from_headers({"Authorization": "Basic dXNlcjpwYXNz"}) is None

    def test_missing_header(self):
        assert AccessToken.from_headers({"Content-Type": "application/json"}) is None

    def test_empty_token(self):
        assert AccessToken.from_headers({"Authorization": "Bearer   "}) is None

    def test_opaque_token_expiry_defaults_to_now(self):
        """A token without a readable exp gets the extraction time."""
        before = datetime.now(timezone.utc)
        token = AccessToken.from_headers({"Authorization": "Bearer my_token"})
        after = datetime.now(timezone.utc)

        assert before <= token.expired_at <= after

    def test_expiry_read_from_claims(self, secret):
        engine = TokenEngine.init(secret=secret)
        issued = engine.issue_access_token({"sub": "user-1"})

        token = AccessToken.from_headers({"Authorization": f"Bearer {issued}"})

        assert token.expired_at == issued.expired_at

    def test_to_dict(self):
        expired_at = datetime(2030, 1, 1, tzinfo=timezone.utc)
        token = AccessToken(token="abc", expired_at=expired_at)

        assert token.to_dict() == {
            "access_token": "abc",
            "expired_at": "2030-01-01T00:00:00+00:00",
        }


class TestPeekExpiry:
    def test_not_a_jwt(self):
        assert peek_expiry("my_token") is None

    def test_no_exp(self, secret):
        engine = TokenEngine.init(secret=secret)
        token = engine.generate({"sub": "x"}, datetime.now(timezone.utc))

        assert peek_expiry(token.token) is None


class TestPayloadFromHeaders:
    """Tests for payload_from_headers()."""

    def test_valid_token(self, secret):
        engine = TokenEngine.init(secret=secret)
        token = engine.issue_access_token({"sub": "user-1"})

        claims = payload_from_headers({"Authorization": f"Bearer {token}"}, engine)

        assert claims["sub"] == "user-1"

    def test_missing_token(self, secret):
        engine = TokenEngine.init(secret=secret)

        with pytest.raises(MissingTokenError) as exc_info:
            payload_from_headers({}, engine)
        assert str(exc_info.value) == "Missing bearer token"

    def test_invalid_token(self, secret):
        engine = TokenEngine.init(secret=secret)

        with pytest.raises(InvalidTokenError):
            payload_from_headers({"Authorization": "Bearer my_token"}, engine)

    def test_expired_token_is_not_wrapped(self, secret):
        engine = TokenEngine.init(secret=secret)
        token = engine.issue_access_token(
            {"sub": "user-1"}, now=datetime.now(timezone.utc) - timedelta(hours=1)
        )

        with pytest.raises(ExpiredTokenError):
            payload_from_headers({"Authorization": f"Bearer {token}"}, engine)

    def test_invalid_headers(self, secret):
        engine = TokenEngine.init(secret=secret)

        with pytest.raises(InvalidHeadersError):
            payload_from_headers("Authorization: Bearer x", engine)
