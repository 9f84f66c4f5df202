"""
Tests for the JWT Token Codec

Issue/verify round trips for both token classes, and every way a token can be
rejected: expiry, wrong secret, wrong class, wrong issuer or audience, and
tampering.

Example:
    >>> pytest tests/unit/test_jwt_handler.py -v
"""

import logging
from datetime import datetime, timedelta

import pytest
from jose import jwt

from auth.jwt_handler import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenCodec,
    TokenConfig,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
)
from models.user import Role
from utils.errors import ConfigurationError


# ============================================================================
# Configuration Tests
# ============================================================================


class TestTokenConfig:
    """Test signing configuration validation."""

    def test_missing_access_secret_is_fatal(self):
        with pytest.raises(ConfigurationError, match="JWT_SECRET"):
            TokenConfig(access_secret="", refresh_secret="refresh")

    def test_blank_refresh_secret_is_fatal(self):
        with pytest.raises(ConfigurationError, match="JWT_REFRESH_SECRET"):
            TokenConfig(access_secret="access", refresh_secret="   ")

    def test_shared_secret_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="auth.jwt_handler"):
            TokenConfig(access_secret="same", refresh_secret="same")
        assert "share one signing secret" in caplog.text

    def test_defaults(self, token_config):
        assert token_config.algorithm == "HS256"
        assert token_config.access_expires == timedelta(minutes=15)
        assert token_config.refresh_expires == timedelta(days=7)
        assert token_config.issuer == "gym-saas-api"
        assert token_config.audience == "gym-saas-client"

    def test_from_settings(self):
        from config import settings

        config = TokenConfig.from_settings(settings)
        assert config.access_secret == settings.JWT_SECRET
        assert config.refresh_secret == settings.JWT_REFRESH_SECRET
        assert config.access_expires == timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)


# ============================================================================
# Access Token Tests
# ============================================================================


class TestAccessToken:
    """Test access token issue and verification."""

    def test_round_trip(self, codec):
        token = codec.issue_access_token("user-1", "gym-1", Role.INSTRUCTOR)
        claims = codec.verify_access_token(token)

        assert claims.user_id == "user-1"
        assert claims.gym_id == "gym-1"
        assert claims.role == Role.INSTRUCTOR

    def test_claims_on_the_wire(self, codec):
        token = codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
        payload = jwt.get_unverified_claims(token)

        assert payload["sub"] == "user-1"
        assert payload["gym_id"] == "gym-1"
        assert payload["role"] == "MEMBER"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert payload["iss"] == "gym-saas-api"
        assert payload["aud"] == "gym-saas-client"

    def test_lifetime_is_fifteen_minutes(self, codec):
        claims = codec.verify_access_token(codec.issue_access_token("u", "g", Role.MEMBER))
        lifetime = (claims.expires_at - claims.issued_at).total_seconds()
        assert lifetime == 15 * 60

    def test_role_given_as_string(self, codec):
        claims = codec.verify_access_token(codec.issue_access_token("u", "g", "ADMIN"))
        assert claims.role == Role.ADMIN

    def test_expired(self, codec, past_codec):
        token = past_codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
        with pytest.raises(TokenExpiredError):
            codec.verify_access_token(token)

    def test_expired_is_a_token_error(self, codec, past_codec):
        token = past_codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
        with pytest.raises(TokenError):
            codec.verify_access_token(token)

    def test_wrong_secret(self, codec):
        other = TokenCodec(TokenConfig(access_secret="other-a", refresh_secret="other-r"))
        token = other.issue_access_token("user-1", "gym-1", Role.MEMBER)
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(token)

    def test_refresh_token_rejected_as_access(self, codec):
        refresh = codec.issue_refresh_token("user-1")
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(refresh)

    def test_refresh_token_signed_with_access_secret_rejected(self):
        # Same secret for both classes: only the type claim tells them apart
        shared = TokenCodec(TokenConfig(access_secret="shared", refresh_secret="shared"))
        with pytest.raises(TokenInvalidError):
            shared.verify_access_token(shared.issue_refresh_token("user-1"))

    def test_wrong_audience(self, codec, token_config):
        foreign = TokenCodec(TokenConfig(
            access_secret=token_config.access_secret,
            refresh_secret=token_config.refresh_secret,
            audience="someone-else",
        ))
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(foreign.issue_access_token("u", "g", Role.MEMBER))

    def test_wrong_issuer(self, codec, token_config):
        foreign = TokenCodec(TokenConfig(
            access_secret=token_config.access_secret,
            refresh_secret=token_config.refresh_secret,
            issuer="someone-else",
        ))
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(foreign.issue_access_token("u", "g", Role.MEMBER))

    def test_tampered_payload(self, codec):
        member_token = codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
        admin_token = codec.issue_access_token("user-1", "gym-1", Role.ADMIN)

        header, _, signature = member_token.split(".")
        _, admin_payload, _ = admin_token.split(".")
        forged = ".".join([header, admin_payload, signature])

        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(forged)

    def test_unknown_role_rejected(self, token_config, codec):
        now = datetime.utcnow()
        token = jwt.encode(
            {
                "sub": "user-1",
                "gym_id": "gym-1",
                "role": "SUPERUSER",
                "type": ACCESS_TOKEN_TYPE,
                "iss": token_config.issuer,
                "aud": token_config.audience,
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            token_config.access_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(token)

    def test_missing_gym_rejected(self, token_config, codec):
        now = datetime.utcnow()
        token = jwt.encode(
            {
                "sub": "user-1",
                "role": "MEMBER",
                "type": ACCESS_TOKEN_TYPE,
                "iss": token_config.issuer,
                "aud": token_config.audience,
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            token_config.access_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(token)

    @pytest.mark.parametrize("missing", ["aud", "iss"])
    def test_missing_audience_or_issuer_rejected(self, token_config, codec, missing):
        now = datetime.utcnow()
        claims = {
            "sub": "user-1",
            "gym_id": "gym-1",
            "role": "ADMIN",
            "type": ACCESS_TOKEN_TYPE,
            "iss": token_config.issuer,
            "aud": token_config.audience,
            "iat": now,
            "exp": now + timedelta(minutes=5),
        }
        del claims[missing]
        token = jwt.encode(claims, token_config.access_secret, algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(token)

    @pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
    def test_garbage(self, codec, garbage):
        with pytest.raises(TokenInvalidError):
            codec.verify_access_token(garbage)


# ============================================================================
# Refresh Token Tests
# ============================================================================


class TestRefreshToken:
    """Test refresh token issue and verification."""

    def test_round_trip(self, codec):
        claims = codec.verify_refresh_token(codec.issue_refresh_token("user-1"))
        assert claims.user_id == "user-1"

    def test_carries_only_subject(self, codec):
        payload = jwt.get_unverified_claims(codec.issue_refresh_token("user-1"))

        assert payload["type"] == REFRESH_TOKEN_TYPE
        assert "gym_id" not in payload
        assert "role" not in payload

    def test_outlives_access_token(self, codec):
        access = codec.verify_access_token(codec.issue_access_token("u", "g", Role.MEMBER))
        refresh = codec.verify_refresh_token(codec.issue_refresh_token("u"))
        assert refresh.expires_at - refresh.issued_at == timedelta(days=7)
        assert refresh.expires_at > access.expires_at

    def test_expired(self, codec, past_codec):
        with pytest.raises(TokenExpiredError):
            codec.verify_refresh_token(past_codec.issue_refresh_token("user-1"))

    def test_access_token_rejected_as_refresh(self, codec):
        with pytest.raises(TokenInvalidError):
            codec.verify_refresh_token(codec.issue_access_token("u", "g", Role.MEMBER))

    @pytest.mark.parametrize("missing", ["aud", "iss"])
    def test_missing_audience_or_issuer_rejected(self, token_config, codec, missing):
        now = datetime.utcnow()
        claims = {
            "sub": "user-1",
            "type": REFRESH_TOKEN_TYPE,
            "iss": token_config.issuer,
            "aud": token_config.audience,
            "iat": now,
            "exp": now + timedelta(days=1),
        }
        del claims[missing]
        token = jwt.encode(claims, token_config.refresh_secret, algorithm="HS256")

        with pytest.raises(TokenInvalidError):
            codec.verify_refresh_token(token)


class TestDecodeUnverified:
    """Test diagnostic decoding."""

    def test_reads_claims_without_secret(self, codec):
        token = codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
        assert TokenCodec.decode_unverified(token)["sub"] == "user-1"

    def test_reads_expired_token(self, past_codec):
        token = past_codec.issue_access_token("user-1", "gym-1", Role.MEMBER)
        assert TokenCodec.decode_unverified(token)["gym_id"] == "gym-1"

    def test_unparseable_returns_none(self):
        assert TokenCodec.decode_unverified("not-a-jwt") is None
