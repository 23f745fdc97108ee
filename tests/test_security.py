"""Tests for password hashing and session tokens (core.security)."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from core.errors import ExpiredTokenError, InvalidTokenError, TokenError
from core.security import (
    MAX_PASSWORD_BYTES,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

PASSWORD = "TestPassword123!"


class TestPasswordHashing:
    def test_verify_accepts_original_password(self):
        assert verify_password(PASSWORD, hash_password(PASSWORD)) is True

    @pytest.mark.parametrize("mutated", [
        "testPassword123!",   # case flip
        "TestPassword124!",   # digit changed
        "TestPassword123",    # char dropped
        "TestPassword123!!",  # char added
    ])
    def test_single_character_mutation_is_rejected(self, mutated):
        assert verify_password(mutated, hash_password(PASSWORD)) is False

    def test_mutation_in_last_byte_of_longest_password_is_rejected(self):
        longest = "Aa1@" + "x" * (MAX_PASSWORD_BYTES - 4)
        digest = hash_password(longest)
        assert verify_password(longest, digest) is True
        assert verify_password(longest[:-1] + "y", digest) is False

    @pytest.mark.parametrize("plain", [
        "Aa1@" + "x" * 90,
        "Aa1@" + "\u00e9" * 35,  # 74 bytes, 39 characters
    ])
    def test_secret_longer_than_bcrypt_reads_is_refused(self, plain):
        with pytest.raises(ValueError):
            hash_password(plain)

    def test_long_secret_never_verifies(self):
        longest = "Aa1@" + "x" * (MAX_PASSWORD_BYTES - 4)
        digest = hash_password(longest)
        assert verify_password(longest + "y", digest) is False
        assert verify_password(longest + "yyyyy", digest) is False

    def test_hash_is_salted(self):
        first, second = hash_password(PASSWORD), hash_password(PASSWORD)
        assert first != second
        assert verify_password(PASSWORD, first)
        assert verify_password(PASSWORD, second)

    def test_hash_is_bcrypt(self):
        assert hash_password(PASSWORD).startswith("$2")

    @pytest.mark.parametrize("digest", ["", "not-a-hash", "$2b$12$short", "$pbkdf2-sha256$bad"])
    def test_malformed_digest_returns_false(self, digest):
        assert verify_password(PASSWORD, digest) is False


class TestAccessTokens:
    def test_round_trip_preserves_claims(self):
        token = create_access_token("user-1", "jo@x.com", "agent")
        claims = decode_access_token(token)
        assert claims["userId"] == "user-1"
        assert claims["email"] == "jo@x.com"
        assert claims["role"] == "agent"
        assert claims["exp"] > claims["iat"]

    def test_default_lifetime_is_thirty_minutes(self):
        claims = decode_access_token(create_access_token("u", "e@x.com", "agent"))
        assert claims["exp"] - claims["iat"] == 30 * 60

    def test_flipped_signature_byte_is_rejected(self):
        token = create_access_token("user-1", "jo@x.com", "agent")
        header, payload, signature = token.split(".")
        flipped = "A" if signature[5] != "A" else "B"
        tampered = ".".join([header, payload, signature[:5] + flipped + signature[6:]])
        with pytest.raises(InvalidTokenError):
            decode_access_token(tampered)

    def test_expired_token_is_rejected(self):
        token = create_access_token(
            "user-1", "jo@x.com", "agent",
            issued_at=datetime.now(timezone.utc) - timedelta(hours=2),
        )
        with pytest.raises(ExpiredTokenError):
            decode_access_token(token)

    def test_token_signed_with_other_secret_is_rejected(self):
        now = datetime.now(timezone.utc)
        forged = jwt.encode(
            {"userId": "u", "email": "e@x.com", "role": "admin", "iat": now, "exp": now + timedelta(minutes=5)},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(forged)

    def test_missing_claim_is_rejected(self):
        from core.config import settings

        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"userId": "u", "iat": now, "exp": now + timedelta(minutes=5)},
            settings.secret_key,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError):
            decode_access_token(token)

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "....."])
    def test_malformed_token_is_a_token_error(self, garbage):
        with pytest.raises(TokenError):
            decode_access_token(garbage)
