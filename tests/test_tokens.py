"""
tests/test_tokens.py -- Unit tests for TokenService and password hashing.

Covers:
  - issue/verify round trip returns the subject id and exp = now + ttl
  - Expiry boundary: valid at exp - 1, expired at exp and after
  - Wrong key and spliced payloads fail as InvalidSignature
  - Garbage and ill-typed claims fail as MalformedToken
  - Non-positive ttl is rejected
  - bcrypt hash/verify, 72-byte limit, authenticate_user outcomes
"""

from __future__ import annotations

import pytest
from jose import jwt

from auth.tokens import TokenService, authenticate_user, hash_password, verify_password
from core.config import get_settings
from core.errors import BadRequest, InvalidSignature, MalformedToken, TokenError, TokenExpired

FIXED_NOW = 1_700_000_000

SECRET = "unit-test-secret-abcdefghijklmnopqrstuvwxyz"
OTHER_SECRET = "another-secret-abcdefghijklmnopqrstuvwxyz0"


class _Clock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestTokenRoundTrip:
    def test_verify_returns_issued_subject(self, token_service: TokenService) -> None:
        token = token_service.issue(42)
        claims = token_service.verify(token)
        assert claims.sub == 42
        assert claims.exp == FIXED_NOW + 3600

    def test_explicit_ttl_overrides_default(self, token_service: TokenService) -> None:
        claims = token_service.verify(token_service.issue(7, ttl=60))
        assert claims.exp == FIXED_NOW + 60

    def test_subject_is_serialized_as_decimal_string(self, token_service: TokenService) -> None:
        """The wire claim is a string per RFC 7519; no username is carried."""
        payload = jwt.get_unverified_claims(token_service.issue(42))
        assert payload == {"sub": "42", "exp": FIXED_NOW + 3600}

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_non_positive_ttl_rejected(self, token_service: TokenService, ttl: int) -> None:
        with pytest.raises(ValueError):
            token_service.issue(1, ttl=ttl)


class TestTokenExpiry:
    def test_valid_one_second_before_exp(self) -> None:
        clock = _Clock(FIXED_NOW)
        svc = TokenService(SECRET, clock=clock)
        token = svc.issue(1, ttl=60)
        clock.now = FIXED_NOW + 59
        assert svc.verify(token).sub == 1

    @pytest.mark.parametrize("elapsed", [60, 61, 3600])
    def test_expired_at_and_after_exp(self, elapsed: int) -> None:
        clock = _Clock(FIXED_NOW)
        svc = TokenService(SECRET, clock=clock)
        token = svc.issue(1, ttl=60)
        clock.now = FIXED_NOW + elapsed
        with pytest.raises(TokenExpired):
            svc.verify(token)

    def test_expired_is_a_token_error(self) -> None:
        """The gate maps every TokenError to 401; expiry must be one."""
        assert issubclass(TokenExpired, TokenError)


class TestTokenRejection:
    def test_wrong_key_is_invalid_signature(self, token_service: TokenService) -> None:
        token = token_service.issue(1)
        other = TokenService(OTHER_SECRET, clock=lambda: FIXED_NOW)
        with pytest.raises(InvalidSignature):
            other.verify(token)

    def test_spliced_payload_is_invalid_signature(self, token_service: TokenService) -> None:
        """Swapping in another token's payload must break the signature."""
        header, _payload, signature = token_service.issue(1).split(".")
        _h, other_payload, _s = token_service.issue(2).split(".")
        with pytest.raises(InvalidSignature):
            token_service.verify(f"{header}.{other_payload}.{signature}")

    @pytest.mark.parametrize("token", ["malformedtoken", "a.b", "", "not.a.jwt"])
    def test_garbage_is_malformed(self, token_service: TokenService, token: str) -> None:
        with pytest.raises(MalformedToken):
            token_service.verify(token)

    @pytest.mark.parametrize(
        "payload",
        [
            {"sub": "alice", "exp": FIXED_NOW + 60},
            {"sub": 5, "exp": FIXED_NOW + 60},
            {"sub": "-5", "exp": FIXED_NOW + 60},
            {"exp": FIXED_NOW + 60},
            {"sub": "5"},
            {"sub": "5", "exp": "tomorrow"},
            {"sub": "9223372036854775808", "exp": FIXED_NOW + 60},
            {"sub": "5", "exp": FIXED_NOW + 60, "iat": "yesterday"},
            {"sub": "5", "exp": FIXED_NOW + 60, "nbf": "soon"},
        ],
    )
    def test_ill_typed_claims_are_malformed(self, token_service: TokenService, payload: dict) -> None:
        """Correctly signed tokens whose claims are missing or ill-typed."""
        token = jwt.encode(payload, get_settings().secret_key, algorithm="HS256")
        with pytest.raises(MalformedToken):
            token_service.verify(token)


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class TestPasswordHashing:
    def test_hash_verifies(self) -> None:
        hashed = hash_password("s3cret", rounds=4)
        assert hashed.startswith("$2b$04$")
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_salt_is_fresh_per_hash(self) -> None:
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_password_over_72_bytes_rejected(self) -> None:
        with pytest.raises(BadRequest):
            hash_password("x" * 73, rounds=4)

    def test_password_of_exactly_72_bytes_accepted(self) -> None:
        hashed = hash_password("x" * 72, rounds=4)
        assert verify_password("x" * 72, hashed)

    def test_verify_against_non_bcrypt_value_is_false(self) -> None:
        assert verify_password("pw", "not-a-bcrypt-hash") is False


class TestAuthenticateUser:
    def test_success_returns_user(self, user_store, make_user) -> None:
        uid = make_user("carol", "right-pass")
        user = authenticate_user(user_store, "carol", "right-pass", rounds=4)
        assert user is not None
        assert user.id == uid

    def test_wrong_password_returns_none(self, user_store, make_user) -> None:
        make_user("dave", "right-pass")
        assert authenticate_user(user_store, "dave", "wrong-pass", rounds=4) is None

    def test_unknown_user_returns_none(self, user_store) -> None:
        assert authenticate_user(user_store, "nobody", "whatever", rounds=4) is None
