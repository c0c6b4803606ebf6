"""
auth/tokens.py -- Token Service (JWT issue/verify) and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry exactly two claims:
       sub -- the numeric identity id, serialized as a decimal string
              (RFC 7519 requires a string subject) and parsed back to int.
       exp -- absolute expiry in epoch seconds.
       The username is deliberately NOT a claim: usernames are mutable and
       must never be trusted as a stable identity key. Tokens minted by older
       deployments with a username subject fail verification as malformed.

       Expiry is checked by TokenService against its own injected clock, not
       by jose, so the boundary is exact and testable: valid while
       now < exp, Expired from exp onward.

       The signing secret is injected once at construction (from
       core.config.get_settings()). Rotating it invalidates every token
       issued under the old key; there is no grace period.

  Passwords: bcrypt directly (no passlib wrapper). gensalt() gives each hash
       a fresh random salt; the cost factor comes from BCRYPT_ROUNDS.
       bcrypt.checkpw compares in constant time. authenticate_user() always
       runs a bcrypt check, against a dummy hash when the username does not
       exist, so response time does not reveal which usernames are registered.

Layer rule: no imports from api/ or items/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import JOSEError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.models import Claims
from core.database import MAX_ID
from core.errors import BadRequest, Internal, InvalidSignature, MalformedToken, TokenExpired

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("rolegate.auth")

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes; longer inputs are rejected rather
# than silently truncated.
_BCRYPT_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Token Service
# ---------------------------------------------------------------------------


class TokenService:
    """Issue and verify signed, time-bounded identity tokens.

    Holds only read-only state (key, default TTL, clock), so one instance is
    shared by all concurrent requests without locking.

    clock returns the current epoch time in seconds; tests inject a fixed one.
    """

    def __init__(
        self,
        secret_key: str,
        default_ttl_seconds: int = 86400,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret_key = secret_key
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock

    def issue(self, subject_id: int, ttl: int | None = None) -> str:
        """Sign a token for subject_id that expires ttl seconds from now."""
        ttl = self.default_ttl_seconds if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        payload = {"sub": str(subject_id), "exp": int(self._clock()) + ttl}
        try:
            return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)
        except JOSEError as exc:
            logger.error("Token signing failed: %s", exc.__class__.__name__)
            raise Internal("token signing failed") from exc

    def verify(self, token: str) -> Claims:
        """Decode and check token. Returns Claims or raises a TokenError subclass.

        Order of checks: well-formedness, signature, claim shape, expiry.
        """
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken() from exc

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False, "verify_sub": False},
            )
        except JWTClaimsError as exc:
            # Signature verified; a registered claim (iat, nbf) is ill-typed.
            raise MalformedToken() from exc
        except JWTError as exc:
            raise InvalidSignature() from exc

        claims = _claims_from_payload(payload)
        if claims.exp <= self._clock():
            raise TokenExpired()
        return claims


def _claims_from_payload(payload: dict) -> Claims:
    sub = payload.get("sub")
    exp = payload.get("exp")
    if not isinstance(sub, str) or not sub.isdecimal() or int(sub) > MAX_ID:
        raise MalformedToken()
    if isinstance(exp, bool) or not isinstance(exp, int):
        raise MalformedToken()
    return Claims(sub=int(sub), exp=exp)


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of plain with a fresh random salt.

    Raises BadRequest if the password exceeds bcrypt's 72-byte input limit,
    Internal if hashing fails for any other reason.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        raise BadRequest("password too long")
    try:
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")
    except ValueError as exc:
        logger.error("Password hashing failed")
        raise Internal("password hashing failed") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if plain matches the bcrypt hash (constant-time comparison)."""
    encoded = plain.encode("utf-8")
    if len(encoded) > _BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    """Timing equalization hash, computed once per cost factor."""
    return hash_password("rolegate_timing_dummy", rounds)


def authenticate_user(store: UserStore, username: str, password: str, rounds: int = 12) -> User | None:
    """Check a username/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against the dummy hash (same cost)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. Callers must not tell
    the client which of the two cases occurred.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _dummy_hash(rounds))
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
