"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT access/refresh pair signing and verification via PyJWT
- Random identifiers and reset tokens, digests for persisted token strings
"""
from __future__ import annotations

import hashlib
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from utils.exceptions import InvalidTokenError, SigningError

ACCESS = "access"
REFRESH = "refresh"
TOKEN_TYPES = (ACCESS, REFRESH)

# Only the HMAC family is accepted; anything else is an algorithm substitution.
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

RESET_TOKEN_BYTES = 32

ph = PasswordHasher()

# Verified against when no identity matches, so unknown emails cost the
# same as wrong passwords.
_DUMMY_HASH = ph.hash(secrets.token_hex(16))


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2 (salt generated per call)."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password using argon2
    """
    if not password_hash:
        ph_hash, expected = _DUMMY_HASH, False
    else:
        ph_hash, expected = password_hash, True
    try:
        return ph.verify(ph_hash, password) and expected
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_reset_token() -> str:
    return secrets.token_hex(RESET_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """SHA-256 digest stored in place of a token string."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form persisted in token tables."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def from_timestamp(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_token_expires_at: int
    refresh_token_expires_at: int


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    role: str
    type: str
    jti: str
    expires_at: int


class TokenSigner:
    """
    Issues and validates paired access/refresh JWTs.

    The secret and lifetimes are fixed at construction. Validation checks
    signature, algorithm, expiry, not-before and claim shape only; refresh
    token revocation lives in the database and is checked by the caller.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        issuer: str = "storefront-api",
    ):
        if not secret:
            raise SigningError("JWT secret is not configured")
        if algorithm not in HMAC_ALGORITHMS:
            raise SigningError(f"Unsupported signing algorithm: {algorithm}")
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.issuer = issuer

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSigner":
        return cls(
            secret=config.get("JWT_SECRET", ""),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            issuer=config.get("JWT_ISSUER", "storefront-api"),
        )

    def _sign(self, user_id: str, email: str, role: str, token_type: str, now: datetime, ttl: timedelta):
        exp = int((now + ttl).timestamp())
        issued = int(now.timestamp())
        payload = {
            "iss": self.issuer,
            "sub": str(user_id),
            "user_id": str(user_id),
            "email": email,
            "role": role,
            "type": token_type,
            "jti": generate_jti(),
            "iat": issued,
            "nbf": issued,
            "exp": exp,
        }
        try:
            token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (NotImplementedError, TypeError, ValueError) as exc:
            raise SigningError(f"Failed to sign {token_type} token") from exc
        return token, exp

    def issue_pair(self, user_id: str, email: str, role: str) -> TokenPair:
        now = datetime.now(timezone.utc)
        access, access_exp = self._sign(user_id, email, role, ACCESS, now, self.access_ttl)
        refresh, refresh_exp = self._sign(user_id, email, role, REFRESH, now, self.refresh_ttl)
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            access_token_expires_at=access_exp,
            refresh_token_expires_at=refresh_exp,
        )

    def validate(self, token: str) -> TokenClaims:
        """
        Decode and validate a JWT. Raises InvalidTokenError on a bad
        signature, foreign algorithm, expiry, immaturity or malformed claims.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError()
        try:
            decoded: Dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "nbf", "sub", "jti"]},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc

        token_type = decoded.get("type")
        user_id = decoded.get("user_id")
        if token_type not in TOKEN_TYPES or not user_id or user_id != decoded["sub"]:
            raise InvalidTokenError()
        return TokenClaims(
            user_id=user_id,
            email=decoded.get("email", ""),
            role=decoded.get("role", ""),
            type=token_type,
            jti=decoded["jti"],
            expires_at=decoded["exp"],
        )
