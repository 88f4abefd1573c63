"""Password hashing, refresh-token hashing, and JWT creation/verification for authentication."""

import hashlib
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from qms.core.config import Settings, get_settings

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


class TokenError(Exception):
    """Raised for any token that fails verification. Deliberately carries no detail."""

    def __init__(self) -> None:
        super().__init__("Invalid token")


def _password_bytes(plain_password: str) -> bytes:
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    return plain_password.encode("utf-8")[:72]


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    cost = rounds if rounds is not None else get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(
        _password_bytes(plain_password), bcrypt.gensalt(rounds=cost)
    ).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def _refresh_digest(raw_token: str) -> bytes:
    # JWTs are longer than bcrypt's 72 bytes and share a common prefix; digest first
    # so the whole token participates in the hash.
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest().encode("ascii")


def hash_refresh_token(raw_token: str, rounds: int | None = None) -> str:
    """One-way, salted hash of a raw refresh token for the token registry."""
    cost = rounds if rounds is not None else get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(_refresh_digest(raw_token), bcrypt.gensalt(rounds=cost)).decode(
        "utf-8"
    )


def verify_refresh_token_hash(raw_token: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_refresh_digest(raw_token), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def create_access_token(
    sub: str | int,
    role: str,
    tenant_id: int | None = None,
    *,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token with sub (user id), role, tenant_id, typ and exp."""
    settings = settings or get_settings()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload: dict[str, Any] = {
        "sub": str(sub),
        "role": str(role),
        "tenant_id": tenant_id,
        "typ": TOKEN_TYPE_ACCESS,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(
        payload,
        settings.JWT_ACCESS_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def create_refresh_token(
    sub: str | int,
    *,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, datetime]:
    """
    Create a JWT refresh token; returns (token, expires_at).

    Each token carries a random jti so two tokens issued in the same second still differ.
    """
    settings = settings or get_settings()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))
    payload: dict[str, Any] = {
        "sub": str(sub),
        "typ": TOKEN_TYPE_REFRESH,
        "jti": uuid.uuid4().hex,
        "exp": expire,
        "iat": now,
    }
    token = jwt.encode(
        payload,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )
    return token, expire


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "iat", "sub", "typ"]},
        )
    except jwt.PyJWTError as e:
        raise TokenError() from e
    if payload.get("typ") != expected_type:
        raise TokenError()
    return payload


def decode_access_token(token: str, *, settings: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate an access JWT; return payload (sub, role, tenant_id, exp, iat).
    Raises TokenError on any failure.
    """
    settings = settings or get_settings()
    return _decode(
        token,
        settings.JWT_ACCESS_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        TOKEN_TYPE_ACCESS,
    )


def decode_refresh_token(token: str, *, settings: Settings | None = None) -> dict[str, Any]:
    """Decode and validate a refresh JWT. Raises TokenError on any failure."""
    settings = settings or get_settings()
    return _decode(
        token,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        TOKEN_TYPE_REFRESH,
    )
