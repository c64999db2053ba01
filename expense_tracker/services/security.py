"""Password hashing (bcrypt) and bearer token handling (PyJWT)."""
from datetime import datetime, timedelta
from typing import Any, Dict

import bcrypt
import jwt

from expense_tracker.config import Settings
from expense_tracker.errors import Unauthenticated
from expense_tracker.models.domain import User

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _encode_password(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_encode_password(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Salted, constant-time comparison against a stored hash."""
    return bcrypt.checkpw(_encode_password(password), password_hash.encode("utf-8"))


def issue_token(user: User, settings: Settings) -> str:
    """
    Sign a token carrying the user's id, email and role.

    The role claim is informational: requests re-resolve the role from the
    database, so a downgrade takes effect before the token expires.
    """
    now = datetime.utcnow()
    payload = {
        "userId": user.id,
        "email": user.email,
        "role": user.role.value,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> Dict[str, Any]:
    """Verify signature and expiry; raise Unauthenticated on any failure."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid token")

    if not payload.get("userId"):
        raise Unauthenticated("Invalid token")
    return payload
