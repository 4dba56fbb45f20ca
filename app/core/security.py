"""
Password hashing and session tokens.

Session tokens are HS256 JWTs carrying the user id (sub), email and display
name. The same decoder protects REST routes and the WebSocket handshake.
"""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.config import settings
from app.core.exceptions import AuthError
from app.core.schemas import CamelModel

logger = logging.getLogger(__name__)

TOKEN_EXPIRED_MESSAGE = "Token has expired. Please log in again."
TOKEN_INVALID_MESSAGE = "Invalid token. Please log in again."

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


class SessionUser(CamelModel):
    user_id: str
    email: str
    display_name: str


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8")[:_BCRYPT_MAX_BYTES], salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_BCRYPT_MAX_BYTES],
            password_hash.encode("utf-8"),
        )
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_session_token(user_id: str, email: str, display_name: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "name": display_name,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> SessionUser:
    """Validate signature and expiry. Raises AuthError with an expired/invalid reason."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError(TOKEN_EXPIRED_MESSAGE)
    except jwt.InvalidTokenError:
        raise AuthError(TOKEN_INVALID_MESSAGE)

    email = payload.get("email")
    name = payload.get("name")
    if not isinstance(email, str) or not isinstance(name, str):
        raise AuthError(TOKEN_INVALID_MESSAGE)
    return SessionUser(user_id=payload["sub"], email=email, display_name=name)
