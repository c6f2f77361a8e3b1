import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import Settings, get_settings
from app.core.exceptions import AuthenticationError, ExpiredTokenError, InvalidTokenError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
BCRYPT_MAX_BYTES = 72


# ---------------------------
# Passwords
# ---------------------------
def hash_password(plain_password: str, settings: Settings | None = None) -> str:
    """
    Hash a plain password using bcrypt

    Args:
        plain_password: The plain text password to hash (at most 72 bytes)
        settings: Source of the bcrypt cost; the cached settings when omitted

    Returns:
        Hashed password string
    """
    settings = settings or get_settings()
    salt = bcrypt.gensalt(rounds=settings.effective_bcrypt_rounds)
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if passwords match, False otherwise (also for a malformed hash
        or an over-long password)
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return bcrypt.hashpw(b"no-such-account", bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def burn_password_check(plain_password: str, settings: Settings | None = None) -> None:
    """
    Run a bcrypt check that always fails, at the cost of a real one.

    Called when the login email matches no account, so both failure
    paths take about as long.
    """
    settings = settings or get_settings()
    verify_password(plain_password, _dummy_hash(settings.effective_bcrypt_rounds))


# ---------------------------
# Tokens
# ---------------------------
def create_access_token(
    user_id: str,
    expires_in_seconds: int | None = None,
    settings: Settings | None = None,
) -> str:
    """
    Issue a signed token for ``user_id``.

    Claims: ``sub`` (user id), ``iat`` and ``exp`` (UNIX seconds).
    """
    settings = settings or get_settings()
    issued_at = int(time.time())
    if expires_in_seconds is None:
        expires_in_seconds = settings.access_token_expire_minutes * 60

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + expires_in_seconds,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> str:
    """
    Verify ``token`` and return the user id it was issued for.

    Raises:
        ExpiredTokenError: signature is valid but ``exp`` has passed
        InvalidTokenError: bad signature, malformed token or missing subject
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise ExpiredTokenError()
    except jwt.InvalidTokenError as e:
        logger.debug("Token rejected: %s", e)
        raise InvalidTokenError()

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise InvalidTokenError()
    return user_id


# ---------------------------
# Request identity
# ---------------------------
@dataclass(frozen=True)
class Identity:
    """Verified caller of a protected route."""

    user_id: str

    def is_user(self, user_id) -> bool:
        return self.user_id == str(user_id)


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Gate for protected routes.

    Missing or non-Bearer ``Authorization`` headers and invalid/expired tokens
    end the request with 401 before the handler runs. Tokens are checked
    against the settings the app was built with.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated.")

    try:
        user_id = decode_access_token(credentials.credentials, request.app.state.settings)
    except AuthenticationError as e:
        logger.warning("Rejected bearer token: %s", e.code)
        raise

    return Identity(user_id=user_id)
