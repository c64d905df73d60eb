"""
Security utilities - verification of hosted auth provider tokens

Sessions are issued by the hosted auth provider. This service never mints
tokens; it only verifies the bearer JWT and reads the subject (user id).
"""
import logging
from typing import Optional

from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify an access token. Returns None if invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None

    if not payload.get("sub"):
        return None
    return payload
