"""
core/security.py
----------------
JWT utilities for caller identity.

Identity is issued by the platform's auth layer; this core only consumes it.
The token carries:
  - sub:   the caller's uid (matches users.id)
  - email: the caller's authenticated email, compared verbatim against
           invites.tenant_email
  - role:  informational ('tenant' | 'landlord' | 'contractor')

create_access_token exists for development tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from upkeep.core.config import settings


def create_access_token(
    subject: str,
    email: str,
    role: str = "tenant",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Mint a JWT access token.

    Args:
        subject: User id (stored in 'sub' claim).
        email: Authenticated email address.
        role: 'tenant' | 'landlord' | 'contractor'
        expires_delta: Optional custom expiry; defaults to settings value.

    Returns:
        Signed JWT string.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload: Dict[str, Any] = {
        "sub": subject,
        "email": email,
        "role": role,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT access token.

    Raises:
        JWTError: If the token is invalid, expired, or tampered with.

    Returns:
        Raw payload dict.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
