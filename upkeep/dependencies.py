"""
dependencies.py
---------------
FastAPI dependency injection functions for caller identity.

Flow:
  1. HTTPBearer extracts the Bearer token from the Authorization header.
  2. decode_access_token validates and parses the JWT (no DB round-trip).
  3. get_current_caller returns the caller's uid and authenticated email.

Profile rows are NOT loaded here. The workflow services read them inside
their own transaction so that "profile not found" is reported as a
workflow error and the read participates in the transaction's locks.
"""

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from upkeep.core.errors import UnauthenticatedError
from upkeep.core.logging import get_logger
from upkeep.core.security import decode_access_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedCaller:
    uid: str
    email: str
    role: Optional[str] = None


async def get_current_caller(
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)
    ],
) -> AuthenticatedCaller:
    """
    Decode the JWT and return the caller identity.
    Raises 401 if the token is missing, invalid, or lacks sub/email.
    """
    if credentials is None:
        raise UnauthenticatedError("The request must be made while authenticated.")
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as exc:
        logger.warning("JWT decode failed", error=str(exc))
        raise UnauthenticatedError("Could not validate credentials")

    uid = payload.get("sub")
    email = payload.get("email")
    if not uid or not email:
        raise UnauthenticatedError("Could not validate credentials")

    return AuthenticatedCaller(uid=uid, email=email, role=payload.get("role"))
