from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
import logging

from stevi.config import JWT_SECRET, JWT_ALGORITHM

logger = logging.getLogger(__name__)

# auto_error=False: an anonymous request resolves to "no principal" so the
# pipeline can answer with a login redirect instead of a bare 403.
security = HTTPBearer(auto_error=False)


def decode_user_id(token: str) -> Optional[str]:
    """Return the `sub` claim of a valid session token, or None."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Session token rejected: {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Session token missing sub claim")
        return None
    return user_id


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """
    Resolve the authenticated user id from the bearer token.

    Returns None when no token is sent or it does not verify.
    """
    if credentials is None:
        return None

    user_id = decode_user_id(credentials.credentials)
    if user_id:
        logger.debug(f"Authenticated user: {user_id}")
    return user_id
