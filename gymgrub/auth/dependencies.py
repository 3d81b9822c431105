"""FastAPI authentication dependencies for route protection.

Users are managed by the external identity provider; routes only need the
caller's ID, taken from the verified token's ``sub`` claim.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from gymgrub.auth.jwt import decode_token

# Missing tokens are handled below so every failure is a 401
_bearer_scheme = HTTPBearer(auto_error=False)


def _subject_from_token(token: str) -> str | None:
    try:
        payload = decode_token(token)
    except JWTError:
        return None
    sub = payload.get("sub")
    return sub if isinstance(sub, str) and sub else None


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """Return the authenticated caller's user ID.

    Raises:
        HTTPException 401: If the token is missing, invalid, expired, or has no subject.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = _subject_from_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


async def get_optional_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str | None:
    """Optionally authenticate the caller from a Bearer token.

    Returns ``None`` instead of raising when no valid token is provided, so
    the payment endpoint can fall back to the ``userId`` in the request body.
    """
    if credentials is None:
        return None
    return _subject_from_token(credentials.credentials)
