"""Verification of access tokens issued by the external identity provider."""

from datetime import datetime, timedelta, timezone

from jose import jwt

from gymgrub.config import settings


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Sign an access token the way the identity provider does.

    Only used for local development and tests; production tokens come from
    the provider.

    Args:
        subject: The user's ID, stored in the ``sub`` claim.
        expires_delta: Custom expiration duration. Defaults to
            ``settings.jwt_access_token_expire_minutes`` minutes.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes))
    claims = {"sub": subject, "exp": expire, "iat": now, "role": "authenticated"}
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Args:
        token: Encoded JWT string.

    Returns:
        Decoded payload dictionary.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    options = {"verify_aud": settings.jwt_audience is not None}
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )
