"""Bearer token verification.

Tokens are minted by the login service; this API only checks the signature,
expiry and (optionally) audience, then reads the caller's id from ``sub``.
"""

from typing import Any

from jose import jwt

from esg_tracker.core.config import settings


def verify_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT. Raises jose.JWTError on any failure."""
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        options=options,
    )
