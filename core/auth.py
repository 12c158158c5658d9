"""
Bearer-token verification against the identity provider's signing key.
Maps a valid token to the user id in its `sub` claim.
"""
import asyncio
import logging
from typing import Optional, Sequence

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

DEV_USER_ID = "dev-user"


class AuthConfigError(RuntimeError):
    """No verification key configured where one is required."""


def decode_user_id(
    token: str,
    key: str,
    algorithms: Sequence[str],
    audience: Optional[str] = None,
    issuer: Optional[str] = None,
) -> Optional[str]:
    """Return the `sub` claim of a valid token, else None."""
    options = {"verify_aud": bool(audience)}
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=list(algorithms),
            audience=audience or None,
            issuer=issuer or None,
            options=options,
        )
    except JWTError:
        return None
    sub = claims.get("sub")
    return str(sub) if sub else None


async def verify_token(
    token: Optional[str],
    key: str = "",
    algorithms: Sequence[str] = ("RS256",),
    audience: Optional[str] = None,
    issuer: Optional[str] = None,
    production: bool = False,
) -> Optional[str]:
    """
    Verify a bearer token and return the user id, or None if invalid/expired.

    Without a key, development builds accept any non-empty token as DEV_USER_ID;
    production raises AuthConfigError.
    """
    if not token:
        return None
    if not key:
        if production:
            raise AuthConfigError("AUTH_JWT_KEY is required in production")
        logger.warning("AUTH_JWT_KEY not set; skipping token verification in development")
        return DEV_USER_ID
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, decode_user_id, token, key, algorithms, audience, issuer)
