from __future__ import annotations

from typing import Mapping, Optional

from ..domain.exceptions import InvalidTokenError

DEFAULT_COOKIE_NAME = "access_token"

BEARER_PREFIX = "Bearer "


def read_bearer_token(
    authorization: Optional[str],
    cookies: Mapping[str, str],
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> Optional[str]:
    """
    Pick the access token a request carries, shared by every web integration.

    The Authorization header wins over the cookie. A header that is present
    but not `Bearer <token>` is a client error, not a reason to fall back to
    the cookie.

    Returns:
        The token, or None when the request carries none.

    Raises:
        InvalidTokenError if the Authorization header is malformed.
    """
    if authorization:
        if not authorization.startswith(BEARER_PREFIX):
            raise InvalidTokenError(
                "Invalid Authorization header format. Expected: Bearer <token>"
            )
        token = authorization[len(BEARER_PREFIX):].strip()
        if token:
            return token

    return cookies.get(cookie_name) or None
