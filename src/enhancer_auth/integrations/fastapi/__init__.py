from __future__ import annotations

from .deps import FastAPIAuthorization, auth_error_to_http, bearer_scheme
from ..credentials import DEFAULT_COOKIE_NAME
from ...client import EnhancerAuthClient


def create_fastapi_auth(
    client: EnhancerAuthClient,
    *,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> FastAPIAuthorization:
    """
    High-level helper for FastAPI apps:

    - Wraps an EnhancerAuthClient in FastAPIAuthorization, exposing dependencies like:

        fastapi_auth.get_current_user
        fastapi_auth.get_optional_user
        fastapi_auth.require_scopes(...)
    """
    return FastAPIAuthorization(client=client, cookie_name=cookie_name)


__all__ = [
    "FastAPIAuthorization",
    "auth_error_to_http",
    "bearer_scheme",
    "create_fastapi_auth",
]
