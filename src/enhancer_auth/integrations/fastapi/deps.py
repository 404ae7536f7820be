from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..credentials import DEFAULT_COOKIE_NAME, read_bearer_token
from ...client import EnhancerAuthClient
from ...domain.entities import DecodedToken
from ...domain.exceptions import (
    TokenExpiredError,
    InvalidTokenError,
    AuthenticationError,
    AuthorizationError,
    NetworkError,
)
from ...domain.value_objects import require_scopes

# Declared on the dependencies so OpenAPI shows the bearer scheme; the token
# itself is read by read_bearer_token, which also accepts the cookie.
bearer_scheme = HTTPBearer(auto_error=False)


def auth_error_to_http(exc: Exception) -> HTTPException:
    """
    Map domain auth errors onto HTTP errors:
    expired / invalid -> 401, missing scopes -> 403, auth backend unreachable -> 503.
    """
    if isinstance(exc, TokenExpiredError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Token has expired", "code": exc.error_code},
        )
    if isinstance(exc, (InvalidTokenError, AuthenticationError)):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": str(exc), "code": exc.error_code},
        )
    if isinstance(exc, AuthorizationError):
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Insufficient permissions",
                "code": exc.error_code,
                "required_scopes": list(exc.required_scopes),
                "user_scopes": list(exc.granted_scopes),
            },
        )
    if isinstance(exc, NetworkError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"message": "Authentication service unavailable", "code": exc.error_code},
        )
    raise TypeError(f"Unsupported auth error: {exc!r}")


@dataclass(slots=True)
class FastAPIAuthorization:
    """
    FastAPI integration for enhancer_auth.

    Usage:

        fastapi_auth = create_fastapi_auth(client)

        @router.get("/me")
        async def me(user: DecodedToken = Depends(fastapi_auth.get_current_user)):
            return {"username": user.username}

        @router.get("/admin")
        async def admin(user: DecodedToken = Depends(fastapi_auth.require_scopes("ADMIN"))):
            ...
    """

    client: EnhancerAuthClient
    cookie_name: str = DEFAULT_COOKIE_NAME

    # ------------------------------------------------------------------ #
    # Base dependencies
    # ------------------------------------------------------------------ #

    def _read_token(self, request: Request) -> Optional[str]:
        return read_bearer_token(
            request.headers.get("Authorization"), request.cookies, self.cookie_name
        )

    async def get_current_user(
            self,
            request: Request,
            credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> DecodedToken:
        """Dependency: Require authentication."""
        try:
            token = self._read_token(request)
            if token is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Not authenticated",
                )
            return await self.client.verify_token(token)
        except (TokenExpiredError, InvalidTokenError, AuthenticationError, NetworkError) as exc:
            raise auth_error_to_http(exc) from exc

    async def get_optional_user(
            self,
            request: Request,
            credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> DecodedToken | None:
        """Dependency: Optional authentication."""
        try:
            token = self._read_token(request)
            if token is None:
                return None
            return await self.client.verify_token(token)
        except (TokenExpiredError, InvalidTokenError, AuthenticationError):
            # bad token -> treat as anonymous
            return None
        except NetworkError as exc:
            raise auth_error_to_http(exc) from exc

    # ------------------------------------------------------------------ #
    # Authorization dependency factories
    # ------------------------------------------------------------------ #

    def require_scopes(self, *scopes: str, any_of: bool = False) -> Callable:
        """
        Dependency factory: require all of the given scopes
        (or any of them with any_of=True).
        """

        async def dependency(
                user: DecodedToken = Depends(self.get_current_user),
        ) -> DecodedToken:
            requirement = require_scopes(*scopes, any_of=any_of)
            try:
                return self.client.authorize(user, [requirement])
            except AuthorizationError as exc:
                raise auth_error_to_http(exc) from exc

        return dependency
