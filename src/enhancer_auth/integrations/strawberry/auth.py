from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Type

from graphql import GraphQLError
from starlette.requests import Request
from strawberry.permission import BasePermission
from strawberry.types import Info

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


# --------------------------------------------------------------------- #
# Context type used by Strawberry
# --------------------------------------------------------------------- #

@dataclass(slots=True)
class StrawberryAuthContext:
    """
    Default context type for Strawberry GraphQL.

    You can use this directly, or extend it in your app by adding more fields.
    """
    request: Request
    user: Optional[DecodedToken] = None
    extra: Any = None  # host app can put UoW, services, etc. here if desired


# --------------------------------------------------------------------- #
# Main integration: StrawberryAuth
# --------------------------------------------------------------------- #

@dataclass(slots=True)
class StrawberryAuth:
    """
    Strawberry GraphQL integration for enhancer_auth.

    Responsibilities:
      - provide a `context_getter` for Strawberry's GraphQLRouter
      - provide permission classes you can attach to fields/mutations
    """

    client: EnhancerAuthClient
    cookie_name: str = DEFAULT_COOKIE_NAME

    # ----------------------------------------------------------------- #
    # Context getter
    # ----------------------------------------------------------------- #

    def make_context_getter(
        self,
        *,
        optional: bool = True,
        extra_factory: Optional[Callable[[Request, Optional[DecodedToken]], Any]] = None,
    ):
        """
        Build an async function compatible with:

            strawberry.fastapi.GraphQLRouter(context_getter=...)

        Args:
            optional:
                - True:   token errors become `user=None` in context
                - False:  token errors become GraphQL errors
            extra_factory:
                - Optional callable: (request, user) -> Any, stored on context.extra

        An unreachable auth backend is always a GraphQL error, even when optional.
        """

        def _anonymous(request: Request) -> StrawberryAuthContext:
            extra = extra_factory(request, None) if extra_factory else None
            return StrawberryAuthContext(request=request, user=None, extra=extra)

        async def _context_getter(request: Request) -> StrawberryAuthContext:
            try:
                token = read_bearer_token(
                    request.headers.get("Authorization"), request.cookies, self.cookie_name
                )
                if token is None:
                    if optional:
                        return _anonymous(request)
                    raise GraphQLError("Not authenticated")
                user = await self.client.verify_token(token)
            except TokenExpiredError:
                if optional:
                    return _anonymous(request)
                raise GraphQLError("Token has expired", extensions={"code": "TOKEN_EXPIRED"})
            except (InvalidTokenError, AuthenticationError) as exc:
                if optional:
                    return _anonymous(request)
                raise GraphQLError(str(exc), extensions={"code": exc.error_code})
            except NetworkError as exc:
                raise GraphQLError(
                    "Authentication service unavailable",
                    extensions={"code": exc.error_code},
                ) from exc

            extra = extra_factory(request, user) if extra_factory else None
            return StrawberryAuthContext(request=request, user=user, extra=extra)

        return _context_getter

    # ----------------------------------------------------------------- #
    # Permission helpers
    # ----------------------------------------------------------------- #

    def require_authenticated(self) -> Type[BasePermission]:
        """
        Permission: user must be authenticated (context.user is not None).
        """

        class _RequireAuthenticated(BasePermission):
            message = "Authentication required"

            def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
                ctx: StrawberryAuthContext = info.context
                return ctx.user is not None

        return _RequireAuthenticated

    def require_scopes(self, required: Sequence[str], *, any_of: bool = False) -> Type[BasePermission]:
        """
        Permission: user must have ALL of the given scopes (ANY with any_of=True).

        Example:

            RequireAdmin = strawberry_auth.require_scopes(["ADMIN"])

            @strawberry.field(permission_classes=[RequireAdmin])
            def secret_stuff(self, info: Info) -> str:
                ...
        """
        client = self.client
        scopes = list(required)

        class _RequireScopes(BasePermission):
            message = "Forbidden"

            def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
                ctx: StrawberryAuthContext = info.context
                if not ctx.user:
                    self.message = "Authentication required"
                    return False

                requirement = require_scopes(*scopes, any_of=any_of)
                try:
                    client.authorize(ctx.user, [requirement])
                    return True
                except AuthorizationError as exc:
                    self.message = str(exc)
                    return False

        return _RequireScopes


def create_strawberry_auth(
    client: EnhancerAuthClient,
    *,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> StrawberryAuth:
    """
    Convenience helper:

        strawberry_auth = create_strawberry_auth(client)
        router = GraphQLRouter(schema, context_getter=strawberry_auth.make_context_getter())
    """
    return StrawberryAuth(client=client, cookie_name=cookie_name)
