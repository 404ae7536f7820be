from __future__ import annotations

import logging
from typing import Iterable, List, Optional
from urllib.parse import quote

import httpx

from .adapters.http.client import AuthBackendClient
from .adapters.jwt.public_key_cache import PublicKeyCache
from .adapters.jwt.verifier import JWTTokenVerifier
from .application.use_cases.authenticate import AuthenticateTokenUseCase
from .application.use_cases.authorize import AuthorizeScopesUseCase
from .domain.entities import ConnectedAccount, DecodedToken, TokenResponse
from .domain.value_objects import ScopeRequirement, is_valid_uuid
from .settings import EnhancerAuthSettings


class EnhancerAuthClient:
    """
    Main entry point for talking to the Enhancer auth service.

    Wires the HTTP adapter, the shared PublicKeyCache, the JWT verifier and the
    authenticate / authorize use cases together:

        settings = EnhancerAuthSettings(
            auth_backend_url="http://localhost:8080",
            auth_frontend_url="https://auth.enhancer.at",
            service_id="my-service",
            service_secret="secret_abc123",
        )

        async with EnhancerAuthClient(settings) as client:
            login_url = client.get_login_url()
            tokens = await client.exchange_code(code, state)
            decoded = await client.verify_token(tokens.access_token)
    """

    def __init__(
        self,
        settings: EnhancerAuthSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings

        if settings.enable_debug_logs:
            logging.getLogger("enhancer_auth").setLevel(logging.DEBUG)

        self._backend = AuthBackendClient(settings, client=http_client)
        self._public_key_cache = PublicKeyCache(
            self._backend,
            ttl_seconds=settings.public_key_cache_ttl,
        )
        self._verifier = JWTTokenVerifier(
            self._public_key_cache,
            settings.service_id,
            issuer=settings.issuer,
            leeway=settings.leeway,
        )
        self._authenticate = AuthenticateTokenUseCase(token_verifier=self._verifier)
        self._authorize = AuthorizeScopesUseCase()

    async def __aenter__(self) -> "EnhancerAuthClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._backend.close()

    @property
    def public_key_cache(self) -> PublicKeyCache:
        return self._public_key_cache

    # ------------------------------------------------------------------ #
    # OAuth flow
    # ------------------------------------------------------------------ #

    def get_login_url(self) -> str:
        """e.g. https://auth.enhancer.at/login?service=my-service"""
        service = quote(self.settings.service_id, safe="")
        return f"{self.settings.frontend_base_url}/login?service={service}"

    async def exchange_code(self, code: str, state: str) -> TokenResponse:
        """Exchange the callback's authorization code for tokens."""
        return await self._backend.exchange_code(code, state)

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """
        Get a fresh access token. The usual reaction to TokenExpiredError.
        """
        return await self._backend.refresh_token(refresh_token)

    # ------------------------------------------------------------------ #
    # JWT verification
    # ------------------------------------------------------------------ #

    async def verify_token(self, token: str) -> DecodedToken:
        """
        Raises:
            TokenExpiredError
            InvalidTokenError
            NetworkError if the public key could not be fetched
        """
        return await self._authenticate.execute(token)

    def authorize(
            self,
            token: DecodedToken,
            requirements: Iterable[ScopeRequirement],
    ) -> DecodedToken:
        """Check scope requirements on an already verified token."""
        return self._authorize.execute(token, requirements)

    async def get_public_key(self) -> str:
        """RSA public key in PEM format (cached after the first fetch)."""
        return await self._public_key_cache.get_public_key()

    async def refresh_public_key(self) -> str:
        """Re-fetch the public key, e.g. after the auth service rotated keys."""
        return await self._public_key_cache.refresh_public_key()

    # ------------------------------------------------------------------ #
    # Service API
    # ------------------------------------------------------------------ #

    async def get_connected_accounts(self, account_id: str) -> List[ConnectedAccount]:
        """
        Connected third-party accounts of an account.

        Requires `service_secret` (HTTP basic auth with service id + secret).
        """
        if not is_valid_uuid(account_id):
            raise ValueError(f"account_id must be a valid UUID: {account_id!r}")
        return await self._backend.get_connected_accounts(account_id)


def create_auth_client(
        *,
        auth_backend_url: str,
        auth_frontend_url: str,
        service_id: str,
        service_secret: str | None = None,
        public_key_cache_ttl: float | None = None,
        issuer: str | None = None,
) -> EnhancerAuthClient:
    """
    High-level factory: plain config values -> EnhancerAuthClient.
    """
    settings = EnhancerAuthSettings(
        auth_backend_url=auth_backend_url,
        auth_frontend_url=auth_frontend_url,
        service_id=service_id,
        service_secret=service_secret,
        public_key_cache_ttl=public_key_cache_ttl,
        issuer=issuer,
    )
    return EnhancerAuthClient(settings)
