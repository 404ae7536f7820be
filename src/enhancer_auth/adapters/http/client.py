from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ... import __version__
from ...domain.entities import ConnectedAccount, TokenResponse
from ...domain.exceptions import (
    AuthError,
    InvalidTokenError,
    NetworkError,
    RateLimitError,
    ServiceAuthError,
)
from ...domain.ports import PublicKeyFetcher
from ...settings import EnhancerAuthSettings

logger = logging.getLogger(__name__)

USER_AGENT = f"enhancer-auth-client-python/{__version__}"


class AuthBackendClient(PublicKeyFetcher):
    """
    Minimal async client for the Enhancer auth backend (httpx-based).

    - one attempt per call; retrying is left to callers (see PublicKeyCache)
    - translates transport failures and non-2xx answers into domain errors
    - exposes the four backend endpoints this library consumes
    """

    def __init__(self, settings: EnhancerAuthSettings, client: Optional[httpx.AsyncClient] = None):
        self.s = settings
        self._client = client or httpx.AsyncClient(
            timeout=self.s.timeout,
            headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
            event_hooks={"request": [_log_request], "response": [_log_response]},
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # base helpers
    # ------------------------------------------------------------------ #

    def _url(self, path: str) -> str:
        return f"{self.s.backend_base_url}{path}"

    def _service_auth(self) -> httpx.BasicAuth:
        if not self.s.service_secret:
            raise ServiceAuthError("service_secret is required for service-to-service requests")
        return httpx.BasicAuth(self.s.service_id, self.s.service_secret)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(
                method,
                self._url(path),
                json=json,
                auth=auth if auth is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.TimeoutException as e:
            raise NetworkError("Request timeout", last_error=str(e)) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: {e}", last_error=str(e)) from e

        if resp.is_error:
            err = _transform_error(resp, service_auth=auth is not None)
            logger.debug(
                "Auth backend error: %s %s (status=%s)",
                type(err).__name__,
                err.message,
                err.status_code,
            )
            raise err
        return resp

    # ------------------------------------------------------------------ #
    # endpoints
    # ------------------------------------------------------------------ #

    async def fetch_public_key(self) -> Optional[str]:
        resp = await self._request("GET", "/auth/public-key")
        body = resp.json() or {}
        return body.get("publicKey") if isinstance(body, dict) else None

    async def exchange_code(self, code: str, state: str) -> TokenResponse:
        resp = await self._request(
            "POST",
            "/auth/exchange-code",
            json={"code": code, "state": state, "serviceId": self.s.service_id},
        )
        return TokenResponse.from_payload(resp.json())

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        resp = await self._request("POST", "/auth/refresh", json={"refreshToken": refresh_token})
        return TokenResponse.from_payload(resp.json())

    async def get_connected_accounts(self, account_id: str) -> List[ConnectedAccount]:
        resp = await self._request(
            "GET",
            f"/api/service/accounts/{account_id}/connected-accounts",
            auth=self._service_auth(),
        )
        return [ConnectedAccount.from_payload(item) for item in (resp.json() or [])]


# --------------------------------------------------------------------- #
# error translation + debug hooks
# --------------------------------------------------------------------- #

def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and "message" in data:
        return str(data["message"])
    return resp.text or resp.reason_phrase or f"HTTP {resp.status_code}"


def _transform_error(resp: httpx.Response, *, service_auth: bool) -> AuthError:
    message = _error_message(resp)
    status = resp.status_code

    if status == 401:
        return ServiceAuthError(message) if service_auth else InvalidTokenError(message)
    if status == 429:
        retry_after_raw = resp.headers.get("Retry-After")
        try:
            retry_after = int(retry_after_raw) if retry_after_raw else None
        except ValueError:
            retry_after = None
        return RateLimitError(message, retry_after)
    return AuthError(message, status)


async def _log_request(request: httpx.Request) -> None:
    logger.debug("Request: %s %s", request.method, request.url)


async def _log_response(response: httpx.Response) -> None:
    logger.debug("Response: %s %s", response.status_code, response.request.url)
