from __future__ import annotations

from typing import Optional, Protocol

from .entities import DecodedToken


class PublicKeyFetcher(Protocol):
    """
    Port for a single attempt at fetching the token-signing public key.

    Implemented by the HTTP adapter (`GET /auth/public-key`). Retrying is
    not its job; PublicKeyCache retries around it.
    """

    async def fetch_public_key(self) -> Optional[str]:
        """
        Return the PEM encoded key, or None if the response carried none.

        Raises:
          - NetworkError / AuthError on transport or HTTP failures
        """
        ...


class PublicKeyProvider(Protocol):
    """
    Port for anything that can hand out the current public key.
    """

    async def get_public_key(self) -> str:
        ...

    async def refresh_public_key(self) -> str:
        ...


class TokenVerifier(Protocol):
    """
    Port for verifying an access token into a DecodedToken.
    """

    async def verify(self, token: str) -> DecodedToken:
        """
        Verify the given token.

        Should:
          - verify signature
          - check expiry, audience and required claims
        Raises:
          - TokenExpiredError
          - InvalidTokenError
          - NetworkError if the public key could not be obtained
        """
        ...
