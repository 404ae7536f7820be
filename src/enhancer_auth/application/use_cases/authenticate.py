from __future__ import annotations

from dataclasses import dataclass

from ...domain.entities import DecodedToken
from ...domain.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    NetworkError,
    TokenExpiredError,
)
from ...domain.ports import TokenVerifier


@dataclass(slots=True)
class AuthenticateTokenUseCase:
    """
    Application use case:
    - Verify an access token via the TokenVerifier port
    - Keep the expired / invalid / network classification intact

    Framework-agnostic.
    """

    token_verifier: TokenVerifier

    async def execute(self, token: str) -> DecodedToken:
        """
        Authenticate a token and return its DecodedToken.

        Raises:
            TokenExpiredError
            InvalidTokenError
            NetworkError
            AuthenticationError
        """
        try:
            return await self.token_verifier.verify(token)
        except (TokenExpiredError, InvalidTokenError, NetworkError):
            # let callers distinguish these explicitly
            raise
        except Exception as exc:
            # Wrap unexpected errors in a generic AuthenticationError
            raise AuthenticationError(f"Token validation failed: {exc}") from exc
