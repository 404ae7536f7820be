from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import jwt
from jwt.exceptions import (
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    MissingRequiredClaimError,
    PyJWTError,
)

from ...domain.constants import JWT_ALGORITHM, REQUIRED_CLAIMS
from ...domain.entities import DecodedToken
from ...domain.exceptions import InvalidTokenError, TokenExpiredError
from ...domain.ports import PublicKeyProvider, TokenVerifier
from ...domain.value_objects import is_valid_jwt_format

logger = logging.getLogger(__name__)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_timestamp(value: Any) -> bool:
    # Whole seconds; 1700000000.0 passes, 1700000000.5 does not.
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


_CLAIM_CHECKS = {
    "sub": _is_str,
    "username": _is_str,
    "profilePicture": _is_str,
    "iss": _is_str,
    "exp": _is_timestamp,
    "iat": _is_timestamp,
    "aud": _is_str,
    "scope": _is_str_list,
}


class JWTTokenVerifier(TokenVerifier):
    """
    Adapter implementing the TokenVerifier port with PyJWT.

    Infrastructure layer:
    - Knows about JWT structure and RS256 verification.
    - Gets its key from a PublicKeyProvider (normally a shared PublicKeyCache),
      which it references but does not own.
    """

    def __init__(
        self,
        public_key_provider: PublicKeyProvider,
        service_id: str,
        *,
        issuer: Optional[str] = None,
        leeway: float = 0.0,
    ) -> None:
        self._keys = public_key_provider
        self._service_id = service_id
        self._issuer = issuer
        self._leeway = leeway

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    async def verify(self, token: str) -> DecodedToken:
        """
        Verify and decode a JWT access token.

        Returns:
            DecodedToken with every required claim.

        Raises:
            TokenExpiredError
            InvalidTokenError
            NetworkError (from the key provider, unchanged)
        """
        self._precheck(token)

        # Not inside the try below: a NetworkError must reach the caller as is.
        public_key = await self._keys.get_public_key()

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=[JWT_ALGORITHM],
                audience=self._service_id,
                issuer=self._issuer,
                leeway=self._leeway,
            )
            decoded = self._build_decoded_token(claims)
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except InvalidAudienceError as exc:
            raise InvalidTokenError(
                f"Token audience mismatch (expected: {self._service_id})"
            ) from exc
        except InvalidIssuerError as exc:
            raise InvalidTokenError("Token issuer mismatch") from exc
        except InvalidSignatureError as exc:
            raise InvalidTokenError("Invalid token signature") from exc
        except MissingRequiredClaimError as exc:
            if exc.claim == "aud":
                raise InvalidTokenError(
                    f"Token audience mismatch (expected: {self._service_id})"
                ) from exc
            raise InvalidTokenError(f"Token claim validation failed: {exc}") from exc
        except PyJWTError as exc:
            raise InvalidTokenError(f"Token verification failed: {exc}") from exc
        except InvalidTokenError:
            raise
        except Exception as exc:
            raise InvalidTokenError(
                f"Unexpected error during token verification: {exc}"
            ) from exc

        logger.debug(
            "Token verified successfully",
            extra={
                "sub": decoded.sub,
                "username": decoded.username,
                "exp": decoded.exp,
            },
        )
        return decoded

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _precheck(token: str) -> None:
        """
        Reject garbage before spending a key fetch on it.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Token must be a non-empty string")

        if not is_valid_jwt_format(token):
            raise InvalidTokenError("Invalid JWT format")

        try:
            header = jwt.get_unverified_header(token)
        except (PyJWTError, UnicodeError) as exc:
            raise InvalidTokenError(f"Invalid JWT format: {exc}") from exc

        alg = header.get("alg")
        if alg != JWT_ALGORITHM:
            raise InvalidTokenError(f"Unsupported token algorithm: {alg}")

    @staticmethod
    def _build_decoded_token(claims: Mapping[str, Any]) -> DecodedToken:
        if not all(_CLAIM_CHECKS[name](claims.get(name)) for name in REQUIRED_CLAIMS):
            raise InvalidTokenError("Token payload missing required fields")

        return DecodedToken(
            sub=claims["sub"],
            username=claims["username"],
            profile_picture=claims["profilePicture"],
            iss=claims["iss"],
            exp=int(claims["exp"]),
            iat=int(claims["iat"]),
            aud=claims["aud"],
            scope=tuple(claims["scope"]),
        )
