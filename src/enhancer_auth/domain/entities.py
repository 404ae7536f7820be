from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from .constants import Provider


@dataclass(frozen=True, slots=True)
class DecodedToken:
    """
    Verified access-token payload.

    Built only after signature and claim verification succeeded, so every
    field is guaranteed present and correctly typed.
    """
    sub: str
    username: str
    profile_picture: str
    iss: str
    exp: int
    iat: int
    aud: str
    scope: Tuple[str, ...]

    @property
    def account_id(self) -> str:
        return self.sub

    def has_scope(self, scope: str) -> bool:
        return scope in self.scope

    def to_claims(self) -> Dict[str, Any]:
        """Return the payload in its wire shape (camelCase, scope as list)."""
        return {
            "sub": self.sub,
            "username": self.username,
            "profilePicture": self.profile_picture,
            "iss": self.iss,
            "exp": self.exp,
            "iat": self.iat,
            "aud": self.aud,
            "scope": list(self.scope),
        }


@dataclass(frozen=True, slots=True)
class CachedPublicKey:
    """
    Public key held by PublicKeyCache.

    Replaced wholesale on every successful fetch, never mutated.
    """
    key_material: str
    fetched_at: float


@dataclass(slots=True)
class TokenResponse:
    """
    Tokens returned by the exchange-code and refresh endpoints.
    """
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TokenResponse":
        return cls(
            access_token=payload["accessToken"],
            refresh_token=payload["refreshToken"],
            expires_in=int(payload["expiresIn"]),
            token_type=payload.get("tokenType") or "Bearer",
        )


@dataclass(slots=True)
class ConnectedAccount:
    """
    Third-party account linked to an Enhancer account.
    """
    id: str
    provider: Provider
    provider_user_id: str
    username: str
    profile_picture_url: str
    is_primary: bool
    linked_at: str  # ISO 8601

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ConnectedAccount":
        return cls(
            id=payload["id"],
            provider=Provider(payload["provider"]),
            provider_user_id=payload["providerUserId"],
            username=payload["username"],
            profile_picture_url=payload["profilePictureUrl"],
            is_primary=bool(payload.get("isPrimary", False)),
            linked_at=payload["linkedAt"],
        )
