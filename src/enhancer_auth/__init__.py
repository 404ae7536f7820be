"""
enhancer_auth

Python client for the Enhancer auth service: OAuth code exchange plus local
verification of RS256 access tokens against a cached public key.
"""

__version__ = "0.1.0"

from .domain.entities import DecodedToken, TokenResponse, ConnectedAccount, CachedPublicKey
from .domain.constants import Provider
from .domain.exceptions import (
    AuthError,
    AuthenticationError,
    AuthorizationError,
    TokenExpiredError,
    InvalidTokenError,
    ServiceAuthError,
    NetworkError,
    RateLimitError,
    ConfigurationError,
)
from .domain.value_objects import ScopeRequirement, require_scopes
from .domain.ports import PublicKeyFetcher, PublicKeyProvider, TokenVerifier

from .application.use_cases.authenticate import AuthenticateTokenUseCase
from .application.use_cases.authorize import AuthorizeScopesUseCase

from .adapters.jwt.public_key_cache import PublicKeyCache
from .adapters.jwt.verifier import JWTTokenVerifier
from .adapters.http.client import AuthBackendClient

from .settings import EnhancerAuthSettings
from .env import settings_from_env
from .client import EnhancerAuthClient, create_auth_client

__all__ = [
    "__version__",
    # domain core
    "DecodedToken",
    "TokenResponse",
    "ConnectedAccount",
    "CachedPublicKey",
    "Provider",
    "ScopeRequirement",
    "require_scopes",
    "PublicKeyFetcher",
    "PublicKeyProvider",
    "TokenVerifier",
    # exceptions
    "AuthError",
    "AuthenticationError",
    "AuthorizationError",
    "TokenExpiredError",
    "InvalidTokenError",
    "ServiceAuthError",
    "NetworkError",
    "RateLimitError",
    "ConfigurationError",
    # use cases
    "AuthenticateTokenUseCase",
    "AuthorizeScopesUseCase",
    # adapters
    "PublicKeyCache",
    "JWTTokenVerifier",
    "AuthBackendClient",
    # client + config
    "EnhancerAuthSettings",
    "settings_from_env",
    "EnhancerAuthClient",
    "create_auth_client",
]
