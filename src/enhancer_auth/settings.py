from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from .domain.exceptions import ConfigurationError
from .domain.value_objects import sanitize_url


def _check_http_url(name: str, value: str, errors: List[str]) -> None:
    parsed = urlparse(value or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append(f"{name}: must be a valid HTTP/HTTPS URL")


@dataclass(slots=True)
class EnhancerAuthSettings:
    """
    Connection + verification settings for EnhancerAuthClient.

    Host code decides how to construct this (env, config file, etc.).
    Durations are in seconds.
    """
    auth_backend_url: str
    auth_frontend_url: str
    service_id: str
    service_secret: Optional[str] = None

    timeout: float = 10.0
    public_key_cache_ttl: Optional[float] = None  # None: cache forever
    issuer: Optional[str] = None
    leeway: float = 0.0
    enable_debug_logs: bool = False

    def __post_init__(self) -> None:
        errors: List[str] = []

        _check_http_url("auth_backend_url", self.auth_backend_url, errors)
        _check_http_url("auth_frontend_url", self.auth_frontend_url, errors)

        if not (self.service_id or "").strip():
            errors.append("service_id: service_id is required")

        if not self.timeout or self.timeout <= 0:
            errors.append("timeout: must be a positive number")

        if self.public_key_cache_ttl is not None:
            if self.public_key_cache_ttl <= 0:
                errors.append("public_key_cache_ttl: must be a positive number")
            elif math.isinf(self.public_key_cache_ttl):
                self.public_key_cache_ttl = None

        if self.leeway < 0:
            errors.append("leeway: must not be negative")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {', '.join(errors)}",
                errors=errors,
            )

    @property
    def backend_base_url(self) -> str:
        return sanitize_url(self.auth_backend_url)

    @property
    def frontend_base_url(self) -> str:
        return sanitize_url(self.auth_frontend_url)
