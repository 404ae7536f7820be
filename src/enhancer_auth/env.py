from __future__ import annotations

import os
from typing import Optional

from .domain.exceptions import ConfigurationError
from .settings import EnhancerAuthSettings


def settings_from_env() -> EnhancerAuthSettings:
    def _bool(key: str, default: bool = False) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _float(key: str, default: Optional[float]) -> Optional[float]:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return float(raw)
        except ValueError as exc:
            raise ConfigurationError(
                f"Configuration validation failed: {key}: must be a number",
                errors=[f"{key}: must be a number"],
            ) from exc

    backend_url = os.getenv("ENHANCER_AUTH_BACKEND_URL")
    frontend_url = os.getenv("ENHANCER_AUTH_FRONTEND_URL")
    service_id = os.getenv("ENHANCER_SERVICE_ID")
    if not all([backend_url, frontend_url, service_id]):
        missing = [
            n
            for n, v in [
                ("ENHANCER_AUTH_BACKEND_URL", backend_url),
                ("ENHANCER_AUTH_FRONTEND_URL", frontend_url),
                ("ENHANCER_SERVICE_ID", service_id),
            ]
            if not v
        ]
        raise ConfigurationError(
            f"Missing Enhancer auth settings: {', '.join(missing)}",
            errors=missing,
        )

    return EnhancerAuthSettings(
        auth_backend_url=backend_url,
        auth_frontend_url=frontend_url,
        service_id=service_id,
        service_secret=os.getenv("ENHANCER_SERVICE_SECRET") or None,
        timeout=_float("ENHANCER_AUTH_TIMEOUT", 10.0),
        public_key_cache_ttl=_float("ENHANCER_PUBLIC_KEY_CACHE_TTL", None),
        issuer=os.getenv("ENHANCER_AUTH_ISSUER") or None,
        leeway=_float("ENHANCER_AUTH_LEEWAY", 0.0),
        enable_debug_logs=_bool("ENHANCER_AUTH_DEBUG", False),
    )
