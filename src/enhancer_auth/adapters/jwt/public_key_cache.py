from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ...domain.constants import PUBLIC_KEY_MAX_ATTEMPTS, PUBLIC_KEY_RETRY_BASE_DELAY
from ...domain.entities import CachedPublicKey
from ...domain.exceptions import NetworkError
from ...domain.ports import PublicKeyFetcher, PublicKeyProvider

logger = logging.getLogger(__name__)


class PublicKeyCache(PublicKeyProvider):
    """
    Owns the public key used to verify access tokens.

    - returns the cached key without touching the network
    - collapses concurrent misses into a single fetch (single-flight)
    - retries failed fetches with exponential backoff (1s, 2s, ...)
    - `refresh_public_key` starts a new generation; a fetch started in an
      older generation still answers its own waiters but never writes the cache

    Meant to be used from a single event loop. State only changes between
    suspension points, so no lock is needed.
    """

    def __init__(
        self,
        fetcher: PublicKeyFetcher,
        *,
        ttl_seconds: Optional[float] = None,
        max_attempts: int = PUBLIC_KEY_MAX_ATTEMPTS,
        base_delay: float = PUBLIC_KEY_RETRY_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._fetcher = fetcher
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._sleep = sleep
        self._clock = clock

        self._cached: Optional[CachedPublicKey] = None
        self._pending: Optional[asyncio.Task[str]] = None
        self._generation = 0

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def cached_public_key(self) -> Optional[str]:
        cached = self._fresh_entry()
        return cached.key_material if cached else None

    async def get_public_key(self) -> str:
        """
        Return the public key, fetching it if not cached.

        Raises:
            NetworkError if every fetch attempt failed.
        """
        cached = self._fresh_entry()
        if cached is not None:
            logger.debug("Using cached public key")
            return cached.key_material

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load(self._generation))
            self._pending.add_done_callback(_log_unretrieved)
        else:
            logger.debug("Waiting for in-progress public key fetch")

        # shield: a cancelled waiter must not cancel the fetch other callers share
        return await asyncio.shield(self._pending)

    async def refresh_public_key(self) -> str:
        """
        Discard the cached key and fetch a new one.

        Use this if you suspect the auth service has rotated its keys.
        """
        logger.debug("Forcing public key refresh")
        self.invalidate()
        return await self.get_public_key()

    def invalidate(self) -> None:
        """Drop the cached key and forget any in-flight fetch."""
        self._generation += 1
        self._cached = None
        self._pending = None

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _fresh_entry(self) -> Optional[CachedPublicKey]:
        cached = self._cached
        if cached is None:
            return None
        if self._ttl is not None and self._clock() - cached.fetched_at >= self._ttl:
            logger.debug("Cached public key expired after %ss", self._ttl)
            return None
        return cached

    async def _load(self, generation: int) -> str:
        try:
            key_material = await self._fetch_with_retry()
        finally:
            if generation == self._generation:
                self._pending = None

        if generation == self._generation:
            self._cached = CachedPublicKey(key_material=key_material, fetched_at=self._clock())
        else:
            logger.debug("Discarding public key from stale fetch (generation %d)", generation)
        return key_material

    async def _fetch_with_retry(self) -> str:
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._base_delay, exp_base=2),
            retry=retry_if_exception_type(Exception),
            before=self._log_attempt,
            before_sleep=self._log_retry,
            reraise=False,
        )
        try:
            key_material = await retrying(self._fetch_once)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            logger.error(
                "Failed to fetch public key after %d attempts: %s", self._max_attempts, last_error
            )
            raise NetworkError(
                f"Failed to fetch public key after {self._max_attempts} attempts: {last_error}",
                attempts=self._max_attempts,
                last_error=str(last_error) if last_error is not None else None,
            ) from last_error

        logger.debug("Successfully fetched public key")
        return key_material

    async def _fetch_once(self) -> str:
        key_material = await self._fetcher.fetch_public_key()
        if not isinstance(key_material, str) or not key_material.strip():
            raise ValueError("Invalid response: missing publicKey field")
        return key_material

    def _log_attempt(self, retry_state: RetryCallState) -> None:
        logger.debug(
            "Fetching public key (attempt %d/%d)", retry_state.attempt_number, self._max_attempts
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Public key fetch attempt %d/%d failed: %s; retrying in %.1fs",
            retry_state.attempt_number,
            self._max_attempts,
            retry_state.outcome.exception() if retry_state.outcome else None,
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
        )


def _log_unretrieved(task: "asyncio.Task[str]") -> None:
    # Reading the exception marks it retrieved when every waiter went away.
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Public key fetch finished with error: %s", task.exception())
