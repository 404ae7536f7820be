import asyncio

import pytest

from enhancer_auth import NetworkError, PublicKeyCache


class CountingFetcher:
    """Fetcher returning queued outcomes; an Exception outcome is raised."""

    def __init__(self, *outcomes, gate: asyncio.Event | None = None):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.gate = gate

    async def fetch_public_key(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.mark.asyncio
async def test_cached_key_is_reused_without_fetching_again(sleep):
    fetcher = CountingFetcher("PEM-1")
    cache = PublicKeyCache(fetcher, sleep=sleep)

    first = await cache.get_public_key()
    second = await cache.get_public_key()
    third = await cache.get_public_key()

    assert first == second == third == "PEM-1"
    assert fetcher.calls == 1
    assert cache.cached_public_key == "PEM-1"


@pytest.mark.asyncio
async def test_concurrent_callers_share_a_single_fetch(sleep):
    gate = asyncio.Event()
    fetcher = CountingFetcher("PEM-1", gate=gate)
    cache = PublicKeyCache(fetcher, sleep=sleep)

    tasks = [asyncio.create_task(cache.get_public_key()) for _ in range(10)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks)

    assert results == ["PEM-1"] * 10
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_concurrent_callers_all_see_the_same_failure(sleep):
    gate = asyncio.Event()
    fetcher = CountingFetcher(ConnectionError("refused"), gate=gate)
    cache = PublicKeyCache(fetcher, sleep=sleep)

    tasks = [asyncio.create_task(cache.get_public_key()) for _ in range(5)]
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert all(isinstance(r, NetworkError) for r in results)
    assert fetcher.calls == 3  # one retry sequence, not five


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff_then_succeeds(sleep):
    fetcher = CountingFetcher(ConnectionError("refused"), TimeoutError("slow"), "PEM-1")
    cache = PublicKeyCache(fetcher, sleep=sleep)

    assert await cache.get_public_key() == "PEM-1"
    assert fetcher.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_three_attempts(sleep):
    fetcher = CountingFetcher(ConnectionError("refused"))
    cache = PublicKeyCache(fetcher, sleep=sleep)

    with pytest.raises(NetworkError) as exc_info:
        await cache.get_public_key()

    err = exc_info.value
    assert err.attempts == 3
    assert err.last_error == "refused"
    assert "after 3 attempts" in str(err)
    assert sleep.delays == [1.0, 2.0]
    assert cache.cached_public_key is None


@pytest.mark.asyncio
async def test_backoff_doubles_from_configured_base_delay(sleep):
    last = TimeoutError("slow")
    fetcher = CountingFetcher(
        ConnectionError("refused"), ConnectionError("refused"), OSError("reset"), last
    )
    cache = PublicKeyCache(fetcher, max_attempts=4, base_delay=0.25, sleep=sleep)

    with pytest.raises(NetworkError) as exc_info:
        await cache.get_public_key()

    assert fetcher.calls == 4
    assert sleep.delays == [0.25, 0.5, 1.0]
    assert exc_info.value.__cause__ is last


@pytest.mark.asyncio
async def test_failed_fetch_is_not_cached_and_next_call_fetches_again(sleep):
    fetcher = CountingFetcher(
        ConnectionError("a"), ConnectionError("b"), ConnectionError("c"), "PEM-1"
    )
    cache = PublicKeyCache(fetcher, sleep=sleep)

    with pytest.raises(NetworkError):
        await cache.get_public_key()

    assert await cache.get_public_key() == "PEM-1"
    assert fetcher.calls == 4


@pytest.mark.asyncio
async def test_missing_key_field_counts_as_failed_attempt(sleep):
    fetcher = CountingFetcher(None, "", "PEM-1")
    cache = PublicKeyCache(fetcher, sleep=sleep)

    assert await cache.get_public_key() == "PEM-1"
    assert fetcher.calls == 3


@pytest.mark.asyncio
async def test_missing_key_field_on_every_attempt_raises_network_error(sleep):
    cache = PublicKeyCache(CountingFetcher(None), sleep=sleep)

    with pytest.raises(NetworkError, match="missing publicKey field"):
        await cache.get_public_key()


@pytest.mark.asyncio
async def test_refresh_always_fetches_a_new_key(sleep):
    fetcher = CountingFetcher("PEM-1", "PEM-2")
    cache = PublicKeyCache(fetcher, sleep=sleep)

    assert await cache.get_public_key() == "PEM-1"
    assert await cache.refresh_public_key() == "PEM-2"
    assert await cache.get_public_key() == "PEM-2"
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_stale_fetch_does_not_overwrite_key_after_refresh(sleep):
    class TwoPhaseFetcher:
        def __init__(self):
            self.calls = 0
            self.release_first = asyncio.Event()

        async def fetch_public_key(self):
            self.calls += 1
            if self.calls == 1:
                await self.release_first.wait()
                return "OLD"
            return "NEW"

    fetcher = TwoPhaseFetcher()
    cache = PublicKeyCache(fetcher, sleep=sleep)

    straggler = asyncio.create_task(cache.get_public_key())
    while fetcher.calls < 1:
        await asyncio.sleep(0)

    assert await cache.refresh_public_key() == "NEW"

    fetcher.release_first.set()
    assert await straggler == "OLD"  # its own waiters still get an answer
    assert cache.cached_public_key == "NEW"
    assert await cache.get_public_key() == "NEW"
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_ttl_expiry_triggers_a_new_fetch(sleep):
    now = [1000.0]
    fetcher = CountingFetcher("PEM-1", "PEM-2")
    cache = PublicKeyCache(fetcher, ttl_seconds=60, sleep=sleep, clock=lambda: now[0])

    assert await cache.get_public_key() == "PEM-1"
    now[0] += 59
    assert await cache.get_public_key() == "PEM-1"
    now[0] += 1
    assert await cache.get_public_key() == "PEM-2"
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_shared_fetch(sleep):
    gate = asyncio.Event()
    fetcher = CountingFetcher("PEM-1", gate=gate)
    cache = PublicKeyCache(fetcher, sleep=sleep)

    impatient = asyncio.create_task(cache.get_public_key())
    patient = asyncio.create_task(cache.get_public_key())
    await asyncio.sleep(0)

    impatient.cancel()
    gate.set()

    assert await patient == "PEM-1"
    with pytest.raises(asyncio.CancelledError):
        await impatient
    assert fetcher.calls == 1


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        PublicKeyCache(CountingFetcher("PEM"), max_attempts=0)
