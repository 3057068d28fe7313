from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest

from ghcrawler.entities import FetcherRateLimit, Repository, Response
from ghcrawler.interfaces import RepositoryFetcher
from ghcrawler.rate_limiter import FetcherRateLimitEnforcer
from ghcrawler.requests import SearchOrganizationRequest

REQUEST = SearchOrganizationRequest("dummy", 10, None)


class StubFetcher(RepositoryFetcher):
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def fetch(self, request):
        self.calls.append(request)
        return self.result


def result_with(remaining, reset_at):
    rate_limit = FetcherRateLimit(limit=1000, cost=1, remaining=remaining, reset_at=reset_at)
    return (Response([Repository("repository-1", "org-1", 10)], rate_limit), [])


def reset_in(seconds):
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "remaining, seconds_ahead, expected_sleeps",
    [(100, 60, 0), (10, 3600, 1)],
    ids=["not-exceeded", "exceeded"],
)
async def test_fetch_sleeps_only_when_exceeded(remaining, seconds_ahead, expected_sleeps):
    result = result_with(remaining, reset_in(seconds_ahead).isoformat())
    stub = StubFetcher(result)

    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        got = await FetcherRateLimitEnforcer(stub).fetch(REQUEST)

    assert got == result
    assert stub.calls == [REQUEST]
    assert sleep.await_count == expected_sleeps
    if expected_sleeps:
        (seconds,), _ = sleep.await_args
        assert seconds_ahead - 1 <= seconds <= seconds_ahead + 1


@pytest.mark.asyncio
async def test_fetch_rate_limit_exceeded_waits_until_reset():
    reset_at = reset_in(1)
    result = result_with(0, reset_at.isoformat())

    got = await FetcherRateLimitEnforcer(StubFetcher(result)).fetch(REQUEST)

    assert got == result
    assert reset_at <= datetime.now(timezone.utc)


@pytest.mark.asyncio
async def test_fetch_passes_through_none():
    with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
        got = await FetcherRateLimitEnforcer(StubFetcher(None)).fetch(REQUEST)

    assert got is None
    assert sleep.await_count == 0


@pytest.mark.asyncio
async def test_fetch_with_invalid_reset_when_exceeded_raises():
    enforcer = FetcherRateLimitEnforcer(StubFetcher(result_with(0, "invalid-date")))

    with pytest.raises(ValueError):
        await enforcer.fetch(REQUEST)