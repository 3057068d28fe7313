"""A fetcher wrapper that waits for the API rate limit to reset."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ghcrawler.interfaces import FetchResult, RepositoryFetcher
from ghcrawler.requests import Request

_log = logging.getLogger(__name__)


class FetcherRateLimitEnforcer(RepositoryFetcher):
    """Delegates to another fetcher and sleeps until reset when the limit is near."""

    def __init__(self, fetcher: RepositoryFetcher) -> None:
        self._fetcher = fetcher

    async def fetch(self, request: Request) -> FetchResult:
        result = await self._fetcher.fetch(request)
        if result is not None and result[0].rate_limit.is_exceeded():
            delay = result[0].rate_limit.duration_until_reset(datetime.now(timezone.utc))
            _log.warning("Fetcher rate limit exceeded for request, waiting for %s", delay)
            await asyncio.sleep(delay.total_seconds())
        return result