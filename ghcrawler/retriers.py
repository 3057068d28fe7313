"""Fetcher and persister wrappers that retry failures with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from ghcrawler.entities import Repository
from ghcrawler.interfaces import (
    CrawlerError,
    FetchResult,
    RepositoryFetcher,
    RepositoryPersister,
)
from ghcrawler.requests import Request
from ghcrawler.state import CrawlerState

_log = logging.getLogger(__name__)

_MAX_BACKOFF_EXPONENT = 31

T = TypeVar("T")


async def _retry(
    operation: Callable[[], Awaitable[T]],
    label: str,
    max_retries: int,
    base_delay: float,
    keep_going: Callable[[], bool] = lambda: True,
) -> T | None:
    """Run ``operation`` until it succeeds, ``keep_going`` is false or retries run out."""
    attempts = 0
    while keep_going():
        try:
            return await operation()
        except Exception as error:
            _log.warning("%s attempt #%d failed: %s", label, attempts + 1, error)
            attempts += 1
            if attempts >= max_retries:
                raise CrawlerError(f"Failed after {attempts} attempts: {error}") from error
            await asyncio.sleep(base_delay * 2 ** min(attempts, _MAX_BACKOFF_EXPONENT))
    return None


class FetcherRetrier(RepositoryFetcher):
    """Retries a fetcher up to ``max_retries`` times while the crawl is not done.

    ``base_delay`` is in seconds and doubles with every failed attempt.
    """

    def __init__(
        self,
        fetcher: RepositoryFetcher,
        max_retries: int,
        base_delay: float,
        state: CrawlerState,
    ) -> None:
        self._fetcher = fetcher
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._state = state

    async def fetch(self, request: Request) -> FetchResult:
        return await _retry(
            lambda: self._fetcher.fetch(request),
            "Fetch",
            self._max_retries,
            self._base_delay,
            keep_going=lambda: not self._state.has_completed(),
        )


class PersisterRetrier(RepositoryPersister):
    """Retries a persister up to ``max_retries`` times.

    ``base_delay`` is in seconds and doubles with every failed attempt.
    """

    def __init__(
        self,
        persister: RepositoryPersister,
        max_retries: int,
        base_delay: float,
    ) -> None:
        self._persister = persister
        self._max_retries = max_retries
        self._base_delay = base_delay

    async def persist(self, repositories: Sequence[Repository]) -> int:
        return await _retry(
            lambda: self._persister.persist(repositories),
            "Persist",
            self._max_retries,
            self._base_delay,
        )