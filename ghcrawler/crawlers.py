"""Crawlers that drive fetching and persisting of repositories."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from ghcrawler.entities import Response
from ghcrawler.interfaces import (
    CrawlerError,
    RepositoryCrawler,
    RepositoryFetcher,
    RepositoryPersister,
)
from ghcrawler.requests import Request
from ghcrawler.state import CrawlerState

logger = logging.getLogger(__name__)


class WorkerCrawler(RepositoryCrawler):
    """Takes requests from the shared state one at a time until the crawl is done."""

    def __init__(
        self,
        fetcher: RepositoryFetcher,
        persister: RepositoryPersister,
        state: CrawlerState,
    ) -> None:
        self._fetcher = fetcher
        self._persister = persister
        self._state = state

    async def _process_response(self, response: Response, request: Request) -> None:
        self._state.current_api_rate_limit = response.rate_limit
        repositories = response.repositories
        if not repositories:
            logger.info("No repositories found for request: %r", request)
        for repository in repositories:
            logger.info("Fetched %s", repository)
        persisted = await self._persister.persist(repositories)
        self._state.total_persisted_repositories += persisted
        self._state.total_collisions_repositories += len(repositories) - persisted

    async def crawl(self, requests: list[Request], total_repositories: int) -> None:
        self._state.total_repositories_target = total_repositories
        self._state.push_requests(requests)
        while not self._state.has_completed():
            request = self._state.pop_request()
            if request is None:
                # Let other workers make progress on their requests.
                await asyncio.sleep(0)
                continue
            logger.info("Processing request: %s", request)
            self._state.total_fetcher_calls += 1
            result = await self._fetcher.fetch(request)
            if result is not None:
                response, next_requests = result
                await self._process_response(response, request)
                self._state.push_requests(next_requests)
            self._state.acknowledge_request(request)
            logger.warning("%s", self._state.state_summary())
        logger.warning("Crawler has completed")


class ParallelCrawler(RepositoryCrawler):
    """Runs several crawlers concurrently over one shared state.

    ``delay_between_crawlers`` is in seconds and separates the start of
    each crawler from the previous one.
    """

    def __init__(
        self,
        crawlers: Sequence[RepositoryCrawler],
        delay_between_crawlers: float,
        state: CrawlerState,
    ) -> None:
        self._crawlers = list(crawlers)
        self._delay_between_crawlers = delay_between_crawlers
        self._state = state

    async def crawl(self, requests: list[Request], total_repositories: int) -> None:
        if not requests:
            raise CrawlerError(
                "Not enough requests to process, at least one request is required"
            )

        self._state.push_requests(requests)
        logger.warning("%s", self._state.state_summary())

        tasks: list[asyncio.Task[None]] = []
        try:
            for crawler in self._crawlers:
                if tasks:
                    await asyncio.sleep(self._delay_between_crawlers)
                tasks.append(
                    asyncio.create_task(crawler.crawl([], total_repositories))
                )
                logger.warning(
                    "Started crawler %d/%d", len(tasks), len(self._crawlers)
                )
            for task in tasks:
                await task
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()