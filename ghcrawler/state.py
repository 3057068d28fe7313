"""Shared bookkeeping for crawlers: the request queue and progress counters."""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from ghcrawler.entities import FetcherRateLimit
from ghcrawler.interfaces import CrawlerError
from ghcrawler.requests import Request

logger = logging.getLogger(__name__)


class _Prioritized:
    """Heap entry that turns the min-heap of heapq into a max-heap of requests."""

    __slots__ = ("request",)

    def __init__(self, request: Request) -> None:
        self.request = request

    def __lt__(self, other: _Prioritized) -> bool:
        return other.request < self.request


@dataclass
class CrawlerState:
    """State shared by every worker of one crawl.

    Requests are handed out highest priority first and each distinct
    request is queued at most once over the life of the state.
    """

    total_repositories_target: int = 0
    total_fetcher_calls: int = 0
    total_persisted_repositories: int = 0
    total_collisions_repositories: int = 0
    current_api_rate_limit: FetcherRateLimit = field(default_factory=FetcherRateLimit)
    _queue: list[_Prioritized] = field(default_factory=list, init=False, repr=False)
    _pushed: set[Request] = field(default_factory=set, init=False, repr=False)
    _in_progress: set[Request] = field(default_factory=set, init=False, repr=False)

    def has_completed(self) -> bool:
        """Whether enough repositories have been persisted.

        Raises CrawlerError when there is nothing left to do but the
        target has not been reached.
        """
        target = self.total_repositories_target
        persisted = self.total_persisted_repositories
        if persisted >= target:
            return True
        if not self._queue and self._pushed and not self._in_progress:
            raise CrawlerError(
                "Not enough repositories persisted. "
                f"Expected: {target}, persisted: {persisted}"
            )
        return False

    def push_request(self, request: Request) -> None:
        """Queue a request unless it has been queued before."""
        if request in self._pushed:
            logger.info("Request already pushed: %s", request)
            return
        self._pushed.add(request)
        heapq.heappush(self._queue, _Prioritized(request))

    def push_requests(self, requests: Iterable[Request]) -> None:
        """Queue several requests, skipping those queued before."""
        for request in requests:
            self.push_request(request)

    def acknowledge_request(self, request: Request) -> None:
        """Mark a request as processed."""
        self._in_progress.discard(request)

    def pop_request(self) -> Optional[Request]:
        """Take the highest priority request and mark it in progress."""
        if not self._queue:
            return None
        request = heapq.heappop(self._queue).request
        self._in_progress.add(request)
        return request

    def state_summary(self) -> str:
        """One line describing the progress of the crawl."""
        return (
            f"Repositories: done={self.total_persisted_repositories}"
            f"/{self.total_repositories_target}, "
            f"collisions={self.total_collisions_repositories}, "
            f"Requests: done={self.total_fetcher_calls} "
            f"in_progress={len(self._in_progress)} buffered={len(self._queue)}, "
            f"{self.current_api_rate_limit}"
        )