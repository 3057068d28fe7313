"""Abstract roles of the crawler: crawling, fetching and persisting."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

from ghcrawler.entities import Repository, Response
from ghcrawler.requests import Request

FetchResult = Optional[tuple[Response, list[Request]]]


class CrawlerError(Exception):
    """Raised when crawling cannot go on."""


class RepositoryCrawler(ABC):
    """Retrieves GitHub repositories and their metadata."""

    @abstractmethod
    async def crawl(self, requests: list[Request], total_repositories: int) -> None:
        """Crawl until ``total_repositories`` have been persisted."""


class RepositoryFetcher(ABC):
    """Fetches repository data from the API."""

    @abstractmethod
    async def fetch(self, request: Request) -> FetchResult:
        """Return the response and follow-up requests, or None if nothing was found."""


class RepositoryPersister(ABC):
    """Stores repository data."""

    @abstractmethod
    async def persist(self, repositories: Sequence[Repository]) -> int:
        """Store the repositories and return how many were newly inserted."""