"""Command line entry point of the GitHub crawler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import Callable, Optional

from ghcrawler import __version__
from ghcrawler.crawlers import ParallelCrawler, WorkerCrawler
from ghcrawler.fetcher_graphql import GITHUB_GRAPHQL_ENDPOINT, GraphQlFetcher
from ghcrawler.interfaces import CrawlerError, RepositoryCrawler
from ghcrawler.persister_postgres import PostgresSqlPersister
from ghcrawler.rate_limiter import FetcherRateLimitEnforcer
from ghcrawler.requests import Request, SearchOrganizationRequest
from ghcrawler.retriers import FetcherRetrier, PersisterRetrier
from ghcrawler.state import CrawlerState

logger = logging.getLogger(__name__)

FETCHER_MAX_RETRIES = 5
FETCHER_RETRY_BASE_DELAY = 10.0
PERSISTER_MAX_RETRIES = 3
PERSISTER_RETRY_BASE_DELAY = 0.1
DELAY_BETWEEN_CRAWLERS = 1.0

DEFAULT_SEED_QUERIES = ["is:public"]


def _bounded_int(maximum: int) -> Callable[[str], int]:
    def convert(text: str) -> int:
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer: {text!r}") from None
        if not 0 <= value <= maximum:
            raise argparse.ArgumentTypeError(f"{value} is not in 0..={maximum}")
        return value

    return convert


def _split_queries(text: str) -> list[str]:
    return text.split(",")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse the command line."""
    parser = argparse.ArgumentParser(
        prog="ghcrawler", description="Crawl GitHub repositories into PostgreSQL."
    )
    parser.add_argument("-V", "--version", action="version", version=__version__)
    parser.add_argument(
        "-t", "--total-repositories", type=_bounded_int(2**32 - 1), default=100000,
        help="Total repositories to crawl",
    )
    parser.add_argument(
        "-s", "--seed-queries", type=_split_queries, action="extend", default=None,
        help="Seed queries used to bootstrap crawling, comma separated",
    )
    parser.add_argument(
        "-n", "--number-workers", type=_bounded_int(2**8 - 1), default=1,
        help="Number of workers",
    )
    parser.add_argument(
        "-m", "--max-repository-fetched-per-request", type=_bounded_int(2**16 - 1),
        default=100, help="Maximum number of repositories fetched per request",
    )
    parser.add_argument(
        "-p", "--postgres-connection-string", required=True,
        help="PostgreSQL connection string",
    )
    args = parser.parse_args(argv)
    if args.seed_queries is None:
        args.seed_queries = list(DEFAULT_SEED_QUERIES)
    return args


def seed_requests(args: argparse.Namespace) -> list[Request]:
    """One organization search per seed query."""
    return [
        SearchOrganizationRequest(query, args.max_repository_fetched_per_request, None)
        for query in args.seed_queries
    ]


def _build_worker(args: argparse.Namespace, state: CrawlerState) -> RepositoryCrawler:
    fetcher = FetcherRetrier(
        FetcherRateLimitEnforcer(GraphQlFetcher(GITHUB_GRAPHQL_ENDPOINT)),
        FETCHER_MAX_RETRIES,
        FETCHER_RETRY_BASE_DELAY,
        state,
    )
    persister = PersisterRetrier(
        PostgresSqlPersister(args.postgres_connection_string),
        PERSISTER_MAX_RETRIES,
        PERSISTER_RETRY_BASE_DELAY,
    )
    return WorkerCrawler(fetcher, persister, state)


def build_crawler(args: argparse.Namespace, state: CrawlerState) -> ParallelCrawler:
    """A parallel crawler running the requested number of workers."""
    workers = [_build_worker(args, state) for _ in range(args.number_workers)]
    return ParallelCrawler(workers, DELAY_BETWEEN_CRAWLERS, state)


async def run(args: argparse.Namespace) -> None:
    """Crawl according to the parsed arguments."""
    requests = seed_requests(args)
    logger.warning("Seed requests: %r", requests)
    state = CrawlerState()
    crawler = build_crawler(args, state)
    await crawler.crawl(requests, args.total_repositories)
    logger.warning("Crawling completed")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the crawler and return the process exit status."""
    logging.basicConfig(level=logging.WARNING)
    logger.warning("Starting GitHub crawling")
    args = parse_args(argv)
    try:
        asyncio.run(run(args))
    except CrawlerError as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())