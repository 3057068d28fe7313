"""Fetches repositories from the GitHub GraphQL search API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ghcrawler.entities import FetcherRateLimit, Repository, Response
from ghcrawler.interfaces import CrawlerError, FetchResult, RepositoryFetcher
from ghcrawler.requests import (
    RepositoriesFromOrganizationRequest,
    Request,
    SearchOrganizationRequest,
)

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_ENDPOINT = "https://api.github.com/graphql"

TOKEN_ENVIRONMENT_VARIABLE = "GITHUB_API_TOKEN"

SEARCH_QUERY = """
query ($query: String!, $first: Int!, $after: String) {
  search(query: $query, type: REPOSITORY, first: $first, after: $after) {
    edges {
      node {
        ... on Repository {
          name
          owner {
            login
          }
          stargazerCount
        }
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
  rateLimit {
    limit
    cost
    remaining
    resetAt
  }
}
"""


class FetcherError(CrawlerError):
    """A GraphQL query failed."""

    prefix = "Fetcher error"

    def __init__(self, message: str) -> None:
        super().__init__(f"{self.prefix}: {message}")
        self.message = message


class ParseError(FetcherError):
    """The GraphQL response could not be understood."""

    prefix = "Parsing error"


class RemoteError(FetcherError):
    """The GraphQL endpoint could not be reached or reported an error."""

    prefix = "Remote error"


@dataclass(frozen=True)
class _Node:
    name: str
    owner_login: str
    stargazer_count: int


@dataclass(frozen=True)
class _SearchData:
    nodes: list[_Node]
    end_cursor: Optional[str]
    has_next_page: bool
    rate_limit: FetcherRateLimit


def _require_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value


def _require_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {value!r}")
    return value


def _parse_search_data(data: Any) -> _SearchData:
    try:
        search = data["search"]
        nodes = [
            _Node(
                name=_require_str(edge["node"]["name"]),
                owner_login=_require_str(edge["node"]["owner"]["login"]),
                stargazer_count=_require_int(edge["node"]["stargazerCount"]),
            )
            for edge in search["edges"]
            if edge is not None
        ]
        page_info = search["pageInfo"]
        end_cursor = page_info.get("endCursor")
        if end_cursor is not None:
            _require_str(end_cursor)
        has_next_page = page_info["hasNextPage"]
        if not isinstance(has_next_page, bool):
            raise TypeError(f"expected a boolean, got {has_next_page!r}")
        rate = data["rateLimit"]
        rate_limit = FetcherRateLimit(
            limit=_require_int(rate["limit"]),
            cost=_require_int(rate["cost"]),
            remaining=_require_int(rate["remaining"]),
            reset_at=_require_str(rate["resetAt"]),
        )
    except (KeyError, TypeError, AttributeError) as error:
        raise ParseError(f"Failed to parse response: {error}") from error
    return _SearchData(nodes, end_cursor, has_next_page, rate_limit)


class GraphQlFetcher(RepositoryFetcher):
    """Runs search queries against a GraphQL endpoint.

    The bearer token is read from the GITHUB_API_TOKEN environment variable.
    """

    def __init__(self, endpoint: str = GITHUB_GRAPHQL_ENDPOINT) -> None:
        token = os.environ.get(TOKEN_ENVIRONMENT_VARIABLE)
        if token is None:
            raise CrawlerError(
                f"Missing {TOKEN_ENVIRONMENT_VARIABLE} environment variable"
            )
        self._endpoint = endpoint
        self._client = httpx.AsyncClient(
            headers={
                "User-Agent": "gql-client",
                "Authorization": f"Bearer {token}",
            }
        )

    async def _query(self, query: str, first: int, after: Optional[str]) -> _SearchData:
        payload = {
            "query": SEARCH_QUERY,
            "variables": {"query": query, "first": first, "after": after},
        }
        try:
            reply = await self._client.post(self._endpoint, json=payload)
        except httpx.HTTPError as error:
            raise RemoteError(str(error)) from error
        try:
            body = reply.json()
        except ValueError as error:
            raise ParseError(f"Failed to parse response: {error}") from error
        if not isinstance(body, dict):
            raise ParseError(f"Failed to parse response: unexpected body {body!r}")
        errors = body.get("errors")
        if errors:
            messages = [
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            ]
            raise RemoteError("; ".join(messages))
        data = body.get("data")
        if data is None:
            raise RemoteError(
                f"Received empty response (HTTP status {reply.status_code})"
            )
        return _parse_search_data(data)

    async def fetch_organizations(self, request: SearchOrganizationRequest) -> FetchResult:
        """Turn a search into one request per repository owner found."""
        try:
            data = await self._query(request.query, request.first, request.after)
        except ParseError as error:
            logger.error("Failed to parse GraphQL response: %s", error.message)
            return None
        if not data.nodes:
            return None
        next_requests: list[Request] = [
            RepositoriesFromOrganizationRequest(node.owner_login, request.first, None)
            for node in data.nodes
        ]
        if data.has_next_page:
            next_requests.append(
                SearchOrganizationRequest(request.query, request.first, data.end_cursor)
            )
        return Response([], data.rate_limit), next_requests

    async def fetch_repositories_from_organization(
        self, request: RepositoriesFromOrganizationRequest
    ) -> FetchResult:
        """Fetch one page of starred repositories of an organization."""
        data = await self._query(
            f"org:{request.organization_name} stars:>0", request.first, request.after
        )
        if not data.nodes:
            return None
        repositories = [
            Repository(node.name, request.organization_name, node.stargazer_count)
            for node in data.nodes
        ]
        next_requests: list[Request] = []
        if data.has_next_page:
            next_requests.append(
                RepositoriesFromOrganizationRequest(
                    request.organization_name, request.first, data.end_cursor
                )
            )
        return Response(repositories, data.rate_limit), next_requests

    async def fetch(self, request: Request) -> FetchResult:
        if isinstance(request, SearchOrganizationRequest):
            return await self.fetch_organizations(request)
        if isinstance(request, RepositoriesFromOrganizationRequest):
            return await self.fetch_repositories_from_organization(request)
        raise TypeError(f"unsupported request: {request!r}")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()