"""Requests sent to the GitHub GraphQL API and their priority ordering."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import ClassVar, Optional


def _debug_option(value: Optional[str]) -> str:
    if value is None:
        return "None"
    return f"Some({json.dumps(value, ensure_ascii=False)})"


class Request:
    """Base class of every request; defines the priority ordering.

    Requests compare first on their pagination cursor (no cursor sorts
    lowest), then on their kind, then on page size, and finally on their
    label against the other request's cursor.
    """

    _variant_weight: ClassVar[int] = 0

    first: int
    after: Optional[str]

    @property
    def label(self) -> str:
        """The query text or organization name the request targets."""
        raise NotImplementedError

    def _compare(self, other: Request) -> int:
        own = (self.after is not None, self.after or "", self._variant_weight, self.first)
        theirs = (other.after is not None, other.after or "", other._variant_weight, other.first)
        if own != theirs:
            return -1 if own < theirs else 1
        other_after = other.after or ""
        if self.label == other_after:
            return 0
        return -1 if self.label < other_after else 1

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Request):
            return NotImplemented
        return self._compare(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Request):
            return NotImplemented
        return self._compare(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Request):
            return NotImplemented
        return self._compare(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Request):
            return NotImplemented
        return self._compare(other) >= 0


@dataclass(frozen=True, eq=True, order=False)
class SearchOrganizationRequest(Request):
    """A search whose results are used to discover organizations."""

    _variant_weight: ClassVar[int] = 0

    query: str
    first: int
    after: Optional[str] = None

    @property
    def label(self) -> str:
        return self.query

    def __str__(self) -> str:
        return (
            f"SearchOrganizationRequest: query={self.query}, "
            f"first={self.first}, after={_debug_option(self.after)}"
        )


@dataclass(frozen=True, eq=True, order=False)
class RepositoriesFromOrganizationRequest(Request):
    """A request for the repositories of one organization."""

    _variant_weight: ClassVar[int] = 1

    organization_name: str
    first: int
    after: Optional[str] = None

    @property
    def label(self) -> str:
        return self.organization_name

    def __str__(self) -> str:
        return (
            "RepositoriesFromOrganizationRequest: "
            f"organization_name={self.organization_name}, "
            f"first={self.first}, after={_debug_option(self.after)}"
        )