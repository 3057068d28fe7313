import pytest

from ghcrawler.entities import FetcherRateLimit, Repository, Response
from ghcrawler.interfaces import CrawlerError, RepositoryFetcher, RepositoryPersister
from ghcrawler.requests import SearchOrganizationRequest
from ghcrawler.retriers import FetcherRetrier, PersisterRetrier
from ghcrawler.state import CrawlerState

REQUEST = SearchOrganizationRequest("dummy", 10, None)
REPOSITORIES = [Repository("repository-1", "org-1", 100)]
FETCH_RESULT = (
    Response(
        [Repository("repository-1", "org-1", 10)],
        FetcherRateLimit(limit=5000, cost=1, remaining=4999, reset_at="2025-01-01T00:00:00Z"),
    ),
    [],
)


class Scripted(RepositoryFetcher, RepositoryPersister):
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def _next(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def fetch(self, request):
        return await self._next()

    async def persist(self, repositories):
        return await self._next()


def make_state(target=10, persisted=0):
    state = CrawlerState()
    state.total_repositories_target = target
    state.total_persisted_repositories = persisted
    state.push_request(REQUEST)
    return state


def run(kind, scripted, state=None):
    if kind == "fetch":
        return FetcherRetrier(scripted, 3, 0.01, state or make_state()).fetch(REQUEST)
    return PersisterRetrier(scripted, 3, 0.01).persist(REPOSITORIES)


SUCCESS = [("fetch", FETCH_RESULT), ("persist", 10)]


@pytest.mark.asyncio
@pytest.mark.parametrize("kind, success", SUCCESS)
@pytest.mark.parametrize("failures", [0, 2])
async def test_success_within_retries(kind, success, failures):
    scripted = Scripted([RuntimeError("Temporary failure")] * failures + [success])

    assert await run(kind, scripted) == success
    assert scripted.calls == failures + 1


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["fetch", "persist"])
async def test_failure_after_max_retries(kind):
    scripted = Scripted([RuntimeError("Temporary failure")] * 3)

    with pytest.raises(CrawlerError, match="Failed after 3 attempts: Temporary failure"):
        await run(kind, scripted)
    assert scripted.calls == 3


@pytest.mark.asyncio
async def test_fetch_returns_none_when_crawl_already_completed():
    scripted = Scripted([FETCH_RESULT])

    assert await run("fetch", scripted, make_state(persisted=10)) is None
    assert scripted.calls == 0