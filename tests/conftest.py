"""Shared fixtures for org-stats tests.

Provides:
- A fixed clock and a recording sleep for retry tests
- A fake REST client for collector tests
- Builders for GitHub API payloads
"""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest

from org_stats.github.http import GitHubHTTPError
from org_stats.github.retry import RetryingFetcher

TEST_TOKEN = "ghp_" + "a" * 36
NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)

# Week starts (Mondays, 00:00 UTC)
WEEK_2024_01_01 = 1704067200
WEEK_2024_01_08 = 1704672000
WEEK_2024_01_15 = 1705276800


def week(start: int, additions: int = 0, deletions: int = 0, commits: int = 0) -> dict[str, int]:
    """Contributor stats week payload."""
    return {"w": start, "a": additions, "d": deletions, "c": commits}


def contributor(login: str | None, weeks: list[dict[str, int]]) -> dict[str, Any]:
    """Contributor stats payload; `login=None` models an anonymous author."""
    author = None if login is None else {"login": login, "id": hash(login) & 0xFFFF}
    return {
        "author": author,
        "total": sum(w["c"] for w in weeks),
        "weeks": weeks,
    }


def repo(name: str, fork: bool = False) -> dict[str, Any]:
    """Repository payload."""
    return {"name": name, "full_name": f"acme/{name}", "fork": fork, "archived": False}


class FakeRestClient:
    """In-memory stand-in for RestClient that records every call."""

    def __init__(
        self,
        members: list[str] | None = None,
        repos: list[dict[str, Any]] | None = None,
        stats: dict[str, list[dict[str, Any]]] | None = None,
        reviews: dict[str, int] | None = None,
        errors: dict[str, GitHubHTTPError] | None = None,
    ) -> None:
        self.members = members or []
        self.repos = repos or []
        self.stats = stats or {}
        self.reviews = reviews or {}
        self.errors = errors or {}
        self.stats_calls: list[str] = []
        self.search_calls: list[str] = []

    def _maybe_fail(self, key: str) -> None:
        if key in self.errors:
            raise self.errors[key]

    async def list_org_members(self, org: str) -> list[dict[str, Any]]:
        self._maybe_fail("members")
        return [{"login": login} for login in self.members]

    async def list_org_repos(self, org: str) -> list[dict[str, Any]]:
        self._maybe_fail("repos")
        return list(self.repos)

    async def get_contributor_stats(self, owner: str, name: str) -> list[dict[str, Any]]:
        self.stats_calls.append(name)
        self._maybe_fail(f"stats:{name}")
        return self.stats.get(name, [])

    async def search_issues_count(self, query: str) -> int:
        self.search_calls.append(query)
        self._maybe_fail("search")
        reviewer = next(
            part.split(":", 1)[1] for part in query.split() if part.startswith("reviewed-by:")
        )
        return self.reviews.get(reviewer, 0)


@pytest.fixture
def sleep() -> AsyncMock:
    """Sleep replacement that returns immediately and records waits."""
    return AsyncMock()


@pytest.fixture
def fetcher(sleep: AsyncMock) -> RetryingFetcher:
    """RetryingFetcher with a fixed clock and no real waiting."""
    return RetryingFetcher(sleep=sleep, clock=lambda: NOW)
