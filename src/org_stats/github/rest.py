"""GitHub REST API client for organization statistics.

Provides the handful of endpoints the aggregation needs. Every call goes
through the RetryingFetcher; list endpoints are paginated with fixed page
sizes.
"""

import logging
from typing import Any, cast

from org_stats.github.http import (
    GitHubClient,
    GitHubHTTPError,
    GitHubResponse,
    raise_for_signal,
)
from org_stats.github.pagination import Page, next_page_from_link, paginate
from org_stats.github.retry import RetryingFetcher

logger = logging.getLogger(__name__)

MEMBERS_PER_PAGE = 100
REPOS_PER_PAGE = 10
SEARCH_PER_PAGE = 1


class RestClient:
    """GitHub REST API client with pagination and retry handling."""

    def __init__(
        self,
        http_client: GitHubClient,
        fetcher: RetryingFetcher | None = None,
    ) -> None:
        """Initialize REST API client.

        Args:
            http_client: GitHubClient instance for HTTP requests.
            fetcher: Retry policy for each request. Defaults to a RetryingFetcher
                sleeping with asyncio.sleep.
        """
        self._http = http_client
        self._fetcher = fetcher or RetryingFetcher()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> GitHubResponse:
        response = await self._http.get(path, params=params)
        raise_for_signal(response, now=self._fetcher.now())
        return response

    async def _list(self, path: str, per_page: int, description: str) -> list[Any]:
        async def fetch_page(page: int) -> Page:
            response = await self._get(path, params={"per_page": per_page, "page": page})
            data = response.data if isinstance(response.data, list) else []
            return Page(items=data, next_page=next_page_from_link(response.headers.get("link")))

        return await paginate(self._fetcher, fetch_page, description)

    async def list_org_members(self, org: str) -> list[dict[str, Any]]:
        """List all members of an organization.

        Args:
            org: Organization name.

        Returns:
            Member user objects in upstream order.
        """
        logger.info("Fetching members for org: %s", org)
        return await self._list(
            f"/orgs/{org}/members",
            MEMBERS_PER_PAGE,
            f"list organization members: {org}",
        )

    async def list_org_repos(self, org: str) -> list[dict[str, Any]]:
        """List all repositories of an organization, forks included.

        Args:
            org: Organization name.

        Returns:
            Repository objects in upstream order.
        """
        logger.info("Fetching repositories for org: %s", org)
        return await self._list(
            f"/orgs/{org}/repos",
            REPOS_PER_PAGE,
            f"list repositories: {org}",
        )

    async def get_contributor_stats(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """Get per-contributor weekly statistics for a repository.

        GitHub computes these lazily and answers 202 until they are ready;
        the fetcher keeps asking until data arrives.

        Args:
            owner: Repository owner.
            repo: Repository name.

        Returns:
            Contributor stats objects; empty for repositories with no history.
        """
        path = f"/repos/{owner}/{repo}/stats/contributors"

        async def operation() -> list[dict[str, Any]]:
            response = await self._get(path)
            if response.status_code == 204 or not isinstance(response.data, list):
                return []
            return cast("list[dict[str, Any]]", response.data)

        return await self._fetcher.fetch(operation, f"get contributor stats: {owner}/{repo}")

    async def search_issues_count(self, query: str) -> int:
        """Count issues and pull requests matching a search query.

        Only the reported total is used, so a single item per page is requested.

        Args:
            query: GitHub issue search query.

        Returns:
            The search's total_count.
        """
        logger.debug("searching '%s'", query)

        async def operation() -> int:
            response = await self._get(
                "/search/issues",
                params={"q": query, "per_page": SEARCH_PER_PAGE},
            )
            if not isinstance(response.data, dict) or "total_count" not in response.data:
                raise GitHubHTTPError("search response has no total_count", response.status_code)
            return int(response.data["total_count"])

        return await self._fetcher.fetch(operation, f"search: {query}")
