"""GitHub HTTP client and upstream signal classification.

Async HTTP client for the GitHub API. The client itself never retries:
responses are classified into success, the three transient signals
(primary rate limit, secondary rate limit, stats not ready) and terminal
errors, and the retry policy lives in `org_stats.github.retry`.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from org_stats import __version__
from org_stats.github.auth import GitHubAuth

logger = logging.getLogger(__name__)

SECONDARY_RATE_LIMIT_MARKERS = ("secondary rate limit", "secondary-rate-limits", "abuse")


class RateLimitInfo(BaseModel):
    """GitHub API rate limit information from response headers."""

    limit: int
    remaining: int
    reset: datetime
    used: int
    resource: str = "core"

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> Optional["RateLimitInfo"]:
        """Extract rate limit info from response headers.

        Args:
            headers: HTTP response headers.

        Returns:
            RateLimitInfo if headers present, None otherwise.
        """
        if "x-ratelimit-limit" not in headers:
            return None

        reset_timestamp = int(headers.get("x-ratelimit-reset", "0"))
        reset_dt = datetime.fromtimestamp(reset_timestamp, tz=UTC)

        return cls(
            limit=int(headers.get("x-ratelimit-limit", "0")),
            remaining=int(headers.get("x-ratelimit-remaining", "0")),
            reset=reset_dt,
            used=int(headers.get("x-ratelimit-used", "0")),
            resource=headers.get("x-ratelimit-resource", "core"),
        )


@dataclass
class GitHubResponse:
    """GitHub API response with parsed data and metadata."""

    status_code: int
    data: Any
    headers: httpx.Headers
    rate_limit: RateLimitInfo | None = None
    url: str = ""
    retry_after: int | None = None

    @property
    def is_success(self) -> bool:
        """Check if response was successful (2xx status code)."""
        return 200 <= self.status_code < 300

    @property
    def message(self) -> str:
        """Error message reported by GitHub, if any."""
        if isinstance(self.data, dict):
            return str(self.data.get("message", ""))
        if isinstance(self.data, str):
            return self.data
        return ""

    @property
    def documentation_url(self) -> str:
        if isinstance(self.data, dict):
            return str(self.data.get("documentation_url", ""))
        return ""


@dataclass
class HTTPRateLimitState:
    """Request count and the most recent rate limit headers."""

    last_rate_limit: RateLimitInfo | None = None
    requests_made: int = 0

    def update(self, rate_limit: RateLimitInfo | None) -> None:
        self.requests_made += 1
        if rate_limit:
            self.last_rate_limit = rate_limit


class GitHubHTTPError(Exception):
    """Terminal GitHub API failure: authentication, not found, 4xx/5xx, transport."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TransientGitHubError(GitHubHTTPError):
    """Base for upstream signals that are retried rather than surfaced."""


class RateLimitExceeded(TransientGitHubError):
    """Primary rate limit exhausted; carries the reset time."""

    def __init__(self, reset_at: datetime) -> None:
        self.reset_at = reset_at
        super().__init__(f"Rate limit exceeded. Resets at {reset_at.isoformat()}", 403)


class SecondaryRateLimitExceeded(TransientGitHubError):
    """Secondary (abuse) rate limit hit; carries the time after which to retry."""

    def __init__(self, retry_after_at: datetime, status_code: int = 403) -> None:
        self.retry_after_at = retry_after_at
        super().__init__(
            f"Secondary rate limit exceeded. Retry after {retry_after_at.isoformat()}",
            status_code,
        )


class StatsNotReady(TransientGitHubError):
    """GitHub accepted the request but is still computing the result (202)."""

    def __init__(self, url: str = "") -> None:
        self.url = url
        super().__init__(f"Statistics not ready yet: {url}", 202)


def _is_secondary_rate_limit(response: GitHubResponse) -> bool:
    if response.retry_after is not None or response.status_code == 429:
        return True
    text = f"{response.message} {response.documentation_url}".lower()
    return any(marker in text for marker in SECONDARY_RATE_LIMIT_MARKERS)


def raise_for_signal(response: GitHubResponse, now: datetime | None = None) -> None:
    """Raise the exception matching a non-success upstream signal.

    Args:
        response: Response to classify.
        now: Current time, used to turn a retry-after duration into a point in time.

    Raises:
        StatsNotReady: On 202 Accepted.
        RateLimitExceeded: On 403/429 with the primary quota exhausted.
        SecondaryRateLimitExceeded: On 403/429 secondary or abuse limits.
        GitHubHTTPError: On any other non-2xx status.
    """
    if response.status_code == 202:
        raise StatsNotReady(response.url)

    if response.is_success:
        return

    if response.status_code in (403, 429):
        if response.rate_limit is not None and response.rate_limit.remaining == 0:
            raise RateLimitExceeded(response.rate_limit.reset)

        if _is_secondary_rate_limit(response):
            now = now or datetime.now(UTC)
            retry_after_at = now + timedelta(seconds=response.retry_after or 0)
            raise SecondaryRateLimitExceeded(retry_after_at, response.status_code)

    message = response.message or "no message"
    raise GitHubHTTPError(
        f"GET {response.url}: {response.status_code} {message}",
        response.status_code,
    )


class GitHubClient:
    """Async HTTP client for the GitHub API.

    Features:
    - Automatic authentication
    - Rate limit header tracking
    - Request/response logging
    - Transport failures mapped onto GitHubHTTPError
    """

    BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        auth: GitHubAuth | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URL,
    ) -> None:
        """Initialize GitHub HTTP client.

        Args:
            auth: GitHubAuth instance. If None, creates from environment.
            timeout: Request timeout in seconds.
            base_url: Base URL for GitHub API.
        """
        self._auth = auth or GitHubAuth()
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")

        self._client: httpx.AsyncClient | None = None
        self._rate_limit_state = HTTPRateLimitState()

    @property
    def rate_limit_state(self) -> HTTPRateLimitState:
        """Current rate limit tracking state."""
        return self._rate_limit_state

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"org-stats/{__version__}",
        }
        headers.update(self._auth.get_authorization_header())
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._get_headers(),
                follow_redirects=True,
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> GitHubResponse:
        """Make an HTTP request to GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: API path (e.g., "/orgs/acme/members").
            **kwargs: Additional arguments passed to httpx (params, json, etc.).

        Returns:
            GitHubResponse with parsed data and metadata. Non-2xx responses
            are returned as-is; use `raise_for_signal` to classify them.

        Raises:
            GitHubHTTPError: On transport failure.
        """
        client = await self._ensure_client()

        logger.debug("%s %s", method, path)

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubHTTPError(f"{method} {path}: {e}") from e

        rate_limit = RateLimitInfo.from_headers(response.headers)
        self._rate_limit_state.update(rate_limit)
        if rate_limit and rate_limit.remaining == 0:
            logger.warning(
                "Rate limit reached. Limit: %d, Reset: %s",
                rate_limit.limit,
                rate_limit.reset.isoformat(),
            )

        retry_after = None
        raw_retry_after = response.headers.get("retry-after")
        if raw_retry_after is not None:
            try:
                retry_after = int(raw_retry_after)
            except ValueError:
                logger.debug("Ignoring non-numeric retry-after: %s", raw_retry_after)

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError as e:
                logger.warning("Failed to parse JSON response: %s", e)
                data = response.text

        return GitHubResponse(
            status_code=response.status_code,
            data=data,
            headers=response.headers,
            rate_limit=rate_limit,
            url=str(response.url),
            retry_after=retry_after,
        )

    async def get(self, path: str, **kwargs: Any) -> GitHubResponse:
        """Make a GET request.

        Args:
            path: API path.
            **kwargs: Additional arguments (params, etc.).

        Returns:
            GitHubResponse with parsed data.
        """
        return await self.request("GET", path, **kwargs)

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
