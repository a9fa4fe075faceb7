"""Tests for GitHub HTTP client module."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest
import respx

from conftest import NOW, TEST_TOKEN
from org_stats.github.auth import GitHubAuth
from org_stats.github.http import (
    GitHubClient,
    GitHubHTTPError,
    GitHubResponse,
    HTTPRateLimitState,
    RateLimitExceeded,
    RateLimitInfo,
    SecondaryRateLimitExceeded,
    StatsNotReady,
    TransientGitHubError,
    raise_for_signal,
)

RESET = datetime(2024, 6, 1, 12, 30, 0, tzinfo=UTC)


def make_response(
    status_code: int,
    data: object = None,
    remaining: int | None = None,
    retry_after: int | None = None,
) -> GitHubResponse:
    rate_limit = None
    if remaining is not None:
        rate_limit = RateLimitInfo(limit=5000, remaining=remaining, reset=RESET, used=5000 - remaining)
    return GitHubResponse(
        status_code=status_code,
        data=data,
        headers=httpx.Headers({}),
        rate_limit=rate_limit,
        url="https://api.github.com/orgs/acme/repos",
        retry_after=retry_after,
    )


class TestRateLimitInfo:
    """Tests for RateLimitInfo model."""

    def test_from_headers_valid(self) -> None:
        headers = httpx.Headers(
            {
                "x-ratelimit-limit": "5000",
                "x-ratelimit-remaining": "4999",
                "x-ratelimit-reset": "1234567890",
                "x-ratelimit-used": "1",
                "x-ratelimit-resource": "search",
            }
        )

        info = RateLimitInfo.from_headers(headers)

        assert info is not None
        assert info.limit == 5000
        assert info.remaining == 4999
        assert info.used == 1
        assert info.resource == "search"
        assert info.reset == datetime.fromtimestamp(1234567890, tz=UTC)

    def test_from_headers_missing_headers(self) -> None:
        assert RateLimitInfo.from_headers(httpx.Headers({})) is None

    def test_from_headers_defaults(self) -> None:
        """Missing optional fields fall back to zero / core."""
        info = RateLimitInfo.from_headers(httpx.Headers({"x-ratelimit-limit": "60"}))

        assert info is not None
        assert info.limit == 60
        assert info.remaining == 0
        assert info.used == 0
        assert info.resource == "core"


class TestGitHubResponse:
    """Tests for GitHubResponse dataclass."""

    def test_is_success(self) -> None:
        assert make_response(200).is_success is True
        assert make_response(202).is_success is True
        assert make_response(404).is_success is False
        assert make_response(500).is_success is False

    def test_message(self) -> None:
        assert make_response(404, {"message": "Not Found"}).message == "Not Found"
        assert make_response(500, "oops").message == "oops"
        assert make_response(500, None).message == ""


class TestHTTPRateLimitState:
    """Tests for HTTPRateLimitState tracking."""

    def test_update_counts_requests_and_keeps_latest(self) -> None:
        state = HTTPRateLimitState()
        state.update(None)
        state.update(RateLimitInfo(limit=5000, remaining=0, reset=RESET, used=5000))

        assert state.requests_made == 2
        assert state.last_rate_limit is not None
        assert state.last_rate_limit.remaining == 0


class TestRaiseForSignal:
    """Tests for classifying upstream responses."""

    def test_success_does_not_raise(self) -> None:
        raise_for_signal(make_response(200, []), now=NOW)
        raise_for_signal(make_response(204), now=NOW)

    def test_accepted_is_not_ready(self) -> None:
        with pytest.raises(StatsNotReady):
            raise_for_signal(make_response(202, {}), now=NOW)

    def test_primary_rate_limit_carries_reset(self) -> None:
        response = make_response(403, {"message": "API rate limit exceeded"}, remaining=0)

        with pytest.raises(RateLimitExceeded) as exc:
            raise_for_signal(response, now=NOW)

        assert exc.value.reset_at == RESET

    def test_secondary_rate_limit_by_message(self) -> None:
        """Without retry-after the retry point is now (the fetcher applies the floor)."""
        response = make_response(
            403,
            {
                "message": "You have exceeded a secondary rate limit. Please wait a few minutes.",
                "documentation_url": "https://docs.github.com/rest/overview/rate-limits-for-the-rest-api#about-secondary-rate-limits",
            },
            remaining=4000,
        )

        with pytest.raises(SecondaryRateLimitExceeded) as exc:
            raise_for_signal(response, now=NOW)

        assert exc.value.retry_after_at == NOW

    def test_secondary_rate_limit_with_retry_after(self) -> None:
        response = make_response(429, {"message": "slow down"}, retry_after=30)

        with pytest.raises(SecondaryRateLimitExceeded) as exc:
            raise_for_signal(response, now=NOW)

        assert exc.value.retry_after_at == NOW + timedelta(seconds=30)

    def test_permission_denied_is_terminal(self) -> None:
        """A plain 403 without rate limit markers is not retried."""
        response = make_response(403, {"message": "Resource not accessible by integration"}, remaining=4000)

        with pytest.raises(GitHubHTTPError) as exc:
            raise_for_signal(response, now=NOW)

        assert not isinstance(exc.value, TransientGitHubError)
        assert exc.value.status_code == 403

    @pytest.mark.parametrize("status", [401, 404, 422, 500, 502])
    def test_other_errors_are_terminal(self, status: int) -> None:
        response = make_response(status, {"message": "Nope"})

        with pytest.raises(GitHubHTTPError, match=f"{status} Nope") as exc:
            raise_for_signal(response, now=NOW)

        assert not isinstance(exc.value, TransientGitHubError)
        assert exc.value.status_code == status


class TestGitHubClient:
    """Tests for GitHubClient requests."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_parses_json_and_rate_limit(self) -> None:
        route = respx.get(host="api.github.com", path="/orgs/acme/members").mock(
            return_value=httpx.Response(
                200,
                json=[{"login": "alice"}],
                headers={
                    "x-ratelimit-limit": "5000",
                    "x-ratelimit-remaining": "4999",
                    "x-ratelimit-reset": "1234567890",
                },
            )
        )

        async with GitHubClient(auth=GitHubAuth(token=TEST_TOKEN)) as client:
            response = await client.get("/orgs/acme/members", params={"per_page": 100})

            assert response.status_code == 200
            assert response.data == [{"login": "alice"}]
            assert response.rate_limit is not None
            assert response.rate_limit.remaining == 4999
            assert client.rate_limit_state.requests_made == 1

        request = route.calls.last.request
        assert request.headers["Authorization"] == f"token {TEST_TOKEN}"
        assert request.headers["User-Agent"].startswith("org-stats/")

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_is_returned_not_raised(self) -> None:
        respx.get(host="api.github.com", path="/orgs/missing/repos").mock(
            return_value=httpx.Response(404, json={"message": "Not Found"})
        )

        async with GitHubClient(auth=GitHubAuth(token=TEST_TOKEN)) as client:
            response = await client.get("/orgs/missing/repos")

        assert response.status_code == 404
        assert response.message == "Not Found"

    @pytest.mark.asyncio
    @respx.mock
    async def test_retry_after_header_is_parsed(self) -> None:
        respx.get(host="api.github.com", path="/search/issues").mock(
            return_value=httpx.Response(403, json={"message": "abuse"}, headers={"retry-after": "60"})
        )

        async with GitHubClient(auth=GitHubAuth(token=TEST_TOKEN)) as client:
            response = await client.get("/search/issues")

        assert response.retry_after == 60

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_is_terminal(self) -> None:
        respx.get(host="api.github.com", path="/orgs/acme/members").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        async with GitHubClient(auth=GitHubAuth(token=TEST_TOKEN)) as client:
            with pytest.raises(GitHubHTTPError, match="connection refused"):
                await client.get("/orgs/acme/members")
