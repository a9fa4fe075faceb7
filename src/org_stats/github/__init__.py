"""GitHub API clients and utilities."""

from org_stats.github.auth import AuthenticationError, GitHubAuth
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
from org_stats.github.pagination import Page, paginate
from org_stats.github.rest import RestClient
from org_stats.github.retry import RetryingFetcher

__all__ = [
    # Auth
    "AuthenticationError",
    "GitHubAuth",
    # HTTP Client
    "GitHubClient",
    "GitHubHTTPError",
    "GitHubResponse",
    "HTTPRateLimitState",
    "RateLimitExceeded",
    "RateLimitInfo",
    "SecondaryRateLimitExceeded",
    "StatsNotReady",
    "TransientGitHubError",
    "raise_for_signal",
    # Pagination and retries
    "Page",
    "RetryingFetcher",
    "paginate",
    # REST API Client
    "RestClient",
]
