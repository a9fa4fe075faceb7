"""Aggregation run orchestration.

Resolves members and repositories, folds contributor statistics into a
fresh aggregate, then optionally counts reviews for every user that made it
in. Work is strictly sequential; a terminal error anywhere aborts the run
and no partial aggregate is returned.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from org_stats.collect.contributions import collect_contributions
from org_stats.collect.members import resolve_members
from org_stats.collect.repos import list_repositories
from org_stats.collect.reviews import collect_reviews
from org_stats.config import Config
from org_stats.github.auth import GitHubAuth
from org_stats.github.http import GitHubClient
from org_stats.github.rest import RestClient
from org_stats.github.retry import RetryingFetcher
from org_stats.policy import AccessPolicy
from org_stats.stats import Stats

logger = logging.getLogger(__name__)


async def gather_line_stats(
    client: RestClient,
    org: str,
    policy: AccessPolicy,
    exclude_forks: bool,
    stats: Stats,
    log: logging.Logger | None = None,
) -> None:
    """Populate `stats` with line and commit counts for the organization."""
    log = log or logger
    members = await resolve_members(client, org, log=log)
    repos = await list_repositories(client, org, log=log)

    summary = await collect_contributions(
        client,
        org,
        repos,
        policy,
        exclude_forks,
        members,
        stats,
        log=log,
    )
    log.debug(
        "scanned %d repos (%d forks, %d denied skipped), recorded %d contributions",
        summary.repos_scanned,
        summary.repos_skipped_fork,
        summary.repos_skipped_denied,
        summary.contributors_recorded,
    )
    log.debug(
        "skipped contributors: %d anonymous, %d non-members, %d denied",
        summary.contributors_anonymous,
        summary.contributors_not_member,
        summary.contributors_denied,
    )

    discarded = stats.discard_inactive()
    if discarded:
        log.debug("ignoring %d users with no activity since cutoff", len(discarded))


async def gather(
    client: RestClient,
    org: str,
    policy: AccessPolicy,
    since: datetime | None = None,
    include_reviews: bool = False,
    exclude_forks: bool = False,
    log: logging.Logger | None = None,
) -> Stats:
    """Gather an organization's contribution statistics.

    Args:
        client: REST client.
        org: Organization name.
        policy: Deny/allow lists.
        since: Ignore activity before this point. None means no cutoff.
        include_reviews: Also count reviewed pull requests per user.
        exclude_forks: Skip forked repositories.
        log: Diagnostic sink. Defaults to this module's logger.

    Returns:
        The populated aggregate.

    Raises:
        GitHubHTTPError: On any terminal upstream failure.
    """
    log = log or logger
    stats = Stats(since)

    await gather_line_stats(client, org, policy, exclude_forks, stats, log=log)
    log.info("total authors stats: %d", len(stats))

    if not include_reviews:
        return stats

    for login in stats.logins():
        log.info("gathering review stats for user: %s", login)
        await collect_reviews(client, org, login, stats.since, stats, log=log)

    return stats


async def collect_stats(
    config: Config,
    token: str | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    log: logging.Logger | None = None,
) -> Stats:
    """Build clients from configuration and run `gather`.

    Args:
        config: Application configuration.
        token: GitHub token; falls back to the configured environment variable.
        sleep: Coroutine used for retry waits.
        log: Diagnostic sink. Defaults to this module's logger.

    Returns:
        The populated aggregate.

    Raises:
        AuthenticationError: If no valid token is available.
        GitHubHTTPError: On any terminal upstream failure.
    """
    log = log or logger
    auth = GitHubAuth(token=token, token_env=config.auth.token_env)
    fetcher = RetryingFetcher(sleep=sleep, log=log)

    async with GitHubClient(
        auth=auth,
        timeout=config.http.timeout,
        base_url=config.http.base_url,
    ) as http_client:
        client = RestClient(http_client, fetcher)
        stats = await gather(
            client,
            config.org,
            config.policy,
            since=config.since,
            include_reviews=config.include_reviews,
            exclude_forks=config.exclude_forks,
            log=log,
        )

    state = http_client.rate_limit_state
    log.info(
        "finished after %d requests (%d retries)",
        state.requests_made,
        sum(fetcher.retry_counts.values()),
    )
    if state.last_rate_limit is not None:
        log.debug(
            "%d/%d %s requests left until %s",
            state.last_rate_limit.remaining,
            state.last_rate_limit.limit,
            state.last_rate_limit.resource,
            state.last_rate_limit.reset.isoformat(),
        )
    return stats
