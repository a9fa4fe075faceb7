"""Per-repository contributor statistics collection.

Walks repositories one at a time, fetches their weekly contributor
statistics, and folds every qualifying contributor into the aggregate.
"""

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from org_stats.github.http import GitHubHTTPError
from org_stats.github.rest import RestClient
from org_stats.models import ContributorStats, Repository
from org_stats.policy import AccessPolicy
from org_stats.stats import Stats

logger = logging.getLogger(__name__)


@dataclass
class CollectionSummary:
    """Counters describing one contribution collection pass."""

    repos_scanned: int = 0
    repos_skipped_fork: int = 0
    repos_skipped_denied: int = 0
    contributors_recorded: int = 0
    contributors_anonymous: int = 0
    contributors_not_member: int = 0
    contributors_denied: int = 0


def _record_contributors(
    repo: Repository,
    contributors: Iterable[ContributorStats],
    policy: AccessPolicy,
    members: Collection[str],
    stats: Stats,
    summary: CollectionSummary,
    log: logging.Logger,
) -> None:
    for contributor in contributors:
        login = contributor.login
        if not login:
            summary.contributors_anonymous += 1
            continue

        if not policy.admits_user(login, members):
            log.debug("ignoring non-organization member: %s", login)
            summary.contributors_not_member += 1
            continue

        if policy.denies_user(login):
            log.debug("ignoring denied author: %s", login)
            summary.contributors_denied += 1
            continue

        log.debug("recording stats for %s on repo %s", login, repo.name)
        stats.add_contribution(login, contributor.weeks)
        summary.contributors_recorded += 1


async def collect_contributions(
    client: RestClient,
    org: str,
    repos: Iterable[Repository],
    policy: AccessPolicy,
    exclude_forks: bool,
    members: Collection[str],
    stats: Stats,
    log: logging.Logger | None = None,
) -> CollectionSummary:
    """Fold contributor statistics of every eligible repository into `stats`.

    Repositories are skipped when they are forks (with `exclude_forks`) or
    deny-listed. Contributors count when they are members or allow-listed,
    unless deny-listed.

    Args:
        client: REST client.
        org: Organization owning the repositories.
        repos: Repositories in enumeration order.
        policy: Deny/allow lists.
        exclude_forks: Skip forked repositories.
        members: Organization member logins.
        stats: Aggregate to update.
        log: Diagnostic sink. Defaults to this module's logger.

    Returns:
        Counters for diagnostics.

    Raises:
        GitHubHTTPError: If fetching statistics fails terminally.
    """
    log = log or logger
    summary = CollectionSummary()

    for repo in repos:
        if exclude_forks and repo.fork:
            log.info("ignoring forked repo: %s", repo.name)
            summary.repos_skipped_fork += 1
            continue
        if policy.excludes_repo(repo.name):
            log.info("ignoring denied repo: %s", repo.name)
            summary.repos_skipped_denied += 1
            continue

        raw = await client.get_contributor_stats(org, repo.name)
        try:
            contributors = [ContributorStats.model_validate(item) for item in raw]
        except ValidationError as e:
            msg = f"failed to get contributor stats: {org}/{repo.name}: {e}"
            raise GitHubHTTPError(msg) from e
        summary.repos_scanned += 1
        _record_contributors(repo, contributors, policy, members, stats, summary, log)

    return summary
