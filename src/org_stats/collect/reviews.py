"""Pull request review counts per user."""

import logging
from datetime import datetime

from org_stats.github.http import GitHubHTTPError
from org_stats.github.rest import RestClient
from org_stats.stats import Stats

logger = logging.getLogger(__name__)


def build_review_query(org: str, login: str, since: datetime | None) -> str:
    """Search query for pull requests in `org` reviewed by `login`.

    Args:
        org: Organization name.
        login: Reviewer login.
        since: Only count pull requests created after this date. None counts all.

    Returns:
        GitHub issue search query.
    """
    query = f"user:{org} is:pr reviewed-by:{login}"
    if since is not None:
        query += f" created:>{since.strftime('%Y-%m-%d')}"
    return query


async def collect_reviews(
    client: RestClient,
    org: str,
    login: str,
    since: datetime | None,
    stats: Stats,
    log: logging.Logger | None = None,
) -> int:
    """Add the number of pull requests `login` reviewed to their record.

    Args:
        client: REST client.
        org: Organization name.
        login: Reviewer login, already present in `stats`.
        since: Creation cutoff for counted pull requests.
        stats: Aggregate to update.
        log: Diagnostic sink. Defaults to this module's logger.

    Returns:
        The review count added.

    Raises:
        GitHubHTTPError: If the search fails terminally.
    """
    log = log or logger
    query = build_review_query(org, login, since)
    try:
        reviewed = await client.search_issues_count(query)
    except GitHubHTTPError:
        log.error("failed to gather review stats for user: %s", login)
        raise

    stats.add_reviews(login, reviewed)
    log.debug("user %s reviewed %d pull requests", login, reviewed)
    return reviewed
