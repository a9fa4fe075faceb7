"""Organization repository enumeration."""

import logging

from pydantic import ValidationError

from org_stats.github.http import GitHubHTTPError
from org_stats.github.rest import RestClient
from org_stats.models import Repository

logger = logging.getLogger(__name__)


async def list_repositories(
    client: RestClient,
    org: str,
    log: logging.Logger | None = None,
) -> list[Repository]:
    """List every repository of an organization, in upstream order.

    No filtering happens here; fork and deny-list rules are applied by the
    contribution collector.

    Args:
        client: REST client.
        org: Organization name.
        log: Diagnostic sink. Defaults to this module's logger.

    Returns:
        Repositories, forks included.

    Raises:
        GitHubHTTPError: If listing repositories fails terminally.
    """
    log = log or logger
    raw = await client.list_org_repos(org)
    try:
        repos = [Repository.model_validate(item) for item in raw]
    except ValidationError as e:
        msg = f"failed to list repositories: {org}: {e}"
        raise GitHubHTTPError(msg) from e
    log.info("got %d repositories", len(repos))
    return repos
