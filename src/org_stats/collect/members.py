"""Organization membership resolution."""

import logging

from org_stats.github.rest import RestClient

logger = logging.getLogger(__name__)


async def resolve_members(
    client: RestClient,
    org: str,
    log: logging.Logger | None = None,
) -> set[str]:
    """Fetch every member login of an organization.

    Logins are kept exactly as GitHub returns them; membership tests against
    this set are case-sensitive.

    Args:
        client: REST client.
        org: Organization name.
        log: Diagnostic sink. Defaults to this module's logger.

    Returns:
        Set of member logins.

    Raises:
        GitHubHTTPError: If listing members fails terminally.
    """
    log = log or logger
    users = await client.list_org_members(org)
    members = {user["login"] for user in users if user.get("login")}
    log.info("found %d organization members", len(members))
    return members
