"""Page-cursor pagination over retried GitHub calls."""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import partial
from typing import Any
from urllib.parse import parse_qs, urlparse

from org_stats.github.retry import RetryingFetcher

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')


@dataclass
class Page:
    """One page of results and the cursor of the page after it (0 when last)."""

    items: list[Any] = field(default_factory=list)
    next_page: int = 0


def parse_link_header(link_header: str | None) -> dict[str, str]:
    """Parse a Link header into a mapping of rel type to URL.

    Args:
        link_header: Link header value from response.

    Returns:
        Dict mapping rel type to URL (e.g., {"next": "url", "last": "url"}).
    """
    if not link_header:
        return {}

    links = {}
    # Link header format: <url>; rel="next", <url>; rel="last"
    for part in link_header.split(","):
        match = LINK_PATTERN.match(part.strip())
        if match:
            url, rel = match.groups()
            links[rel] = url

    return links


def next_page_from_link(link_header: str | None) -> int:
    """Page number of the rel="next" link, or 0 if there is no next page."""
    next_url = parse_link_header(link_header).get("next")
    if not next_url:
        return 0

    pages = parse_qs(urlparse(next_url).query).get("page")
    if not pages:
        return 0
    try:
        return int(pages[0])
    except ValueError:
        return 0


async def paginate(
    fetcher: RetryingFetcher,
    fetch_page: Callable[[int], Awaitable[Page]],
    description: str,
) -> list[Any]:
    """Fetch every page and concatenate their items in page order.

    Each page goes through the fetcher, so a rate-limited page is retried
    in place and never fetched twice once it has succeeded.

    Args:
        fetcher: Retry policy for each page request.
        fetch_page: Fetches the page for a given 1-based cursor.
        description: Operation description used in logs and errors.

    Returns:
        All items from all pages.

    Raises:
        GitHubHTTPError: If any page fails terminally. No partial result is returned.
    """
    items: list[Any] = []
    page_num = 1

    while True:
        page = await fetcher.fetch(partial(fetch_page, page_num), description)
        items.extend(page.items)

        if not page.next_page:
            break

        page_num = page.next_page
        logger.debug("Following pagination to page %d: %s", page_num, description)

    return items
