"""Retry policy for transient GitHub API signals.

Wraps a single upstream call and retries it while GitHub reports a primary
rate limit, a secondary rate limit, or statistics that are still being
computed. Retries are unbounded: the tool is a one-shot batch job and the
operator interrupts it externally. Anything else is terminal and is
re-raised with the operation description attached.
"""

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import TypeVar

from org_stats.github.http import (
    GitHubHTTPError,
    RateLimitExceeded,
    SecondaryRateLimitExceeded,
    StatsNotReady,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_RATE_LIMIT_WAIT = timedelta(seconds=5)
MIN_SECONDARY_RATE_LIMIT_WAIT = timedelta(seconds=10)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def rate_limit_wait(reset_at: datetime, now: datetime) -> timedelta:
    """Time to wait for a primary rate limit reset, never less than 5 seconds."""
    return max(reset_at - now, MIN_RATE_LIMIT_WAIT)


def secondary_wait(retry_after_at: datetime, now: datetime) -> timedelta:
    """Time to wait for a secondary rate limit, never less than 10 seconds."""
    return max(retry_after_at - now, MIN_SECONDARY_RATE_LIMIT_WAIT)


class RetryingFetcher:
    """Runs upstream operations until they succeed or fail terminally.

    The fetcher is not concurrent: callers await one operation at a time,
    so an operation is never being retried twice at once.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            sleep: Coroutine used to wait between attempts.
            clock: Returns the current UTC time.
            log: Diagnostic sink. Defaults to this module's logger.
        """
        self._sleep = sleep
        self._clock = clock
        self._log = log or logger
        self.retry_counts: Counter[str] = Counter()

    def now(self) -> datetime:
        """Current time according to the fetcher's clock."""
        return self._clock()

    async def fetch(self, operation: Callable[[], Awaitable[T]], description: str) -> T:
        """Run `operation`, retrying transient failures.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt.
            description: What the operation does, e.g. "search: <query>".

        Returns:
            The operation's result.

        Raises:
            GitHubHTTPError: On any non-transient failure, with `description`
                in the message and the original error chained.
        """
        while True:
            try:
                return await operation()
            except RateLimitExceeded as e:
                wait = rate_limit_wait(e.reset_at, self._clock())
                self.retry_counts["rate_limit"] += 1
                self._log.warning("hit rate limit, waiting %s (%s)", wait, description)
                await self._sleep(wait.total_seconds())
            except SecondaryRateLimitExceeded as e:
                wait = secondary_wait(e.retry_after_at, self._clock())
                self.retry_counts["secondary_rate_limit"] += 1
                self._log.warning("hit secondary rate limit, waiting %s (%s)", wait, description)
                await self._sleep(wait.total_seconds())
            except StatsNotReady:
                self.retry_counts["not_ready"] += 1
                self._log.debug("not ready yet, retrying: %s", description)
            except GitHubHTTPError as e:
                raise GitHubHTTPError(f"failed to {description}: {e}", e.status_code) from e
