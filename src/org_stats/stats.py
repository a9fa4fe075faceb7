"""In-memory aggregate of per-user contribution statistics."""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from org_stats.models import ContributorWeek


@dataclass
class UserRecord:
    """A user's additions, deletions, commits and reviews."""

    additions: int = 0
    deletions: int = 0
    commits: int = 0
    reviews: int = 0

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions

    @property
    def activity(self) -> int:
        """Line stats and commits combined; reviews are not counted."""
        return self.additions + self.deletions + self.commits


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class Stats:
    """Mapping from login to UserRecord, plus the optional since cutoff.

    Merges are additive. Logins are case-sensitive keys as GitHub returns them.
    """

    def __init__(self, since: datetime | None = None) -> None:
        """Initialize an empty aggregate.

        Args:
            since: Weeks starting strictly before this point are ignored.
                Naive datetimes are taken as UTC. None means no cutoff.
        """
        self._data: dict[str, UserRecord] = {}
        self.since = _as_utc(since) if since is not None else None

    def __len__(self) -> int:
        return len(self._data)

    def logins(self) -> list[str]:
        """Logins with a record, in no particular order."""
        return list(self._data)

    def for_user(self, login: str) -> UserRecord:
        """A copy of a user's record; all zeros if the user is unknown."""
        record = self._data.get(login)
        if record is None:
            return UserRecord()
        return replace(record)

    def add_contribution(self, login: str, weeks: Iterable[ContributorWeek]) -> None:
        """Fold one repository's weekly series into a user's record.

        Args:
            login: Contributor login.
            weeks: Weekly series for one repository.
        """
        additions = deletions = commits = 0
        for week in weeks:
            if self.since is not None and week.start < self.since:
                continue
            additions += week.a
            deletions += week.d
            commits += week.c

        record = self._data.setdefault(login, UserRecord())
        record.additions += additions
        record.deletions += deletions
        record.commits += commits

    def add_reviews(self, login: str, count: int) -> None:
        """Add a reviewed pull request count to a user's record."""
        record = self._data.setdefault(login, UserRecord())
        record.reviews += count

    def discard_inactive(self) -> list[str]:
        """Drop users with no activity at all when a since cutoff is set.

        Meant to run once, after every repository has been folded in, so a
        user's full history decides rather than a single repository. Without
        a cutoff zero-activity users are kept.

        Returns:
            The discarded logins.
        """
        if self.since is None:
            return []

        inactive = [login for login, record in self._data.items() if record.activity == 0]
        for login in inactive:
            del self._data[login]
        return inactive

