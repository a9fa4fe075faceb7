"""Upstream data shapes used by the aggregation.

Only the fields the aggregation reads are declared; everything else GitHub
sends is ignored.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Repository(BaseModel):
    """An organization repository."""

    name: str
    fork: bool = False


class Author(BaseModel):
    """A contributor's account, as embedded in contributor statistics."""

    login: str = ""


class ContributorWeek(BaseModel):
    """One week of a contributor's activity on one repository.

    Field names follow the GitHub payload: week start as a unix timestamp,
    additions, deletions and commits.
    """

    w: int
    a: int = 0
    d: int = 0
    c: int = 0

    @property
    def start(self) -> datetime:
        """Week start in UTC."""
        return datetime.fromtimestamp(self.w, tz=UTC)


class ContributorStats(BaseModel):
    """A contributor's weekly series for one repository."""

    author: Author | None = None
    total: int = 0
    weeks: list[ContributorWeek] = Field(default_factory=list)

    @property
    def login(self) -> str:
        """Contributor login, or an empty string for anonymous or deleted accounts."""
        if self.author is None:
            return ""
        return self.author.login
