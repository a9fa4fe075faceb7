"""Inclusion rules for users and repositories.

Deny and allow lists are configured as plain strings, optionally tagged
with a `user:` or `repo:` prefix. Untagged entries apply to both users and
repositories. Entries are parsed once into `ListEntry` values; comparisons
against candidates are case-insensitive.
"""

from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from enum import Enum

USER_PREFIX = "user:"
REPO_PREFIX = "repo:"


class Scope(str, Enum):
    """What a list entry applies to."""

    USER = "user"
    REPO = "repo"
    BOTH = "both"


@dataclass(frozen=True)
class ListEntry:
    """A parsed deny/allow list entry."""

    scope: Scope
    value: str

    @classmethod
    def parse(cls, raw: str) -> "ListEntry":
        """Parse `user:name`, `repo:name` or a bare name."""
        if raw.startswith(USER_PREFIX):
            return cls(Scope.USER, raw.removeprefix(USER_PREFIX))
        if raw.startswith(REPO_PREFIX):
            return cls(Scope.REPO, raw.removeprefix(REPO_PREFIX))
        return cls(Scope.BOTH, raw)

    def applies_to_users(self) -> bool:
        return self.scope in (Scope.USER, Scope.BOTH)

    def applies_to_repos(self) -> bool:
        return self.scope in (Scope.REPO, Scope.BOTH)


def parse_entries(raw_entries: Iterable[str]) -> list[ListEntry]:
    """Parse raw configured strings into list entries, keeping their order."""
    return [ListEntry.parse(raw) for raw in raw_entries]


def split_entries(raw_entries: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split one configured list into its user-scoped and repo-scoped parts.

    Prefixes are stripped; untagged entries are copied into both lists.

    Returns:
        Tuple of (user list, repo list).
    """
    entries = parse_entries(raw_entries)
    users = [entry.value for entry in entries if entry.applies_to_users()]
    repos = [entry.value for entry in entries if entry.applies_to_repos()]
    return users, repos


def _matches(entries: Iterable[str], candidate: str) -> bool:
    folded = candidate.casefold()
    return any(entry.casefold() == folded for entry in entries)


def is_denied(denylist: Iterable[str], candidate: str) -> bool:
    """Whether `candidate` equals any deny entry, ignoring case."""
    return _matches(denylist, candidate)


def is_allowed(allowlist: Iterable[str], candidate: str) -> bool:
    """Whether `candidate` equals any allow entry, ignoring case.

    An empty allow list allows nobody.
    """
    return _matches(allowlist, candidate)


@dataclass(frozen=True)
class AccessPolicy:
    """Deny and allow lists split by scope, ready for evaluation.

    The repo allow list is carried for completeness but does not gate
    anything: allow-listing only ever pulls users in.
    """

    user_denylist: tuple[str, ...] = field(default_factory=tuple)
    repo_denylist: tuple[str, ...] = field(default_factory=tuple)
    user_allowlist: tuple[str, ...] = field(default_factory=tuple)
    repo_allowlist: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_lists(
        cls,
        denylist: Iterable[str] = (),
        allowlist: Iterable[str] = (),
    ) -> "AccessPolicy":
        """Build a policy from raw configured deny and allow lists."""
        user_deny, repo_deny = split_entries(denylist)
        user_allow, repo_allow = split_entries(allowlist)
        return cls(
            user_denylist=tuple(user_deny),
            repo_denylist=tuple(repo_deny),
            user_allowlist=tuple(user_allow),
            repo_allowlist=tuple(repo_allow),
        )

    def excludes_repo(self, name: str) -> bool:
        """Whether a repository is deny-listed."""
        return is_denied(self.repo_denylist, name)

    def admits_user(self, login: str, members: Collection[str]) -> bool:
        """Whether a user is a member (exact match) or allow-listed."""
        return login in members or is_allowed(self.user_allowlist, login)

    def denies_user(self, login: str) -> bool:
        """Whether a user is deny-listed."""
        return is_denied(self.user_denylist, login)

