"""Organization contribution statistics collectors."""

from org_stats.collect.contributions import CollectionSummary, collect_contributions
from org_stats.collect.members import resolve_members
from org_stats.collect.orchestrator import collect_stats, gather, gather_line_stats
from org_stats.collect.repos import list_repositories
from org_stats.collect.reviews import build_review_query, collect_reviews

__all__ = [
    "CollectionSummary",
    "build_review_query",
    "collect_contributions",
    "collect_reviews",
    "collect_stats",
    "gather",
    "gather_line_stats",
    "list_repositories",
    "resolve_members",
]
