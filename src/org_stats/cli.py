"""CLI entry point for org-stats.

Thin wrapper around the aggregation: merges flags into the configuration,
runs one collection and prints a leaderboard table.
"""

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from org_stats import __version__
from org_stats.config import Config, load_config
from org_stats.logging import setup_logging
from org_stats.stats import Stats

console = Console()


def render_table(stats: Stats, top: int, include_reviews: bool) -> Table:
    """Leaderboard of the `top` users by commits, then lines changed."""
    table = Table(title="Organization stats")
    table.add_column("#", justify="right")
    table.add_column("User")
    table.add_column("Commits", justify="right")
    table.add_column("Additions", justify="right", style="green")
    table.add_column("Deletions", justify="right", style="red")
    if include_reviews:
        table.add_column("Reviews", justify="right")

    ranked = sorted(
        stats.logins(),
        key=lambda login: (
            -stats.for_user(login).commits,
            -stats.for_user(login).lines_changed,
            login.lower(),
        ),
    )
    for position, login in enumerate(ranked[:top], start=1):
        record = stats.for_user(login)
        row = [
            str(position),
            login,
            str(record.commits),
            str(record.additions),
            str(record.deletions),
        ]
        if include_reviews:
            row.append(str(record.reviews))
        table.add_row(*row)

    return table


def _parse_since(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise click.BadParameter(f"expected an ISO date such as 2024-01-01: {value}") from e
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


@click.command()
@click.version_option(version=__version__, prog_name="org-stats")
@click.option("--org", "-o", default=None, help="GitHub organization to scan")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to a YAML config file",
)
@click.option(
    "--blacklist",
    "-b",
    multiple=True,
    help="Exclude a user or repo (user:<login>, repo:<name>, or both when unprefixed)",
)
@click.option(
    "--whitelist",
    "-w",
    multiple=True,
    help="Include a non-member user (user:<login>, or unprefixed)",
)
@click.option("--since", "-s", default=None, help="Only count activity since this ISO date")
@click.option("--include-reviews", is_flag=True, default=False, help="Count reviewed pull requests")
@click.option("--exclude-forks", is_flag=True, default=False, help="Skip forked repositories")
@click.option("--top", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--token", envvar="GITHUB_TOKEN", default=None, help="GitHub token")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
def main(
    org: str | None,
    config: Path | None,
    blacklist: tuple[str, ...],
    whitelist: tuple[str, ...],
    since: str | None,
    include_reviews: bool,
    exclude_forks: bool,
    top: int,
    token: str | None,
    verbose: bool,
) -> None:
    """Contribution leaderboard for the members of a GitHub organization."""
    raw: dict = load_config(config).model_dump() if config else {}

    overrides = {
        "org": org,
        "since": _parse_since(since),
        "include_reviews": include_reviews or None,
        "exclude_forks": exclude_forks or None,
        "verbose": verbose or None,
    }
    raw.update({key: value for key, value in overrides.items() if value is not None})
    raw["blacklist"] = [*raw.get("blacklist", []), *blacklist]
    raw["whitelist"] = [*raw.get("whitelist", []), *whitelist]

    if not raw.get("org"):
        raise click.UsageError("an organization is required (--org or config file)")

    cfg = Config.model_validate(raw)
    setup_logging(verbose=cfg.verbose)

    console.print(f"[bold]Gathering stats for {cfg.org}[/bold]")

    from org_stats.collect.orchestrator import collect_stats

    try:
        stats = asyncio.run(collect_stats(cfg, token=token))
    except KeyboardInterrupt:
        console.print("\n[yellow]Collection interrupted by user[/yellow]")
        raise click.Abort() from None
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        raise click.Abort() from e

    console.print(render_table(stats, top, cfg.include_reviews))


if __name__ == "__main__":
    main()
