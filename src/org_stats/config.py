"""Configuration loading and validation."""

from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from org_stats.policy import AccessPolicy


class AuthConfig(BaseModel):
    """GitHub authentication configuration."""

    token_env: str = "GITHUB_TOKEN"


class HTTPConfig(BaseModel):
    """GitHub API connection settings."""

    base_url: str = "https://api.github.com"
    timeout: float = Field(default=30.0, gt=0)


class Config(BaseModel):
    """Root configuration model.

    `blacklist` and `whitelist` hold raw entries: `user:<login>`,
    `repo:<name>`, or a bare value applying to both.
    """

    org: str
    blacklist: list[str] = Field(default_factory=list)
    whitelist: list[str] = Field(default_factory=list)
    since: datetime | None = None
    include_reviews: bool = False
    exclude_forks: bool = False
    verbose: bool = False
    auth: AuthConfig = Field(default_factory=AuthConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)

    @field_validator("org")
    @classmethod
    def validate_org(cls, v: str) -> str:
        """Reject blank organization names."""
        v = v.strip()
        if not v:
            msg = "org must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("blacklist", "whitelist")
    @classmethod
    def clean_entries(cls, v: list[str]) -> list[str]:
        """Strip whitespace and drop blank entries."""
        return [entry.strip() for entry in v if entry.strip()]

    @field_validator("since", mode="before")
    @classmethod
    def since_from_date(cls, v: Any) -> Any:
        """Accept plain dates (YAML parses `2024-01-01` as one) as midnight UTC."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime(v.year, v.month, v.day, tzinfo=UTC)
        return v

    @field_validator("since")
    @classmethod
    def since_in_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC."""
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @property
    def policy(self) -> AccessPolicy:
        """Deny/allow lists split by scope."""
        return AccessPolicy.from_lists(self.blacklist, self.whitelist)


def load_config(path: Path) -> Config:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValidationError: If the config is invalid.
    """
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        raw_config: dict[str, Any] = yaml.safe_load(f) or {}

    return Config.model_validate(raw_config)
