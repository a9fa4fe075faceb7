"""GitHub authentication module.

Loads and validates GitHub API tokens from an explicit value, an environment
variable, or the GitHub CLI.
"""

import logging
import os
import re
import subprocess

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"


class AuthenticationError(Exception):
    """Raised when authentication fails or token is invalid."""


def _get_gh_cli_token() -> str | None:
    """Try to get token from GitHub CLI.

    Returns:
        Token from `gh auth token` or None if not available.
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
        )
    except FileNotFoundError:
        logger.debug("gh CLI not found")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("gh CLI command timed out after 5 seconds")
        return None

    if result.returncode != 0:
        logger.debug("gh CLI returned non-zero exit code (%d)", result.returncode)
        return None

    token = result.stdout.strip()
    if token:
        logger.info("Using GitHub token from gh CLI")
        return token
    return None


class GitHubAuth:
    """GitHub authentication manager.

    Token sources, in order:
    1. Explicit token parameter
    2. The configured environment variable (GITHUB_TOKEN by default)
    3. GitHub CLI (`gh auth token`)
    """

    VALID_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "github_pat_")

    CLASSIC_TOKEN_PATTERN = re.compile(r"^[a-f0-9]{40}$")

    def __init__(self, token: str | None = None, token_env: str = DEFAULT_TOKEN_ENV) -> None:
        """Initialize GitHub authentication.

        Args:
            token: GitHub token. If None, loads from `token_env` or the GitHub CLI.
            token_env: Environment variable holding the token.

        Raises:
            AuthenticationError: If token is missing or invalid.
        """
        loaded_token = None
        token_source = None

        if token:
            loaded_token = token
            token_source = "explicit parameter"
        elif os.environ.get(token_env):
            loaded_token = os.environ[token_env]
            token_source = f"{token_env} environment variable"
        else:
            loaded_token = _get_gh_cli_token()

        if not loaded_token:
            raise AuthenticationError(
                f"GitHub token not found. Set {token_env}, pass a token explicitly, "
                "or authenticate with `gh auth login`."
            )

        if token_source:
            logger.info("Using GitHub token from %s", token_source)

        self._token: str = loaded_token
        self._validate_token()

    def _validate_token(self) -> None:
        token = self._token
        has_valid_prefix = any(token.startswith(prefix) for prefix in self.VALID_PREFIXES)
        is_classic = bool(self.CLASSIC_TOKEN_PATTERN.match(token))

        if not has_valid_prefix and not is_classic:
            raise AuthenticationError(
                f"Invalid token format. Expected prefix {self.VALID_PREFIXES} "
                "or 40-character hex string (classic token)"
            )

        if has_valid_prefix and len(token) < 20:
            raise AuthenticationError("Token appears too short to be valid")

    @property
    def token(self) -> str:
        """The validated GitHub token."""
        return self._token

    def get_authorization_header(self) -> dict[str, str]:
        """Get the Authorization header for API requests."""
        return {"Authorization": f"token {self._token}"}
