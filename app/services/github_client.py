"""GitHub client for resolving repository URLs and fetching README content.

README retrieval tries the REST contents API first and then falls back to a
fixed list of raw-content URLs on the requested branch.
"""

import base64
import logging
import re
from functools import partial

import requests

from app import errors
from app.config import GitHubConfig
from app.models.summary import RepositoryRef

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"

# Tried in order against raw.githubusercontent.com; first hit wins.
README_VARIANTS = ("README.md", "readme.md", "Readme.md")

# Matches https://github.com/owner/repo, .../tree/branch and git@github.com:owner/repo
GITHUB_URL_RE = re.compile(
    r"^(?:https?://)?(?:git@|www\.)?github\.com[/:]"
    r"(?P<owner>[^/?#\s]+)/(?P<repo>[^/?#\s]+)"
    r"(?:/tree/(?P<branch>[^/?#\s]+))?"
)


def parse_github_url(url: str | None) -> RepositoryRef | None:
    """Extract owner, repository and branch from a GitHub URL.

    Args:
        url: Repository URL in HTTPS, ``/tree/<branch>`` or SSH form.

    Returns:
        RepositoryRef, or None if the URL is not a GitHub repository URL.
    """
    if not url:
        return None

    url = url.strip()
    if url.endswith("/"):
        url = url[:-1]
    if url.endswith(".git"):
        url = url[: -len(".git")]

    match = GITHUB_URL_RE.match(url)
    if not match:
        return None

    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        return None

    return RepositoryRef(
        owner=match.group("owner"),
        repo=repo,
        branch=match.group("branch") or DEFAULT_BRANCH,
    )


class GitHubClient:
    """Thin wrapper around a ``requests`` session for GitHub content."""

    def __init__(
        self, config: GitHubConfig, session: requests.Session | None = None
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._api_headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "repo-summarizer",
        }
        if config.token:
            self._api_headers["Authorization"] = f"Bearer {config.token}"

    def close(self) -> None:
        self._session.close()

    def fetch_readme(self, ref: RepositoryRef) -> str:
        """Retrieve the README text of a repository.

        Args:
            ref: Repository and branch to read from.

        Returns:
            README content decoded as UTF-8.

        Raises:
            ReadmeNotFoundError: If GitHub answered every attempt with an error.
            GitHubUnavailableError: If nothing succeeded and at least one
                attempt timed out or could not connect.
        """
        attempts = [partial(self._fetch_readme_from_api, ref)]
        attempts += [partial(self._fetch_raw_file, ref, v) for v in README_VARIANTS]

        transport_error: requests.RequestException | None = None
        for attempt in attempts:
            try:
                content = attempt()
            except requests.RequestException as e:
                logger.warning("GitHub request failed for %s: %s", ref.full_name, e)
                transport_error = e
                continue
            if content is not None:
                return content

        if transport_error is not None:
            raise errors.GitHubUnavailableError(
                "GitHub could not be reached while fetching the README",
                details=str(transport_error),
            ) from transport_error

        logger.info("No README found for %s@%s", ref.full_name, ref.branch)
        raise errors.ReadmeNotFoundError(
            "Could not retrieve README.md from the repository"
        )

    def _fetch_readme_from_api(self, ref: RepositoryRef) -> str | None:
        url = f"{self._config.api_base}/repos/{ref.owner}/{ref.repo}/readme"

        logger.debug("Fetching README for %s via contents API", ref.full_name)

        response = self._session.get(
            url, headers=self._api_headers, timeout=self._config.timeout_seconds
        )
        try:
            response.raise_for_status()
            data = response.json()
            return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
        except (requests.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.info("Contents API README fetch failed for %s: %s", ref.full_name, e)
            return None

    def _fetch_raw_file(self, ref: RepositoryRef, path: str) -> str | None:
        url = f"{self._config.raw_base}/{ref.owner}/{ref.repo}/{ref.branch}/{path}"

        response = self._session.get(url, timeout=self._config.timeout_seconds)
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.debug("Raw fetch failed for %s: %s", url, e)
            return None

        logger.debug("Fetched %s from %s", path, ref.full_name)
        return response.text
