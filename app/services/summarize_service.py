"""Repository summarization pipeline.

Resolves a GitHub URL, fetches the README and asks the model for a structured
summary. Callers must have validated the API key before invoking
``summarize_repository``; URL resolution is pure and may run earlier.
"""

import logging

from app import errors
from app.models.summary import RepositoryInfo, RepositoryRef, RepositorySummary
from app.services.github_client import GitHubClient, parse_github_url
from app.services.llm_client import ReadmeSummarizer

logger = logging.getLogger(__name__)


def resolve_repository(github_url: str | None) -> RepositoryRef:
    """Parse a request's GitHub URL.

    Raises:
        ValidationError: No URL supplied.
        InvalidUrlError: The URL is not a GitHub repository URL.
    """
    if not github_url or not github_url.strip():
        raise errors.ValidationError(
            "Please provide githubUrl in the request body",
            error="GitHub URL is required",
        )

    ref = parse_github_url(github_url)
    if ref is None:
        raise errors.InvalidUrlError("Please provide a valid GitHub repository URL")
    return ref


def summarize_repository(
    ref: RepositoryRef,
    github_url: str,
    github: GitHubClient,
    summarizer: ReadmeSummarizer,
) -> RepositorySummary:
    """Fetch a repository's README and summarize it.

    Args:
        ref: Parsed repository reference.
        github_url: URL as supplied by the caller, echoed in the result.
        github: Client used to fetch the README.
        summarizer: Model wrapper producing the digest.

    Returns:
        Repository details with the summary and notable facts.

    Raises:
        ReadmeNotFoundError: No README could be fetched.
        GitHubUnavailableError: GitHub timed out or refused connections.
        CredentialsMissingError, InsufficientCreditError,
        SummarizationFailedError: The model call failed.
    """
    logger.info("Summarizing %s@%s", ref.full_name, ref.branch)

    readme = github.fetch_readme(ref)
    if not readme.strip():
        raise errors.ReadmeNotFoundError(
            "Could not retrieve README.md from the repository"
        )

    digest = summarizer.summarize(readme)

    logger.info(
        "Summarized %s with %d facts", ref.full_name, len(digest.cool_facts)
    )
    return RepositorySummary(
        repository=RepositoryInfo(
            owner=ref.owner, repo=ref.repo, branch=ref.branch, url=github_url
        ),
        summary=digest.summary,
        cool_facts=digest.cool_facts,
    )
