"""GitHub repository summarizer endpoints, gated by API key.

Request handling order for ``POST /summarize``:
1. Reject a missing API key and a missing or malformed URL (no store access).
2. Validate the key, consuming one unit of its quota.
3. Fetch the README and run the model.

Quota spent in step 2 is not refunded if step 3 fails.
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from app import errors
from app.dependencies import get_credential_store, get_github_client, get_summarizer
from app.models.summary import RepositoryInfo
from app.security import get_presented_api_key
from app.services import api_keys, summarize_service
from app.services.credential_store import CredentialStore
from app.services.github_client import GitHubClient
from app.services.llm_client import ReadmeSummarizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/summarize", tags=["summarize"])


class SummarizeRequest(BaseModel):
    """Request body for the summarizer."""

    github_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("githubUrl", "github_url", "url"),
        description="GitHub repository URL",
    )


class SummarizeResponse(BaseModel):
    success: bool = True
    repository: RepositoryInfo
    summary: str
    cool_facts: list[str]


class KeyStatusResponse(BaseModel):
    success: bool = True
    valid: bool = True
    message: str = "API key validated successfully"
    usage: int
    rate_limit: int = Field(serialization_alias="rateLimit")


@router.post("", response_model=SummarizeResponse)
def summarize(
    request: SummarizeRequest,
    raw_key: str | None = Depends(get_presented_api_key),
    store: CredentialStore = Depends(get_credential_store),
    github: GitHubClient = Depends(get_github_client),
    summarizer: ReadmeSummarizer = Depends(get_summarizer),
) -> SummarizeResponse:
    """Summarize a public GitHub repository from its README."""
    if not raw_key or not raw_key.strip():
        raise errors.MissingKeyError(
            "Please provide an API key in the x-api-key, authorization, "
            "or api-key header"
        )

    ref = summarize_service.resolve_repository(request.github_url)

    api_key = api_keys.validate_api_key(store, raw_key)
    logger.info(
        "Summarize request for %s admitted (%d/%d)",
        ref.full_name,
        api_key.usage,
        api_key.rate_limit,
    )

    result = summarize_service.summarize_repository(
        ref, request.github_url.strip(), github, summarizer
    )
    return SummarizeResponse(
        repository=result.repository,
        summary=result.summary,
        cool_facts=result.cool_facts,
    )


@router.get("", response_model=KeyStatusResponse, response_model_by_alias=True)
def check_api_key(
    raw_key: str | None = Depends(get_presented_api_key),
    store: CredentialStore = Depends(get_credential_store),
) -> KeyStatusResponse:
    """Validate an API key and report its usage; counts toward the quota."""
    api_key = api_keys.validate_api_key(store, raw_key)
    return KeyStatusResponse(usage=api_key.usage, rate_limit=api_key.rate_limit)
