"""Pydantic models for the repository summarization pipeline."""

from pydantic import BaseModel, Field


class RepositoryRef(BaseModel):
    """A GitHub repository and branch parsed from a URL."""

    owner: str
    repo: str
    branch: str = "main"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class RepositoryDigest(BaseModel):
    """Structured model output for a README."""

    summary: str = Field(
        ...,
        description=(
            "A comprehensive summary of the GitHub repository based on the "
            "README content"
        ),
    )
    cool_facts: list[str] = Field(
        default_factory=list,
        description="A list of interesting or notable facts about the repository",
    )


class RepositoryInfo(RepositoryRef):
    """Repository details echoed back to the caller."""

    url: str


class RepositorySummary(BaseModel):
    """Final pipeline result."""

    repository: RepositoryInfo
    summary: str
    cool_facts: list[str]
