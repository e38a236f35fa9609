from typing import Self

from githubkit.versions.v2022_11_28.models import (
    FullRepository as GitHubKitFullRepository,
)
from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """The repository metadata needed to browse a repository."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="The name of the repository.")
    full_name: str = Field(description="The owner and name of the repository.")
    description: str | None = Field(description="The description of the repository.")
    url: str = Field(description="The URL of the repository.")
    default_branch: str = Field(description="The default branch of the repository.")
    archived: bool = Field(default=False, description="Whether the repository is archived.")

    @classmethod
    def from_full_repository(cls, full_repository: GitHubKitFullRepository) -> Self:
        return cls(
            name=full_repository.name,
            full_name=full_repository.full_name,
            description=full_repository.description,
            url=full_repository.html_url,
            default_branch=full_repository.default_branch,
            archived=full_repository.archived,
        )
