import re
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from repo_analyzer_mcp.config import DEFAULT_BRANCH, DEFAULT_GITHUB_HOST
from repo_analyzer_mcp.errors import InvalidReferenceError

SHORTHAND_PATTERN = re.compile(r"^([\w.-]+)/([\w.-]+)$")
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def hosted_url_pattern(host: str) -> re.Pattern[str]:
    """Matches `[scheme://][user@][www.]host/owner/repo[/tree/branch]` from the start of the identifier.

    `:` or `/` may follow the host (ssh and https remotes)."""

    return re.compile(
        r"^(?:(?:https?|ssh|git)://)?(?:[^@/:]+@)?(?:www\.)?"
        + re.escape(host)
        + r"[/:]([^/?#]+)/([^/?#]+)(?:/tree/([^/?#]+))?(?:[/?#]|$)",
        re.IGNORECASE,
    )


class RepoRef(BaseModel):
    """The owner, repository and branch that repository-relative paths are resolved against."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1, description="The owner of the repository.")
    repo: str = Field(min_length=1, description="The name of the repository.")
    branch: str = Field(min_length=1, description="The branch of the repository.")
    explicit_branch: bool = Field(default=False, description="Whether the branch was given in the identifier.")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def with_branch(self, branch: str) -> Self:
        return self.model_copy(update={"branch": branch})


def check_reference_allowed(identifier: str, host: str = DEFAULT_GITHUB_HOST) -> None:
    """Reject identifiers that point at a site other than the hosting site.

    Shorthand (`owner/repo`) is always allowed. URLs, with or without a scheme, must start at `host`."""

    identifier = identifier.strip()

    if SHORTHAND_PATTERN.match(identifier):
        return

    is_url: bool = SCHEME_PATTERN.match(identifier) is not None
    on_host: bool = re.match(rf"^https?://(www\.)?{re.escape(host)}/", identifier, re.IGNORECASE) is not None

    if (is_url and not on_host) or ("/" in identifier and not hosted_url_pattern(host).match(identifier)):
        raise InvalidReferenceError(identifier=identifier, reason=f"Only {host} repository URLs are supported.")


def parse_repository_reference(identifier: str, default_branch: str = DEFAULT_BRANCH, host: str = DEFAULT_GITHUB_HOST) -> RepoRef:
    """Parse a repository URL or `owner/repo` shorthand into a RepoRef.

    Args:
        identifier: A URL like `https://github.com/owner/repo/tree/branch`, a remote like `git@github.com:owner/repo.git`,
                    or `owner/repo`.
        default_branch: The branch to use when the identifier does not name one.
        host: The hosting site the URL forms are matched against.

    Raises:
        InvalidReferenceError: If the identifier matches none of the accepted forms.
    """

    identifier = identifier.strip()

    if match := hosted_url_pattern(host).match(identifier):
        owner, repo, branch = match.group(1), match.group(2), match.group(3)
        repo = repo.removesuffix(".git")

        if not repo:
            raise InvalidReferenceError(identifier=identifier, reason="The repository name is empty.")

        if branch:
            return RepoRef(owner=owner, repo=repo, branch=branch, explicit_branch=True)

        return RepoRef(owner=owner, repo=repo, branch=default_branch)

    if match := SHORTHAND_PATTERN.match(identifier):
        return RepoRef(owner=match.group(1), repo=match.group(2), branch=default_branch)

    raise InvalidReferenceError(identifier=identifier)
