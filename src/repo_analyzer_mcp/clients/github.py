from collections.abc import Awaitable, Callable, Sequence
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any

from githubkit import GitHub as GitHubKit
from githubkit.auth.token import TokenAuthStrategy
from githubkit.exception import GitHubException as GitHubKitGitHubException
from githubkit.exception import RequestFailed as GitHubKitRequestFailed
from githubkit.response import Response as GitHubKitResponse
from pydantic import BaseModel

from repo_analyzer_mcp.clients.errors.github import RequestError, ResourceNotFoundError
from repo_analyzer_mcp.clients.models.github import Repository
from repo_analyzer_mcp.config import get_github_token
from repo_analyzer_mcp.models.repository.tree import TreeEntry

if TYPE_CHECKING:
    from githubkit.versions.v2022_11_28.models import FullRepository as GitHubKitFullRepository
    from githubkit.versions.v2022_11_28.models import GitTree as GitHubKitGitTree

NOT_FOUND_ERROR = 404

GITHUBKIT_RESPONSE_TYPE = BaseModel | Sequence[BaseModel]


def get_githubkit_client(token: str | None = None) -> GitHubKit[Any]:
    if token := token or get_github_token():
        return GitHubKit[TokenAuthStrategy](auth=TokenAuthStrategy(token=token), auto_retry=False)

    return GitHubKit(auto_retry=False)


class GitHubClient:
    """Reads repository metadata and git trees from the GitHub REST API. Requests are never retried."""

    githubkit_client: GitHubKit[Any]
    logger: Logger

    log_requests: bool
    log_responses: bool
    log_on_error: bool

    def __init__(
        self,
        githubkit_client: GitHubKit[Any] | None = None,
        logger: Logger | None = None,
        log_requests: bool = True,
        log_responses: bool = False,
        log_on_error: bool = True,
    ):
        self.githubkit_client = githubkit_client or get_githubkit_client()
        self.logger = logger or getLogger(__name__)
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.log_on_error = log_on_error

    def _get_loggers(self) -> tuple[Callable[[str], Any], Callable[[str], Any], Callable[[str], Any]]:
        request_logger = self.logger.info if self.log_requests else self.logger.debug
        response_logger = self.logger.info if self.log_responses else self.logger.debug
        error_logger = self.logger.exception if self.log_on_error else self.logger.debug
        return request_logger, response_logger, error_logger

    async def _perform_rest_request[T: GITHUBKIT_RESPONSE_TYPE](
        self,
        action: str,
        method: Callable[..., Awaitable[GitHubKitResponse[T]]],
        **request_args: Any,  # pyright: ignore[reportAny]
    ) -> T:
        """Call a githubkit REST method and return its parsed body.

        Raises:
            ResourceNotFoundError: If GitHub answers 404.
            RequestError: If the request fails for any other reason.
        """

        request_logger, response_logger, error_logger = self._get_loggers()

        request_logger(f"Performing {action} with {request_args}")

        try:
            response: GitHubKitResponse[T] = await method(**request_args)
        except GitHubKitRequestFailed as e:
            if e.response.status_code == NOT_FOUND_ERROR:
                raise ResourceNotFoundError(action=action, resource=e.request.url.path) from e

            error_logger(f"{action} with {request_args} was answered with {e.response.status_code}: {e}")
            raise RequestError(action=action, message=str(e)) from e
        except GitHubKitGitHubException as e:
            error_logger(f"{action} with {request_args} failed: {e}")
            raise RequestError(action=action, message=str(e)) from e

        parsed: T = response.parsed_data

        response_logger(f"{action} with {request_args} returned {parsed}")

        return parsed

    async def get_repository(self, owner: str, repo: str) -> Repository:
        """Get the metadata of a repository.

        Raises:
            ResourceNotFoundError: If the repository does not exist or is not visible with the configured token.
        """

        full_repository: GitHubKitFullRepository = await self._perform_rest_request(
            "Get repository",
            self.githubkit_client.rest.repos.async_get,
            owner=owner,
            repo=repo,
        )

        return Repository.from_full_repository(full_repository=full_repository)

    async def get_default_branch(self, owner: str, repo: str) -> str:
        repository: Repository = await self.get_repository(owner=owner, repo=repo)

        return repository.default_branch

    async def get_tree_entries(self, owner: str, repo: str, ref: str) -> list[TreeEntry]:
        """Get the flat, recursive listing of every path in a repository.

        Args:
            owner: The owner of the repository.
            repo: The name of the repository.
            ref: The branch, tag or tree sha to list.
        """

        tree: GitHubKitGitTree = await self._perform_rest_request(
            "Get repository tree",
            self.githubkit_client.rest.git.async_get_tree,
            owner=owner,
            repo=repo,
            tree_sha=ref,
            recursive="1",
        )

        if tree.truncated:
            self.logger.warning(f"GitHub truncated the tree of {owner}/{repo}@{ref}, some paths are missing.")

        return TreeEntry.from_git_tree(git_tree=tree)
