from logging import Logger
from typing import Any

from fastmcp import FastMCP
from fastmcp.tools import Tool
from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from repo_analyzer_mcp.analysis.pipeline import AnalysisPipeline, PathAnalysis
from repo_analyzer_mcp.clients.completions import CompletionClient
from repo_analyzer_mcp.clients.errors.github import ClientError
from repo_analyzer_mcp.clients.github import GitHubClient
from repo_analyzer_mcp.config import get_default_branch, get_excluded_extensions, get_excluded_prefixes, get_github_host
from repo_analyzer_mcp.content.resolver import ContentResolver
from repo_analyzer_mcp.errors import AnalysisFailureError
from repo_analyzer_mcp.models.repository.reference import RepoRef, check_reference_allowed, parse_repository_reference
from repo_analyzer_mcp.models.repository.tree import FileNode, TreeEntry, build_file_tree, count_tree_files
from repo_analyzer_mcp.servers.shared.annotations import IDENTIFIER, REF
from repo_analyzer_mcp.servers.shared.requests import LatestRequestGuard

OPEN_CHANNEL = "open"
ANALYZE_CHANNEL = "analyze"

SLIDEDECK_ERROR_MESSAGE = "<p>Error generating the slidedeck for this repository. Please try again.</p>"


class RepositoryTree(BaseModel):
    """The tree of an opened repository."""

    repository: RepoRef = Field(description="The repository that was opened.")
    request_id: int = Field(description="The request this tree answers. Only the highest id is current.")
    file_count: int = Field(description="The number of files in the tree.")
    files: list[FileNode] = Field(description="The top-level files and folders of the repository.")


class Slidedeck(BaseModel):
    """An HTML overview of a repository."""

    identifier: str = Field(description="The repository the slidedeck describes.")
    ok: bool = Field(description="Whether the slidedeck was generated.")
    html: str = Field(description="The sanitized HTML of the slidedeck, or a visible error message.")
    error: str | None = Field(default=None, description="The error when the slidedeck could not be generated.")


class AnalyzerServer:
    """Opens repositories, builds their trees and explains their files.

    Holds the single active repository that paths starting with `/` are resolved against."""

    github_client: GitHubClient
    pipeline: AnalysisPipeline
    logger: Logger

    current_repository: RepoRef | None

    def __init__(
        self,
        github_client: GitHubClient | None = None,
        pipeline: AnalysisPipeline | None = None,
        excluded_prefixes: list[str] | None = None,
        excluded_extensions: list[str] | None = None,
        default_branch: str | None = None,
        host: str | None = None,
        logger: Logger | None = None,
    ):
        self.logger = logger or get_logger(name=__name__)
        self.github_client = github_client or GitHubClient(logger=self.logger)
        self.pipeline = pipeline or AnalysisPipeline(
            completion_client=CompletionClient(logger=self.logger),
            content_resolver=ContentResolver(logger=self.logger),
            logger=self.logger,
        )
        self.excluded_prefixes: list[str] = excluded_prefixes if excluded_prefixes is not None else get_excluded_prefixes()
        self.excluded_extensions: list[str] = excluded_extensions if excluded_extensions is not None else get_excluded_extensions()
        self.default_branch: str = default_branch or get_default_branch()
        self.host: str = host or get_github_host()
        self.current_repository = None
        self.requests: LatestRequestGuard = LatestRequestGuard()

    async def aclose(self) -> None:
        """Release the HTTP connections held for fetching file contents."""

        await self.pipeline.content_resolver.aclose()

    def register_tools(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.open_repository))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.list_repository_tree))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.analyze_path))
        _ = fastmcp.add_tool(tool=Tool.from_function(fn=self.summarize_repository))

        return fastmcp

    async def _resolve_branch(self, repository: RepoRef) -> RepoRef:
        """Use the branch GitHub declares as default, keeping the configured fallback if the lookup fails."""

        if repository.explicit_branch:
            return repository

        try:
            default_branch: str = await self.github_client.get_default_branch(owner=repository.owner, repo=repository.repo)
        except ClientError as e:
            self.logger.warning(f"Could not look up the default branch of {repository.full_name}, using {repository.branch}: {e}")
            return repository

        return repository.with_branch(default_branch)

    async def _open_repository(self, identifier: str) -> tuple[RepoRef, list[FileNode]]:
        check_reference_allowed(identifier, host=self.host)

        repository: RepoRef = parse_repository_reference(identifier, default_branch=self.default_branch, host=self.host)
        repository = await self._resolve_branch(repository)

        entries: list[TreeEntry] = await self.github_client.get_tree_entries(
            owner=repository.owner, repo=repository.repo, ref=repository.branch
        )

        files: list[FileNode] = build_file_tree(
            entries, excluded_prefixes=self.excluded_prefixes, excluded_extensions=self.excluded_extensions
        )

        self.current_repository = repository

        return repository, files

    async def open_repository(self, identifier: IDENTIFIER) -> RepositoryTree:
        """Open a GitHub repository and return its file tree. Folders are listed before files."""

        request_id, (repository, files) = await self.requests.run(OPEN_CHANNEL, self._open_repository(identifier))

        file_count: int = count_tree_files(files)

        self.logger.info(f"Opened {repository.full_name}@{repository.branch} with {file_count} files")

        return RepositoryTree(repository=repository, request_id=request_id, file_count=file_count, files=files)

    async def list_repository_tree(self, identifier: IDENTIFIER) -> list[FileNode]:
        """Open a GitHub repository and return only its file tree."""

        repository_tree: RepositoryTree = await self.open_repository(identifier)

        return repository_tree.files

    async def analyze_path(self, ref: REF) -> PathAnalysis:
        """Fetch a file and explain it. The file's content is returned even if the explanation fails."""

        request_id, path_analysis = await self.requests.run(
            ANALYZE_CHANNEL, self.pipeline.analyze_path(ref, repository=self.current_repository)
        )

        return path_analysis.model_copy(update={"request_id": request_id})

    async def summarize_repository(self, identifier: IDENTIFIER) -> Slidedeck:
        """Create an HTML slidedeck that introduces a repository to someone new to it."""

        try:
            html: str = await self.pipeline.summarize_repository(identifier)
        except AnalysisFailureError as e:
            self.logger.warning(f"Creating a slidedeck for {identifier} failed: {e}")
            return Slidedeck(identifier=identifier, ok=False, html=SLIDEDECK_ERROR_MESSAGE, error=str(e))

        return Slidedeck(identifier=identifier, ok=True, html=html)
