from logging import Logger
from typing import Self

from fastmcp.utilities.logging import get_logger
from pydantic import BaseModel, Field

from repo_analyzer_mcp.analysis.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    SLIDEDECK_SYSTEM_PROMPT,
    analysis_user_prompt,
    slidedeck_user_prompt,
)
from repo_analyzer_mcp.analysis.sanitize import sanitize_analysis_html, sanitize_slidedeck_html
from repo_analyzer_mcp.clients.completions import CompletionClient
from repo_analyzer_mcp.clients.errors.completions import CompletionRequestError
from repo_analyzer_mcp.content.resolver import ContentResolver
from repo_analyzer_mcp.errors import AnalysisFailureError, AnalyzerError
from repo_analyzer_mcp.models.repository.reference import RepoRef


class AnalysisResult(BaseModel):
    """The raw text of a file and the sanitized HTML explaining it."""

    content: str = Field(description="The raw text of the file, unmodified.")
    analysis: str = Field(description="The sanitized HTML fragment explaining the file.")


class StageResult(BaseModel):
    ok: bool = Field(description="Whether the stage succeeded.")
    error: str | None = Field(default=None, description="The error message when the stage failed.")

    @classmethod
    def success(cls) -> Self:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: BaseException) -> Self:
        return cls(ok=False, error=str(error))


class PathAnalysis(BaseModel):
    """The outcome of fetching and analyzing one file, stage by stage."""

    ref: str = Field(description="The reference that was analyzed.")
    request_id: int | None = Field(default=None, description="The request this result answers.")
    fetch: StageResult = Field(description="The outcome of fetching the file.")
    analysis_stage: StageResult | None = Field(
        default=None, description="The outcome of analyzing the file. Not set when the fetch failed."
    )
    content: str | None = Field(default=None, description="The raw text of the file, when it was fetched.")
    analysis: str | None = Field(default=None, description="The sanitized HTML explaining the file, when the analysis succeeded.")

    @property
    def ok(self) -> bool:
        return self.fetch.ok and self.analysis_stage is not None and self.analysis_stage.ok


class AnalysisPipeline:
    """Fetches files, asks the completion backend to explain them, and sanitizes what it answers."""

    def __init__(
        self,
        completion_client: CompletionClient,
        content_resolver: ContentResolver,
        logger: Logger | None = None,
    ):
        self.completion_client: CompletionClient = completion_client
        self.content_resolver: ContentResolver = content_resolver
        self.logger: Logger = logger or get_logger(__name__)

    async def _complete(self, system_prompt: str, user_prompt: str, action: str) -> str:
        try:
            return await self.completion_client.complete(system_prompt=system_prompt, user_prompt=user_prompt, action=action)
        except CompletionRequestError as e:
            raise AnalysisFailureError(action=action, message=str(e)) from e

    async def analyze(self, content: str) -> AnalysisResult:
        """Explain a file's content as an HTML fragment.

        Raises:
            AnalysisFailureError: If the completion backend fails or answers without a usable choice.
        """

        raw_analysis: str = await self._complete(
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            user_prompt=analysis_user_prompt(content),
            action="Analyze file",
        )

        return AnalysisResult(content=content, analysis=sanitize_analysis_html(raw_analysis))

    async def analyze_path_strict(self, ref: str, repository: RepoRef | None = None) -> AnalysisResult:
        """Fetch and analyze a file, failing as a whole if either step fails."""

        content: str = await self.content_resolver.resolve(ref, repository=repository)

        return await self.analyze(content)

    async def analyze_path(self, ref: str, repository: RepoRef | None = None, request_id: int | None = None) -> PathAnalysis:
        """Fetch and analyze a file, reporting each stage separately.

        The raw content is returned even when the analysis fails."""

        try:
            content: str = await self.content_resolver.resolve(ref, repository=repository)
        except AnalyzerError as e:
            self.logger.warning(f"Fetching {ref} failed: {e}")
            return PathAnalysis(ref=ref, request_id=request_id, fetch=StageResult.failure(e))

        try:
            result: AnalysisResult = await self.analyze(content)
        except AnalysisFailureError as e:
            self.logger.warning(f"Analyzing {ref} failed: {e}")
            return PathAnalysis(
                ref=ref,
                request_id=request_id,
                fetch=StageResult.success(),
                analysis_stage=StageResult.failure(e),
                content=content,
            )

        return PathAnalysis(
            ref=ref,
            request_id=request_id,
            fetch=StageResult.success(),
            analysis_stage=StageResult.success(),
            content=result.content,
            analysis=result.analysis,
        )

    async def summarize_repository(self, identifier: str) -> str:
        """Produce a multi-section HTML overview of a repository from its identifier alone.

        Raises:
            AnalysisFailureError: If the completion backend fails or answers without a usable choice.
        """

        raw_slidedeck: str = await self._complete(
            system_prompt=SLIDEDECK_SYSTEM_PROMPT,
            user_prompt=slidedeck_user_prompt(identifier),
            action="Create slidedeck",
        )

        return sanitize_slidedeck_html(raw_slidedeck)
