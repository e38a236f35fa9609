from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from githubkit.exception import GitHubException
from pydantic import BaseModel

from repo_analyzer_mcp.analysis.pipeline import AnalysisPipeline
from repo_analyzer_mcp.clients.completions import CompletionClient, get_openai_client
from repo_analyzer_mcp.content.resolver import ContentResolver

COMPLETIONS_BASE_URL = "https://completions.test/api/v1"
RAW_CONTENT_URL = "https://raw.githubusercontent.com"
LOCAL_FILE_SERVICE_URL = "http://localhost:8000"

Handler = Callable[[httpx.Request], httpx.Response]


def chat_completion_body(content: str | None) -> dict[str, Any]:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "anthropic/claude-sonnet-4",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


class RecordingTransport:
    """Answers every request with the given handler and remembers what was sent."""

    def __init__(self, handler: Handler):
        self.handler: Handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def completion_client_for(transport: RecordingTransport) -> CompletionClient:
    openai_client = get_openai_client(
        api_key="test-key",
        base_url=COMPLETIONS_BASE_URL,
        referer="https://github.com/repo-analyzer",
        http_client=transport.client(),
    )
    return CompletionClient(openai_client=openai_client, model="anthropic/claude-sonnet-4")


def completion_answering(content: str | None) -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(200, json=chat_completion_body(content)))


def content_resolver_for(transport: RecordingTransport) -> ContentResolver:
    return ContentResolver(
        http_client=transport.client(),
        host="github.com",
        raw_content_url=RAW_CONTENT_URL,
        local_file_service_url=LOCAL_FILE_SERVICE_URL,
    )


def text_answering(text: str) -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(200, text=text))


@pytest.fixture
def pipeline_factory() -> Callable[[RecordingTransport, RecordingTransport], AnalysisPipeline]:
    def factory(completion_transport: RecordingTransport, file_transport: RecordingTransport) -> AnalysisPipeline:
        return AnalysisPipeline(
            completion_client=completion_client_for(completion_transport),
            content_resolver=content_resolver_for(file_transport),
        )

    return factory


# Stub githubkit client


def githubkit_response(parsed_data: Any) -> SimpleNamespace:  # pyright: ignore[reportAny]
    return SimpleNamespace(parsed_data=parsed_data)


def stub_full_repository(owner: str, repo: str, default_branch: str) -> SimpleNamespace:
    return SimpleNamespace(
        name=repo,
        full_name=f"{owner}/{repo}",
        description="A repository used in tests.",
        html_url=f"https://github.com/{owner}/{repo}",
        default_branch=default_branch,
        archived=False,
    )


def stub_git_tree(entries: list[tuple[str, str]], truncated: bool = False) -> SimpleNamespace:
    return SimpleNamespace(
        truncated=truncated,
        tree=[SimpleNamespace(path=path, type=kind) for path, kind in entries],
    )


class StubGitHubKit:
    """Stands in for the githubkit client, answering from in-memory repositories."""

    def __init__(self, default_branches: dict[str, str], trees: dict[str, list[tuple[str, str]]], error: Exception | None = None):
        self.default_branches: dict[str, str] = default_branches
        self.trees: dict[str, list[tuple[str, str]]] = trees
        self.error: Exception | None = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

        self.rest = SimpleNamespace(
            repos=SimpleNamespace(async_get=self.async_get),
            git=SimpleNamespace(async_get_tree=self.async_get_tree),
        )

    async def async_get(self, owner: str, repo: str) -> SimpleNamespace:
        self.calls.append(("repos.get", {"owner": owner, "repo": repo}))
        if self.error is not None:
            raise self.error
        if (default_branch := self.default_branches.get(f"{owner}/{repo}")) is None:
            msg = f"Repository {owner}/{repo} is unknown"
            raise GitHubException(msg)
        return githubkit_response(stub_full_repository(owner, repo, default_branch))

    async def async_get_tree(self, owner: str, repo: str, tree_sha: str, recursive: str | None = None) -> SimpleNamespace:
        self.calls.append(("git.get_tree", {"owner": owner, "repo": repo, "tree_sha": tree_sha, "recursive": recursive}))
        if (entries := self.trees.get(f"{owner}/{repo}@{tree_sha}")) is None:
            msg = f"Tree {owner}/{repo}@{tree_sha} is unknown"
            raise GitHubException(msg)
        return githubkit_response(stub_git_tree(entries))


def dump_nodes(nodes: list[BaseModel]) -> list[dict[str, Any]]:
    return [node.model_dump(exclude_none=True) for node in nodes]
