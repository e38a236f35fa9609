from collections.abc import Callable

import pytest

from repo_analyzer_mcp.analysis.pipeline import AnalysisPipeline
from repo_analyzer_mcp.clients.github import GitHubClient
from repo_analyzer_mcp.servers.analyzer import AnalyzerServer
from tests.conftest import RecordingTransport, StubGitHubKit, completion_answering, text_answering

WIDGETS_TREE: list[tuple[str, str]] = [
    ("src", "tree"),
    ("src/index.ts", "blob"),
    ("src/components/App.tsx", "blob"),
    ("dist/bundle.js", "blob"),
    ("node_modules/react/index.js", "blob"),
    ("assets/logo.jpg", "blob"),
    ("README.md", "blob"),
]


@pytest.fixture
def githubkit_client() -> StubGitHubKit:
    return StubGitHubKit(
        default_branches={"acme/widgets": "trunk"},
        trees={
            "acme/widgets@trunk": WIDGETS_TREE,
            "acme/widgets@dev": [("CHANGELOG.md", "blob")],
            "acme/widgets@main": [("OLD.md", "blob")],
        },
    )


@pytest.fixture
def completion_transport() -> RecordingTransport:
    return completion_answering("```html\n<b>Purpose</b><br>Renders the app.\n```")


@pytest.fixture
def file_transport() -> RecordingTransport:
    return text_answering("export const App = () => null;\n")


@pytest.fixture
def analyzer_server(
    githubkit_client: StubGitHubKit,
    completion_transport: RecordingTransport,
    file_transport: RecordingTransport,
    pipeline_factory: Callable[[RecordingTransport, RecordingTransport], AnalysisPipeline],
) -> AnalyzerServer:
    return AnalyzerServer(
        github_client=GitHubClient(githubkit_client=githubkit_client),  # pyright: ignore[reportArgumentType]
        pipeline=pipeline_factory(completion_transport, file_transport),
        excluded_prefixes=["dist/", "node_modules/"],
        excluded_extensions=["jpg", "jpeg"],
        default_branch="main",
        host="github.com",
    )
