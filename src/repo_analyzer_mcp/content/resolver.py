from logging import Logger
from typing import Literal

import httpx
from fastmcp.utilities.logging import get_logger

from repo_analyzer_mcp.config import get_fetch_timeout, get_github_host, get_local_file_service_url, get_raw_content_url
from repo_analyzer_mcp.errors import ContentFetchError, MissingRepoContextError
from repo_analyzer_mcp.models.repository.reference import SCHEME_PATTERN, RepoRef

READ_FILE_ROUTE = "/__fs__/readFile"
READ_DIR_ROUTE = "/__fs__/readDir"

ACCESS_DENIED_STATUS = 403

RefKind = Literal["web", "repository", "local"]


def classify_ref(ref: str) -> RefKind:
    if SCHEME_PATTERN.match(ref):
        return "web"
    if ref.startswith("/"):
        return "repository"
    return "local"


def to_raw_content_url(url: str, host: str, raw_content_url: str) -> str:
    """Rewrite a file-view URL like `https://github.com/o/r/blob/main/a.py` to its raw-content form.

    URLs on any other host are returned unchanged."""

    parsed: httpx.URL = httpx.URL(url)

    if parsed.host.removeprefix("www.") != host:
        return url

    path: str = parsed.path.replace("/blob/", "/", 1)

    return f"{raw_content_url}{path}"


def repository_raw_url(repository: RepoRef, path: str, raw_content_url: str) -> str:
    return f"{raw_content_url}/{repository.owner}/{repository.repo}/{repository.branch}{path}"


class ContentResolver:
    """Fetches the raw text behind a tree node reference."""

    _http_client: httpx.AsyncClient | None
    logger: Logger

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        host: str | None = None,
        raw_content_url: str | None = None,
        local_file_service_url: str | None = None,
        logger: Logger | None = None,
    ):
        self._http_client = http_client
        self.host = host or get_github_host()
        self.raw_content_url = (raw_content_url or get_raw_content_url()).rstrip("/")
        self.local_file_service_url = (local_file_service_url or get_local_file_service_url()).rstrip("/")
        self.logger = logger or get_logger(__name__)

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=get_fetch_timeout(), follow_redirects=True)
        return self._http_client

    def source_url(self, ref: str, repository: RepoRef | None) -> str | None:
        """The URL a reference is fetched from with GET. Local references have none."""

        match classify_ref(ref):
            case "web":
                return to_raw_content_url(ref, host=self.host, raw_content_url=self.raw_content_url)
            case "repository":
                if repository is None:
                    raise MissingRepoContextError(path=ref)
                return repository_raw_url(repository, path=ref, raw_content_url=self.raw_content_url)
            case "local":
                return None

    async def resolve(self, ref: str, repository: RepoRef | None = None) -> str:
        """Resolve a reference to the raw text of the file.

        Args:
            ref: An absolute URL, a repository-relative path starting with `/`, or a local filesystem path.
            repository: The repository that repository-relative paths are resolved against.

        Raises:
            MissingRepoContextError: If `ref` is repository-relative and no repository is given.
            ContentFetchError: If the content could not be fetched.
        """

        if (url := self.source_url(ref, repository)) is None:
            return await self._read_local_file(ref)

        self.logger.info(f"Fetching {ref} from {url}")

        try:
            response: httpx.Response = await self.http_client.get(url)
            _ = response.raise_for_status()
        except httpx.HTTPError as e:
            self.logger.exception(f"Error fetching {ref} from {url}: {e}")
            raise ContentFetchError(ref=ref, message=str(e)) from e

        return response.text

    async def _read_local_file(self, path: str) -> str:
        url: str = f"{self.local_file_service_url}{READ_FILE_ROUTE}"

        self.logger.info(f"Reading local file {path} through {url}")

        try:
            response: httpx.Response = await self.http_client.post(url, json={"path": path})
        except httpx.HTTPError as e:
            self.logger.exception(f"Error reading local file {path}: {e}")
            raise ContentFetchError(ref=path, message=str(e)) from e

        if response.status_code == ACCESS_DENIED_STATUS:
            raise ContentFetchError(ref=path, message="Access denied")

        if response.is_error:
            raise ContentFetchError(ref=path, message=f"The local file service answered {response.status_code}: {response.text}")

        return response.text

    async def aclose(self) -> None:
        """Close the HTTP client. A new one is created if the resolver is used again."""

        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
