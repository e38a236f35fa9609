import asyncio
import json
from collections.abc import Awaitable, Callable
from logging import Logger
from pathlib import Path
from typing import Any

from fastmcp import FastMCP
from fastmcp.utilities.logging import get_logger
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from repo_analyzer_mcp.config import get_local_excluded_folders
from repo_analyzer_mcp.content.resolver import READ_DIR_ROUTE, READ_FILE_ROUTE
from repo_analyzer_mcp.models.repository.tree import FILE, FOLDER, FileNode, sort_file_nodes

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

Handler = Callable[[Request], Awaitable[Response]]


class InvalidRequestBodyError(ValueError):
    """The request body is not a JSON object with a string `path`."""


def has_parent_traversal(path: str) -> bool:
    """Whether any segment of the path, with either separator, is `..`."""

    return ".." in path.replace("\\", "/").split("/")


def read_file_tree(directory: Path, excluded_folders: set[str]) -> list[FileNode]:
    """Recursively list a directory as FileNodes with absolute paths, skipping excluded folder names.

    Symlinks are listed as files and never followed."""

    nodes: list[FileNode] = []

    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            if entry.name in excluded_folders:
                continue
            nodes.append(
                FileNode(name=entry.name, path=entry.as_posix(), type=FOLDER, children=read_file_tree(entry, excluded_folders))
            )
            continue

        nodes.append(FileNode(name=entry.name, path=entry.as_posix(), type=FILE))

    return sort_file_nodes(nodes)


async def read_path_from_body(request: Request) -> str:
    try:
        body: Any = await request.json()  # pyright: ignore[reportAny]
    except json.JSONDecodeError as e:
        msg = "The request body is not valid JSON."
        raise InvalidRequestBodyError(msg) from e

    if not isinstance(body, dict) or not isinstance(path := body.get("path"), str) or not path:  # pyright: ignore[reportUnknownMemberType]
        msg = "The request body must be a JSON object with a string `path`."
        raise InvalidRequestBodyError(msg)

    return path


class LocalFileService:
    """Development-time endpoints that read files and directory trees from the local machine.

    Paths containing a `..` segment are refused, every other absolute path is trusted."""

    def __init__(self, excluded_folders: list[str] | None = None, logger: Logger | None = None):
        self.excluded_folders: set[str] = set(excluded_folders if excluded_folders is not None else get_local_excluded_folders())
        self.logger: Logger = logger or get_logger(__name__)

    def register_routes(self, fastmcp: FastMCP[Any]) -> FastMCP[Any]:
        _ = fastmcp.custom_route(READ_FILE_ROUTE, methods=["POST", "OPTIONS"])(self._with_cors(self.read_file))
        _ = fastmcp.custom_route(READ_DIR_ROUTE, methods=["POST", "OPTIONS"])(self._with_cors(self.read_dir))

        return fastmcp

    def _with_cors(self, handler: Handler) -> Handler:
        async def wrapped(request: Request) -> Response:
            if request.method == "OPTIONS":
                return PlainTextResponse("", headers=CORS_HEADERS)

            response: Response = await handler(request)
            response.headers.update(CORS_HEADERS)
            return response

        wrapped.__name__ = handler.__name__
        return wrapped

    async def read_file(self, request: Request) -> Response:
        try:
            path: str = await read_path_from_body(request)
        except InvalidRequestBodyError as e:
            return PlainTextResponse(str(e), status_code=400)

        if has_parent_traversal(path):
            self.logger.warning(f"Refused to read {path}: parent directory traversal")
            return PlainTextResponse("Access denied", status_code=403)

        try:
            content: str = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            self.logger.exception(f"Error reading file {path}")
            return PlainTextResponse("Error reading file", status_code=500)

        return PlainTextResponse(content)

    async def read_dir(self, request: Request) -> Response:
        try:
            path: str = await read_path_from_body(request)
        except InvalidRequestBodyError as e:
            return PlainTextResponse(str(e), status_code=400)

        if has_parent_traversal(path):
            self.logger.warning(f"Refused to list {path}: parent directory traversal")
            return PlainTextResponse("Access denied", status_code=403)

        try:
            tree: list[FileNode] = await asyncio.to_thread(read_file_tree, Path(path), self.excluded_folders)
        except OSError:
            self.logger.exception(f"Error reading directory {path}")
            return PlainTextResponse("Error reading directory", status_code=500)

        return JSONResponse([node.model_dump(exclude_none=True) for node in tree])
