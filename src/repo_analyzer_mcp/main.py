from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging import Logger
from typing import Literal

import click
from fastmcp import FastMCP
from fastmcp.server.middleware.logging import LoggingMiddleware
from fastmcp.utilities.logging import get_logger

from repo_analyzer_mcp.config import local_file_service_enabled
from repo_analyzer_mcp.content.local import LocalFileService
from repo_analyzer_mcp.servers.analyzer import AnalyzerServer

logger: Logger = get_logger(name=__name__)

analyzer_server: AnalyzerServer = AnalyzerServer(logger=logger)


@asynccontextmanager
async def lifespan(_: FastMCP[None]) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await analyzer_server.aclose()


mcp: FastMCP[None] = FastMCP[None](name="Repo Analyzer MCP", lifespan=lifespan)

mcp.add_middleware(middleware=LoggingMiddleware(include_payloads=True, logger=logger))

_ = analyzer_server.register_tools(fastmcp=mcp)

if local_file_service_enabled():
    local_file_service: LocalFileService = LocalFileService(logger=logger)
    _ = local_file_service.register_routes(fastmcp=mcp)


@click.command()
@click.option(
    "--mcp-transport",
    type=click.Choice(["stdio", "streamable-http"]),
    default="stdio",
    help="The transport to run the MCP server on",
)
def run_mcp(mcp_transport: Literal["stdio", "streamable-http"]):
    mcp.run(transport=mcp_transport)


if __name__ == "__main__":
    run_mcp()
