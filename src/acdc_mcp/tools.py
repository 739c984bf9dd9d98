"""Tool handlers.

Plain functions behind the ``search`` and ``read`` MCP tools, kept free of
FastMCP so they can be called directly from the CLI and tests.
"""

import logging

from .errors import ToolArgumentError
from .providers import ResourceProvider
from .search import SearchEngine

logger = logging.getLogger(__name__)

SEARCH_TOOL = "search"
READ_TOOL = "read"


def search_tool(engine: SearchEngine, query: str | None) -> str:
    """Run ``query`` and format the hits as a markdown list."""
    if not query:
        raise ToolArgumentError("query")

    logger.info("Search request: %s", query)
    results = engine.search(query)

    if not results:
        return f"No results found for '{query}'"

    lines = [f"Search results for '{query}':\n\n"]
    for result in results:
        lines.append(f"- [{result.name}]({result.uri}): {result.snippet}\n\n")
    return "".join(lines)


def read_tool(provider: ResourceProvider, uri: str | None) -> str:
    """Full markdown body of the resource at ``uri``."""
    if not uri:
        raise ToolArgumentError("uri")

    logger.info("Read request: %s", uri)
    return provider.read_resource(uri)
