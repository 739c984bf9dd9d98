"""FastMCP server implementation for ACDC content.

Main MCP server class that wires discovered resources, prompts, and the
search index into FastMCP: one resource per markdown file, one prompt per
template, plus ``search`` and ``read`` tools and a ``/health`` route.
"""

import asyncio
import logging
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import PromptError, ResourceError, ToolError
from fastmcp.prompts import Prompt
from fastmcp.prompts import PromptArgument as MCPPromptArgument
from pydantic import PrivateAttr
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from .adapters import AdapterRegistry, discover_all
from .config import Settings, configure_logging, load_metadata, log_settings
from .errors import AcdcError
from .indexing import index_resources
from .locations import ContentProvider
from .models import MARKDOWN_MIME_TYPE, McpMetadata, PromptDefinition, ResourceDefinition
from .providers import PromptProvider, ResourceProvider
from .search import SearchEngine
from .tools import READ_TOOL, SEARCH_TOOL, read_tool, search_tool

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"


class TemplatePrompt(Prompt):
    """A prompt whose arguments are declared in frontmatter rather than a signature."""

    _provider: PromptProvider = PrivateAttr()

    @classmethod
    def from_definition(cls, definition: PromptDefinition, provider: PromptProvider) -> "TemplatePrompt":
        prompt = cls(
            name=definition.name,
            description=definition.description,
            arguments=[
                MCPPromptArgument(name=arg.name, description=arg.description, required=arg.required)
                for arg in definition.arguments
            ],
        )
        prompt._provider = provider
        return prompt

    async def render(self, arguments: dict[str, Any] | None = None) -> str:
        try:
            return self._provider.render(self.name, arguments)
        except AcdcError as e:
            raise PromptError(str(e)) from e


class AcdcMCPServer:
    """FastMCP server for ACDC content access."""

    def __init__(self, settings: Settings | None = None, registry: AdapterRegistry | None = None):
        """Load metadata, discover content, and register everything with FastMCP.

        Raises:
            ConfigurationError: metadata or content layout is invalid
        """
        self.settings = settings if settings is not None else Settings()
        self.metadata: McpMetadata = load_metadata(self.settings.content_dir)
        self.content = ContentProvider(self.metadata.content, self.settings.content_dir)

        discovered = discover_all(self.content, registry, scheme=self.settings.uri_scheme)
        self.resources = ResourceProvider(discovered.resources)
        self.prompts = PromptProvider(discovered.prompts)
        self.search_engine = SearchEngine(self.settings.search)

        server = self.metadata.server
        self.mcp = FastMCP(name=server.name, instructions=server.instructions, version=server.version)
        self._setup_resources()
        self._setup_prompts()
        self._setup_tools()
        self._setup_routes()

        logger.info(
            "Server %s %s: %d resources, %d prompts",
            server.name, server.version, len(self.resources), len(self.prompts),
        )

    async def build(self) -> int:
        """Build the search index from all resources."""
        return await index_resources(self.resources.stream_resources, self.search_engine)

    def _register_resource(self, definition: ResourceDefinition) -> None:
        uri = definition.uri

        def read() -> str:
            try:
                return self.resources.read_resource(uri)
            except (AcdcError, OSError, UnicodeDecodeError) as e:
                logger.error("Failed to read resource %s: %s", uri, e)
                raise ResourceError(f"failed to read resource {uri}: {e}") from e

        self.mcp.resource(
            uri,
            name=definition.name,
            description=definition.description,
            mime_type=MARKDOWN_MIME_TYPE,
        )(read)

    def _setup_resources(self) -> None:
        """Register one MCP resource per discovered markdown file."""
        for definition in self.resources.list_resources():
            self._register_resource(definition)

    def _setup_prompts(self) -> None:
        """Register one MCP prompt per discovered template."""
        for definition in self.prompts.list_prompts():
            self.mcp.add_prompt(TemplatePrompt.from_definition(definition, self.prompts))

    def _setup_tools(self) -> None:
        """Register MCP tools."""
        search_meta = self.metadata.get_tool_metadata(SEARCH_TOOL)
        read_meta = self.metadata.get_tool_metadata(READ_TOOL)

        @self.mcp.tool(name=search_meta.name, description=search_meta.description)
        def search(query: str) -> str:
            try:
                return search_tool(self.search_engine, query)
            except AcdcError as e:
                logger.error("Search failed for %r: %s", query, e)
                raise ToolError(str(e)) from e

        @self.mcp.tool(name=read_meta.name, description=read_meta.description)
        def read(uri: str) -> str:
            try:
                return read_tool(self.resources, uri)
            except (AcdcError, OSError, UnicodeDecodeError) as e:
                logger.error("Read failed for %s: %s", uri, e)
                raise ToolError(str(e)) from e

    def _setup_routes(self) -> None:
        @self.mcp.custom_route(HEALTH_PATH, methods=["GET"])
        async def health(request: Request) -> PlainTextResponse:
            return PlainTextResponse("ok")

    def run(self, **kwargs) -> None:
        """Run the MCP server.

        Args:
            **kwargs: Additional arguments passed to FastMCP.run()
        """
        transport = self.settings.transport
        if transport == "stdio":
            self.mcp.run(transport="stdio", **kwargs)
        else:
            self.mcp.run(transport=transport, host=self.settings.host, port=self.settings.port, **kwargs)

    def close(self) -> None:
        self.search_engine.close()


def main() -> None:
    """Main entry point for the ACDC MCP server."""
    settings = Settings()
    configure_logging(settings)
    log_settings(settings)

    server = AcdcMCPServer(settings)
    try:
        asyncio.run(server.build())
        server.run()
    finally:
        server.close()


if __name__ == "__main__":
    main()
