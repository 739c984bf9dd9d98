"""Data models for ACDC MCP Server.

Pydantic models for the content model (resource and prompt definitions),
the search surface, and the ``mcp-metadata.yaml`` document.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError
from .templating import Template

MARKDOWN_MIME_TYPE = "text/markdown"
UNKNOWN_NAME = "Unknown"

# Indexed field names
FIELD_NAME = "name"
FIELD_CONTENT = "content"
FIELD_KEYWORDS = "keywords"


class ContentLocation(BaseModel):
    """A configured content root."""

    name: str = Field(default="", description="Unique location name, used as URI and prompt prefix")
    description: str = Field(default="", description="Human-readable description")
    path: str = Field(default="", description="Absolute path or path relative to the config directory")
    type: str = Field(default="", description="Explicit adapter name; empty means auto-detect")


class ResourceDefinition(BaseModel):
    """A discovered markdown resource. Content is re-read on every access."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., description="scheme://location/relative/path")
    name: str = Field(..., description="Display name from frontmatter")
    description: str = Field(..., description="Description from frontmatter")
    mime_type: str = Field(default=MARKDOWN_MIME_TYPE, description="Always markdown")
    file_path: str = Field(..., description="Absolute path of the source file")
    keywords: list[str] = Field(default_factory=list, description="Search boost hints")
    source: str = Field(default="", description="Content location name")


class PromptArgument(BaseModel):
    """A declared prompt argument."""

    name: str
    description: str = ""
    required: bool = True


class PromptDefinition(BaseModel):
    """A discovered prompt template."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Prompt name, namespaced by the adapter layer")
    description: str = Field(..., description="Description from frontmatter")
    arguments: list[PromptArgument] = Field(default_factory=list, description="Declared arguments")
    file_path: str = Field(..., description="Absolute path of the source file")
    template: Template = Field(..., description="Compiled template", exclude=True)
    source: str = Field(default="", description="Content location name")

    def with_namespace(self, namespace: str, source: str) -> "PromptDefinition":
        """Return a copy named ``<namespace>:<name>`` and stamped with ``source``."""
        return self.model_copy(update={"name": f"{namespace}:{self.name}", "source": source})


class SearchDocument(BaseModel):
    """Unit of indexing. Consumed once at index-build time."""

    uri: str
    name: str
    content: str = ""
    keywords: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A ranked search hit."""

    uri: str = Field(..., description="Resource URI")
    name: str = Field(default=UNKNOWN_NAME, description="Resource name")
    snippet: str = Field(default="", description="Name plus relevance score")


class MarkdownWithFrontmatter(BaseModel):
    """Parsed markdown file: frontmatter metadata and body."""

    metadata: dict[str, Any] = Field(default_factory=dict)
    content: str = ""


class ServerMetadata(BaseModel):
    name: str = ""
    version: str = ""
    instructions: str = ""


class ToolMetadata(BaseModel):
    name: str = ""
    description: str = ""


DEFAULT_TOOL_METADATA: dict[str, ToolMetadata] = {
    "search": ToolMetadata(
        name="search",
        description=(
            "Search across all development resources using full-text search. This tool searches "
            "resource names, keywords, and content to help you find relevant standards, "
            "guidelines, and documentation.\n\n"
            "WHEN TO USE: Use this as your first step before generating code or reviewing "
            "implementations. Search for relevant topics to discover which resources apply to "
            "your task.\n\n"
            "HOW IT WORKS: Searches are performed across resource names, keywords, and full "
            "markdown content. Results include the resource name, URI, and a relevance score."
        ),
    ),
    "read": ToolMetadata(
        name="read",
        description=(
            "Read the full content of a specified resource. This tool retrieves the complete "
            "markdown content of any development resource using its URI.\n\n"
            "WHEN TO USE: Use after you have found a relevant resource URI (e.g., via the search "
            "tool or by listing resources) and need its full content.\n\n"
            "HOW IT WORKS: Provide the URI of the resource you wish to read "
            "(e.g., 'acdc://guides/getting-started'). The tool returns the markdown content "
            "with frontmatter removed."
        ),
    ),
}


def validate_content_locations(locations: list[ContentLocation]) -> None:
    """Check a location list is non-empty, complete, and uniquely named."""
    if not locations:
        raise ConfigurationError("at least one content location is required")

    seen: set[str] = set()
    for i, loc in enumerate(locations):
        if not loc.name:
            raise ConfigurationError(f"content location at index {i}: name is required")
        if not loc.description:
            raise ConfigurationError(f"content location at index {i}: description is required")
        if not loc.path:
            raise ConfigurationError(f"content location at index {i}: path is required")
        if loc.name in seen:
            raise ConfigurationError(f"content location at index {i}: duplicate name {loc.name!r}")
        seen.add(loc.name)


class McpMetadata(BaseModel):
    """Root of ``mcp-metadata.yaml``."""

    server: ServerMetadata = Field(default_factory=ServerMetadata)
    tools: list[ToolMetadata] = Field(default_factory=list)
    content: list[ContentLocation] = Field(default_factory=list)

    def tools_map(self) -> dict[str, ToolMetadata]:
        """Tool overrides keyed by name."""
        tools: dict[str, ToolMetadata] = {}
        for tool in self.tools:
            if tool.name in tools:
                raise ConfigurationError(f"duplicate tool name: {tool.name}")
            tools[tool.name] = tool
        return tools

    def get_tool_metadata(self, name: str) -> ToolMetadata:
        """Configured metadata for a tool, or the built-in default."""
        for tool in self.tools:
            if tool.name == name:
                return tool
        return DEFAULT_TOOL_METADATA[name]

    def ensure_valid(self) -> None:
        """Raise ``ConfigurationError`` if required fields are missing."""
        if not self.server.name:
            raise ConfigurationError("server name is required")
        if not self.server.version:
            raise ConfigurationError("server version is required")
        if not self.server.instructions:
            raise ConfigurationError("server instructions are required")

        for i, tool in enumerate(self.tools):
            if not tool.name:
                raise ConfigurationError(f"tool at index {i} missing name")
            if not tool.description:
                raise ConfigurationError(f"tool at index {i} missing description")

        self.tools_map()
        validate_content_locations(self.content)
