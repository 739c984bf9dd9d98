"""ACDC MCP Server - A Model Context Protocol Server for development content.

This package exposes a directory of markdown resources and prompt templates
through the Model Context Protocol (MCP) for AI agents and Large Language
Models.

Key Features:
- FastMCP framework over stdio, SSE, or streamable HTTP
- Markdown resources with YAML frontmatter, re-read on every access
- Prompt templates with declared arguments
- Multiple content locations with pluggable layout adapters
- Boosted full-text search across names, keywords, and content
"""

__version__ = "0.1.0"
__author__ = "ACDC MCP Contributors"
__license__ = "MIT"

# Public API exports
from .config import SearchSettings, Settings
from .models import PromptDefinition, ResourceDefinition, SearchResult
from .search import SearchEngine
from .server import AcdcMCPServer

__all__ = [
    "AcdcMCPServer",
    "PromptDefinition",
    "ResourceDefinition",
    "SearchEngine",
    "SearchResult",
    "SearchSettings",
    "Settings",
    "__version__",
]
