"""Pytest configuration and shared fixtures for ACDC MCP Server tests."""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import yaml

from acdc_mcp.config import METADATA_FILE, SearchSettings, Settings
from acdc_mcp.search import SearchEngine
from acdc_mcp.server import AcdcMCPServer

MarkdownWriter = Callable[..., Path]


def render_markdown(metadata: dict[str, Any] | None, body: str = "") -> str:
    """Markdown text with ``metadata`` as YAML frontmatter."""
    if metadata is None:
        return body
    return "---\n" + yaml.safe_dump(metadata, sort_keys=False) + "---\n" + body


@pytest.fixture
def write_markdown() -> MarkdownWriter:
    """Write a markdown file with frontmatter, creating parent directories."""

    def _write(path: Path, metadata: dict[str, Any] | None, body: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_markdown(metadata, body), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_metadata() -> dict[str, Any]:
    """Contents of mcp-metadata.yaml for the sample content directory."""
    return {
        "server": {
            "name": "test-server",
            "version": "1.0.0",
            "instructions": "Search before writing code.",
        },
        "tools": [
            {"name": "search", "description": "Search the test corpus."},
        ],
        "content": [
            {"name": "docs", "description": "Current documentation", "path": "docs"},
            {"name": "legacy", "description": "Legacy documentation", "path": "legacy"},
        ],
    }


@pytest.fixture
def content_dir(tmp_path: Path, write_markdown: MarkdownWriter, sample_metadata: dict[str, Any]) -> Path:
    """Content directory with one current-layout and one legacy-layout location."""
    root = tmp_path / "content"
    root.mkdir()
    (root / METADATA_FILE).write_text(yaml.safe_dump(sample_metadata, sort_keys=False), encoding="utf-8")

    docs = root / "docs"
    write_markdown(
        docs / "resources" / "api" / "endpoints.md",
        {"name": "API Endpoints", "description": "REST endpoint reference", "keywords": ["rest", "http"]},
        "# Endpoints\n\nEvery endpoint returns JSON.\n",
    )
    write_markdown(
        docs / "resources" / "guides" / "getting-started.md",
        {"name": "Getting Started", "description": "First steps", "keywords": ["onboarding"]},
        "# Getting Started\n\nInstall the toolchain and run the server.\n",
    )
    write_markdown(docs / "resources" / "broken.md", None, "# No frontmatter here\n")
    write_markdown(
        docs / "prompts" / "review.md",
        {
            "name": "code-review",
            "description": "Review a change",
            "arguments": [
                {"name": "language", "description": "Programming language", "required": True},
                {"name": "focus", "description": "Area to focus on", "required": False},
            ],
        },
        "Review this {{.language}} code.{{if .focus}} Focus on {{.focus}}.{{end}}",
    )

    legacy = tmp_path / "content" / "legacy"
    write_markdown(
        legacy / "mcp-resources" / "old-guide.md",
        {"name": "Old Guide", "description": "Deprecated guide"},
        "Legacy deployment notes.\n",
    )
    write_markdown(
        legacy / "mcp-prompts" / "summarize.md",
        {"name": "summarize", "description": "Summarize the docs"},
        "Summarize the documentation.",
    )
    return root


@pytest.fixture
def test_settings(content_dir: Path) -> Settings:
    """Create test configuration settings."""
    return Settings(
        content_dir=content_dir,
        transport="stdio",
        log_level="DEBUG",
        search=SearchSettings(max_results=10, batch_size=2),
    )


@pytest.fixture
def search_engine() -> Generator[SearchEngine, None, None]:
    """In-memory search engine, closed after the test."""
    engine = SearchEngine(SearchSettings())
    yield engine
    engine.close()


@pytest.fixture
def acdc_server(test_settings: Settings) -> Generator[AcdcMCPServer, None, None]:
    """Create ACDC MCP server instance for testing."""
    server = AcdcMCPServer(test_settings)
    yield server
    server.close()
