"""Tests for resource and prompt discovery."""

import logging
import os

import pytest

from acdc_mcp.discovery import (
    discover_prompts,
    discover_resources,
    extract_arguments,
    extract_keywords,
    iter_markdown_files,
    make_uri,
)
from acdc_mcp.errors import DiscoveryError
from acdc_mcp.models import MARKDOWN_MIME_TYPE


class TestDiscoverResources:
    """Test resource discovery."""

    def test_uri_derivation(self, content_dir):
        """Test that URIs come from location name and relative path."""
        resources = discover_resources(content_dir / "docs" / "resources", "docs")
        uris = [r.uri for r in resources]

        assert "acdc://docs/api/endpoints" in uris
        assert "acdc://docs/guides/getting-started" in uris

    def test_definition_fields(self, content_dir):
        """Test the fields of a discovered resource."""
        resources = discover_resources(content_dir / "docs" / "resources", "docs")
        endpoints = next(r for r in resources if r.uri == "acdc://docs/api/endpoints")

        assert endpoints.name == "API Endpoints"
        assert endpoints.description == "REST endpoint reference"
        assert endpoints.mime_type == MARKDOWN_MIME_TYPE
        assert endpoints.keywords == ["rest", "http"]
        assert endpoints.source == "docs"
        assert endpoints.file_path == str(content_dir / "docs" / "resources" / "api" / "endpoints.md")

    def test_custom_scheme(self, content_dir):
        """Test a non-default URI scheme."""
        resources = discover_resources(content_dir / "docs" / "resources", "docs", scheme="kb")
        assert all(r.uri.startswith("kb://docs/") for r in resources)

    def test_sorted_order(self, content_dir):
        """Test deterministic walk order."""
        resources = discover_resources(content_dir / "docs" / "resources", "docs")
        assert [r.uri for r in resources] == [
            "acdc://docs/api/endpoints",
            "acdc://docs/guides/getting-started",
        ]

    def test_invalid_file_is_skipped(self, content_dir, caplog):
        """Test that a file without frontmatter is logged and skipped."""
        with caplog.at_level(logging.WARNING, logger="acdc_mcp.discovery"):
            resources = discover_resources(content_dir / "docs" / "resources", "docs")

        assert "acdc://docs/broken" not in [r.uri for r in resources]
        assert "broken.md" in caplog.text

    @pytest.mark.parametrize(
        "metadata",
        [
            {"description": "no name"},
            {"name": "no description"},
            {"name": "", "description": "empty name"},
            {"name": 42, "description": "numeric name"},
        ],
    )
    def test_missing_required_fields(self, tmp_path, write_markdown, metadata):
        """Test that name and description are required strings."""
        write_markdown(tmp_path / "doc.md", metadata, "body")
        assert discover_resources(tmp_path, "docs") == []

    def test_non_markdown_files_ignored(self, tmp_path, write_markdown):
        """Test that only .md files are considered."""
        write_markdown(tmp_path / "notes.txt", {"name": "n", "description": "d"})
        write_markdown(tmp_path / "doc.md", {"name": "n", "description": "d"})

        assert [r.uri for r in discover_resources(tmp_path, "x")] == ["acdc://x/doc"]

    def test_missing_root(self, tmp_path):
        """Test that an unreadable root is an error."""
        with pytest.raises(DiscoveryError):
            list(iter_markdown_files(tmp_path / "missing"))

    def test_unreadable_subdirectory_is_skipped(self, content_dir, monkeypatch, caplog):
        """Test that an unreadable sub-directory is logged while its siblings are still discovered."""
        real_scandir = os.scandir

        def scandir(path):
            if os.path.basename(path) == "guides":
                raise PermissionError(13, "Permission denied", path)
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)

        with caplog.at_level(logging.WARNING, logger="acdc_mcp.discovery"):
            resources = discover_resources(content_dir / "docs" / "resources", "docs")

        assert [r.uri for r in resources] == ["acdc://docs/api/endpoints"]
        assert "Skipping unreadable directory" in caplog.text


class TestDiscoverPrompts:
    """Test prompt discovery."""

    def test_prompt_fields(self, content_dir):
        """Test a discovered prompt and its arguments."""
        [prompt] = discover_prompts(content_dir / "docs" / "prompts", "docs")

        assert prompt.name == "code-review"
        assert prompt.description == "Review a change"
        assert [(a.name, a.required) for a in prompt.arguments] == [("language", True), ("focus", False)]
        assert prompt.template.render({"language": "Go"}) == "Review this Go code."

    def test_missing_directory(self, tmp_path):
        """Test that a missing prompts directory yields nothing."""
        assert discover_prompts(tmp_path / "prompts") == []

    def test_invalid_template_is_skipped(self, tmp_path, write_markdown):
        """Test that a prompt with a broken template is skipped."""
        write_markdown(tmp_path / "bad.md", {"name": "bad", "description": "d"}, "{{if .x}}never closed")
        write_markdown(tmp_path / "good.md", {"name": "good", "description": "d"}, "fine")

        assert [p.name for p in discover_prompts(tmp_path)] == ["good"]


class TestExtraction:
    """Test metadata helpers."""

    def test_keywords_keep_only_strings(self):
        """Test that non-string keywords are dropped."""
        assert extract_keywords({"keywords": ["a", 3, "b", None]}) == ["a", "b"]
        assert extract_keywords({"keywords": "a, b"}) == []
        assert extract_keywords({}) == []

    def test_arguments_default_to_required(self):
        """Test the required flag default."""
        arguments = extract_arguments(
            {
                "arguments": [
                    {"name": "a"},
                    {"name": "b", "required": False},
                    {"name": "c", "required": "no"},
                    {"description": "nameless"},
                    "not a mapping",
                ]
            }
        )
        assert [(a.name, a.required) for a in arguments] == [("a", True), ("b", False), ("c", True)]

    def test_make_uri(self, tmp_path):
        """Test URI construction from a nested path."""
        path = tmp_path / "api" / "v1" / "users.md"
        assert make_uri("acdc", "docs", tmp_path, path) == "acdc://docs/api/v1/users"
