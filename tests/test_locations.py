"""Tests for content location resolution."""

import logging

import pytest

from acdc_mcp.errors import MissingResourceDir, NoLocations, NotADirectory, PathNotFound
from acdc_mcp.locations import ContentProvider, resolve_locations
from acdc_mcp.models import ContentLocation


def location(name, path, type=""):
    return ContentLocation(name=name, description=f"{name} docs", path=str(path), type=type)


class TestResolveLocations:
    """Test resolving configured locations."""

    def test_relative_path_resolves_against_config_dir(self, content_dir):
        """Test joining relative paths onto the config directory."""
        [resolved] = resolve_locations([location("docs", "docs")], content_dir)

        assert resolved.name == "docs"
        assert resolved.base_path == content_dir / "docs"
        assert resolved.resource_path == content_dir / "docs" / "resources"
        assert resolved.prompt_path == content_dir / "docs" / "prompts"
        assert resolved.has_prompts

    def test_absolute_path(self, content_dir, tmp_path):
        """Test that absolute paths ignore the config directory."""
        [resolved] = resolve_locations([location("docs", content_dir / "docs")], tmp_path / "elsewhere")
        assert resolved.base_path == content_dir / "docs"

    def test_path_is_normalized(self, content_dir):
        """Test that dot segments are collapsed."""
        [resolved] = resolve_locations([location("docs", "./legacy/../docs")], content_dir)
        assert resolved.base_path == content_dir / "docs"

    def test_legacy_layout(self, content_dir):
        """Test detecting mcp-resources and mcp-prompts."""
        [resolved] = resolve_locations([location("legacy", "legacy")], content_dir)

        assert resolved.resource_path == content_dir / "legacy" / "mcp-resources"
        assert resolved.prompt_path == content_dir / "legacy" / "mcp-prompts"
        assert resolved.has_prompts

    def test_current_layout_wins(self, tmp_path):
        """Test that resources/ is preferred when both layouts exist."""
        (tmp_path / "both" / "resources").mkdir(parents=True)
        (tmp_path / "both" / "mcp-resources").mkdir()
        (tmp_path / "both" / "mcp-prompts").mkdir()

        [resolved] = resolve_locations([location("both", "both")], tmp_path)

        assert resolved.resource_path.name == "resources"
        assert resolved.prompt_path.name == "prompts"
        assert not resolved.has_prompts

    def test_adapter_type_and_description_carried(self, content_dir):
        """Test that configured fields survive resolution."""
        [resolved] = resolve_locations([location("docs", "docs", type="acdc-mcp")], content_dir)
        assert resolved.adapter_type == "acdc-mcp"
        assert resolved.description == "docs docs"

    def test_no_locations(self, tmp_path):
        """Test an empty location list."""
        with pytest.raises(NoLocations):
            resolve_locations([], tmp_path)

    def test_path_not_found(self, tmp_path):
        """Test a location pointing nowhere."""
        with pytest.raises(PathNotFound, match="missing"):
            resolve_locations([location("missing", "missing")], tmp_path)

    def test_not_a_directory(self, tmp_path):
        """Test a location pointing at a file."""
        (tmp_path / "file.md").write_text("x", encoding="utf-8")
        with pytest.raises(NotADirectory):
            resolve_locations([location("file", "file.md")], tmp_path)

    def test_missing_resource_dir(self, tmp_path):
        """Test a directory with neither layout."""
        (tmp_path / "empty").mkdir()
        with pytest.raises(MissingResourceDir, match="empty"):
            resolve_locations([location("empty", "empty")], tmp_path)

    def test_duplicate_path_warns(self, content_dir, caplog):
        """Test that two locations on the same directory only warn."""
        with caplog.at_level(logging.WARNING, logger="acdc_mcp.locations"):
            resolved = resolve_locations(
                [location("docs", "docs"), location("again", "docs")], content_dir
            )

        assert len(resolved) == 2
        assert "Duplicate content path" in caplog.text


class TestContentProvider:
    """Test the content provider facade."""

    def test_location_views(self, content_dir, tmp_path):
        """Test resource and prompt location listings."""
        (tmp_path / "bare" / "resources").mkdir(parents=True)
        provider = ContentProvider(
            [location("docs", "docs"), location("bare", tmp_path / "bare")], content_dir
        )

        assert [name for name, _ in provider.resource_locations()] == ["docs", "bare"]
        assert [name for name, _ in provider.prompt_locations()] == ["docs"]
        assert provider.get_location("bare").base_path == tmp_path / "bare"
        assert provider.get_location("nope") is None

    def test_load_markdown(self, content_dir):
        """Test reading a content file through the provider."""
        provider = ContentProvider([location("docs", "docs")], content_dir)
        parsed = provider.load_markdown(content_dir / "docs" / "resources" / "api" / "endpoints.md")

        assert parsed.metadata["name"] == "API Endpoints"
