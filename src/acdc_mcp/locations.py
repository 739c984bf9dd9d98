"""Content location resolution.

Turns configured content locations into absolute, validated directories and
detects which layout convention each one uses:

- current: ``resources/`` and ``prompts/``
- legacy: ``mcp-resources/`` and ``mcp-prompts/``

The two conventions are never mixed within a location.
"""

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import MissingResourceDir, NoLocations, NotADirectory, PathNotFound
from .frontmatter import load_markdown
from .models import ContentLocation, MarkdownWithFrontmatter

logger = logging.getLogger(__name__)

RESOURCES_DIR = "resources"
PROMPTS_DIR = "prompts"
LEGACY_RESOURCES_DIR = "mcp-resources"
LEGACY_PROMPTS_DIR = "mcp-prompts"

# Probe order: current convention first
CONVENTIONS: tuple[tuple[str, str], ...] = (
    (RESOURCES_DIR, PROMPTS_DIR),
    (LEGACY_RESOURCES_DIR, LEGACY_PROMPTS_DIR),
)


@dataclass(frozen=True)
class ResolvedLocation:
    """A content location after path resolution."""

    name: str
    base_path: Path
    resource_path: Path
    prompt_path: Path
    has_prompts: bool
    adapter_type: str = ""
    description: str = ""


def _detect_structure(name: str, base_path: Path) -> tuple[Path, Path]:
    for resources_dir, prompts_dir in CONVENTIONS:
        candidate = base_path / resources_dir
        if candidate.is_dir():
            return candidate, base_path / prompts_dir
    raise MissingResourceDir(name, str(base_path))


def resolve_locations(locations: Sequence[ContentLocation], config_dir: str | Path) -> list[ResolvedLocation]:
    """Resolve configured locations against ``config_dir``.

    Raises:
        NoLocations: the list is empty
        PathNotFound: a location path does not exist
        NotADirectory: a location path is not a directory
        MissingResourceDir: no resource directory in either convention
    """
    if not locations:
        raise NoLocations()

    resolved: list[ResolvedLocation] = []
    seen_paths: dict[Path, str] = {}

    for loc in locations:
        base_path = Path(loc.path)
        if not base_path.is_absolute():
            base_path = Path(config_dir) / base_path
        base_path = Path(os.path.normpath(base_path.absolute()))

        try:
            real_path = base_path.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise PathNotFound(loc.name, str(base_path)) from e

        if real_path in seen_paths:
            logger.warning(
                "Duplicate content path detected: %s (locations %r and %r)",
                real_path, seen_paths[real_path], loc.name,
            )
        seen_paths[real_path] = loc.name

        if not base_path.is_dir():
            raise NotADirectory(loc.name, str(base_path))

        resource_path, prompt_path = _detect_structure(loc.name, base_path)

        resolved.append(
            ResolvedLocation(
                name=loc.name,
                base_path=base_path,
                resource_path=resource_path,
                prompt_path=prompt_path,
                has_prompts=prompt_path.is_dir(),
                adapter_type=loc.type,
                description=loc.description,
            )
        )
        logger.debug("Resolved content location %r -> %s", loc.name, base_path)

    return resolved


class ContentProvider:
    """Read access to a set of resolved content locations."""

    def __init__(self, locations: Sequence[ContentLocation], config_dir: str | Path):
        self.config_dir = Path(config_dir)
        self._locations = resolve_locations(locations, config_dir)

    @property
    def locations(self) -> list[ResolvedLocation]:
        return list(self._locations)

    def resource_locations(self) -> list[tuple[str, Path]]:
        """(location name, resource directory) for every location."""
        return [(loc.name, loc.resource_path) for loc in self._locations]

    def prompt_locations(self) -> list[tuple[str, Path]]:
        """(location name, prompt directory) for locations that have prompts."""
        return [(loc.name, loc.prompt_path) for loc in self._locations if loc.has_prompts]

    def get_location(self, name: str) -> ResolvedLocation | None:
        for loc in self._locations:
            if loc.name == name:
                return loc
        return None

    def load_markdown(self, path: str | Path) -> MarkdownWithFrontmatter:
        """Read and parse a content file. Discovery reads every file through here."""
        return load_markdown(path)
