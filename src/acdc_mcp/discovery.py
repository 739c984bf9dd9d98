"""Resource and prompt discovery.

Walks a resource or prompt directory, parses each markdown file, and builds
validated definitions. Malformed files are logged and skipped so a single
bad document never prevents the rest of the corpus from being served.
"""

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from .errors import DiscoveryError, FrontmatterError, TemplateSyntaxError
from .frontmatter import load_markdown
from .models import MARKDOWN_MIME_TYPE, MarkdownWithFrontmatter, PromptArgument, PromptDefinition, ResourceDefinition
from .templating import compile_template

logger = logging.getLogger(__name__)

MarkdownLoader = Callable[[Path], MarkdownWithFrontmatter]

DEFAULT_SCHEME = "acdc"
MARKDOWN_SUFFIX = ".md"


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Yield ``.md`` files under ``root`` recursively, in sorted order.

    An unreadable root raises ``DiscoveryError``; unreadable sub-directories
    are logged and skipped.
    """
    yield from _iter_markdown(Path(root), is_root=True)


def _iter_markdown(directory: Path, is_root: bool) -> Iterator[Path]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        if is_root:
            raise DiscoveryError(f"failed to walk {directory}: {e}") from e
        logger.warning("Skipping unreadable directory %s: %s", directory, e)
        return

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _iter_markdown(Path(entry.path), is_root=False)
        elif entry.name.endswith(MARKDOWN_SUFFIX) and entry.is_file():
            yield Path(entry.path)


def _load(path: Path, kind: str, load: MarkdownLoader) -> MarkdownWithFrontmatter | None:
    try:
        return load(path)
    except (FrontmatterError, OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping invalid %s file %s: %s", kind, path.name, e)
        return None


def _required_fields(metadata: dict[str, Any]) -> tuple[str, str] | None:
    name = metadata.get("name")
    description = metadata.get("description")
    if not isinstance(name, str) or not isinstance(description, str) or not name or not description:
        return None
    return name, description


def extract_keywords(metadata: dict[str, Any]) -> list[str]:
    """String entries of the ``keywords`` list; anything else is dropped."""
    keywords = metadata.get("keywords")
    if not isinstance(keywords, list):
        return []
    return [k for k in keywords if isinstance(k, str)]


def extract_arguments(metadata: dict[str, Any]) -> list[PromptArgument]:
    """Prompt arguments from the ``arguments`` list.

    Entries must be mappings with a string ``name``. ``required`` defaults
    to ``True`` unless an explicit boolean is given.
    """
    raw = metadata.get("arguments")
    if not isinstance(raw, list):
        return []

    arguments = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            continue
        description = entry.get("description")
        required = entry.get("required")
        arguments.append(
            PromptArgument(
                name=name,
                description=description if isinstance(description, str) else "",
                required=required if isinstance(required, bool) else True,
            )
        )
    return arguments


def make_uri(scheme: str, location_name: str, resource_dir: Path, path: Path) -> str:
    """``<scheme>://<location>/<relative/path/without/extension>``"""
    relative = path.relative_to(resource_dir).with_suffix("")
    return f"{scheme}://{location_name}/{relative.as_posix()}"


def discover_resources(
    resource_dir: str | Path,
    location_name: str,
    scheme: str = DEFAULT_SCHEME,
    load: MarkdownLoader = load_markdown,
) -> list[ResourceDefinition]:
    """Discover resource definitions under ``resource_dir``.

    Files are read through ``load``, which adapters point at their
    ``ContentProvider``.
    """
    resource_dir = Path(resource_dir)
    definitions: list[ResourceDefinition] = []

    for path in iter_markdown_files(resource_dir):
        md = _load(path, "resource", load)
        if md is None:
            continue

        fields = _required_fields(md.metadata)
        if fields is None:
            logger.warning("Skipping resource with missing metadata: %s", path.name)
            continue
        name, description = fields

        uri = make_uri(scheme, location_name, resource_dir, path)
        definitions.append(
            ResourceDefinition(
                uri=uri,
                name=name,
                description=description,
                mime_type=MARKDOWN_MIME_TYPE,
                file_path=str(path.absolute()),
                keywords=extract_keywords(md.metadata),
                source=location_name,
            )
        )
        logger.info("Loaded resource %s (%s)", uri, name)

    return definitions


def discover_prompts(
    prompt_dir: str | Path, location_name: str = "", load: MarkdownLoader = load_markdown
) -> list[PromptDefinition]:
    """Discover prompt definitions under ``prompt_dir``.

    A missing directory yields no prompts. Names are not namespaced here.
    """
    prompt_dir = Path(prompt_dir)
    if not prompt_dir.exists():
        logger.debug("Prompts directory does not exist: %s", prompt_dir)
        return []

    definitions: list[PromptDefinition] = []
    for path in iter_markdown_files(prompt_dir):
        md = _load(path, "prompt", load)
        if md is None:
            continue

        fields = _required_fields(md.metadata)
        if fields is None:
            logger.warning("Skipping prompt with missing metadata: %s", path.name)
            continue
        name, description = fields

        try:
            template = compile_template(md.content, name=name)
        except TemplateSyntaxError as e:
            logger.warning("Skipping prompt with invalid template %s: %s", path.name, e)
            continue

        definitions.append(
            PromptDefinition(
                name=name,
                description=description,
                arguments=extract_arguments(md.metadata),
                file_path=str(path.absolute()),
                template=template,
                source=location_name,
            )
        )
        logger.info("Loaded prompt %s", name)

    return definitions
