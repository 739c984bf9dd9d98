"""Adapter interface.

An adapter maps one on-disk content layout to discovery behaviour. Adapters
stamp every definition with its location name and namespace prompt names as
``<location>:<prompt>`` so several locations can be served side by side.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..discovery import discover_prompts, discover_resources
from ..locations import ContentProvider
from ..models import PromptDefinition, ResourceDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    """A content location handed to an adapter."""

    name: str
    base_path: Path
    adapter_type: str = ""


class Adapter(ABC):
    """Discovers resources and prompts for one directory convention."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique adapter identifier."""

    @abstractmethod
    def can_handle(self, base_path: str | Path) -> bool:
        """Whether the directory at ``base_path`` uses this adapter's layout."""

    @abstractmethod
    def discover_resources(
        self, location: Location, content: ContentProvider, scheme: str = "acdc"
    ) -> list[ResourceDefinition]:
        ...

    @abstractmethod
    def discover_prompts(self, location: Location, content: ContentProvider) -> list[PromptDefinition]:
        ...


class ConventionAdapter(Adapter):
    """Adapter for a fixed pair of resource and prompt directory names."""

    adapter_name: str = ""
    resources_dir: str = ""
    prompts_dir: str = ""

    @property
    def name(self) -> str:
        return self.adapter_name

    def can_handle(self, base_path: str | Path) -> bool:
        return (Path(base_path) / self.resources_dir).is_dir()

    def discover_resources(
        self, location: Location, content: ContentProvider, scheme: str = "acdc"
    ) -> list[ResourceDefinition]:
        resource_dir = Path(location.base_path) / self.resources_dir
        if not resource_dir.is_dir():
            logger.debug("No %s directory in %s", self.resources_dir, location.base_path)
            return []
        return discover_resources(resource_dir, location.name, scheme, load=content.load_markdown)

    def discover_prompts(self, location: Location, content: ContentProvider) -> list[PromptDefinition]:
        prompt_dir = Path(location.base_path) / self.prompts_dir
        return [
            definition.with_namespace(location.name, location.name)
            for definition in discover_prompts(prompt_dir, location.name, load=content.load_markdown)
        ]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
