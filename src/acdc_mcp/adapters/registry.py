"""Adapter registry and multi-location discovery."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import ConfigurationError, NoAdapterFound
from ..locations import ContentProvider
from ..models import PromptDefinition, ResourceDefinition
from .base import Adapter, Location
from .conventions import AcdcAdapter, LegacyAdapter

logger = logging.getLogger(__name__)


class _ReadWriteLock:
    """Many concurrent readers or one writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class AdapterRegistry:
    """Adapters keyed by name, probed in registration order."""

    def __init__(self) -> None:
        self._lock = _ReadWriteLock()
        self._adapters: dict[str, Adapter] = {}
        self._priority: list[str] = []

    def register(self, adapter: Adapter) -> None:
        """Add an adapter; re-registering a name replaces it in place."""
        with self._lock.write():
            name = adapter.name
            self._adapters[name] = adapter
            if name not in self._priority:
                self._priority.append(name)

    def get(self, name: str) -> Adapter | None:
        with self._lock.read():
            return self._adapters.get(name)

    def auto_detect(self, base_path: str | Path) -> Adapter:
        """First adapter, in registration order, that can handle ``base_path``."""
        with self._lock.read():
            for name in self._priority:
                adapter = self._adapters[name]
                if adapter.can_handle(base_path):
                    return adapter
        raise NoAdapterFound(str(base_path))

    def names(self) -> list[str]:
        with self._lock.read():
            return list(self._priority)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._adapters)


def default_registry() -> AdapterRegistry:
    """Registry with the native adapter first and the legacy one second."""
    registry = AdapterRegistry()
    registry.register(AcdcAdapter())
    registry.register(LegacyAdapter())
    return registry


@dataclass
class DiscoveryResult:
    resources: list[ResourceDefinition] = field(default_factory=list)
    prompts: list[PromptDefinition] = field(default_factory=list)


def select_adapter(registry: AdapterRegistry, location: Location) -> Adapter:
    """Explicitly configured adapter, or auto-detection."""
    if location.adapter_type:
        adapter = registry.get(location.adapter_type)
        if adapter is None:
            raise ConfigurationError(
                f"content location {location.name!r}: unknown adapter type {location.adapter_type!r}"
            )
        return adapter
    return registry.auto_detect(location.base_path)


def discover_all(
    content: ContentProvider, registry: AdapterRegistry | None = None, scheme: str = "acdc"
) -> DiscoveryResult:
    """Discover resources and prompts from every location, in order."""
    if registry is None:
        registry = default_registry()
    result = DiscoveryResult()

    for resolved in content.locations:
        location = Location(name=resolved.name, base_path=resolved.base_path, adapter_type=resolved.adapter_type)
        adapter = select_adapter(registry, location)
        logger.info("Discovering content location %r with adapter %s", location.name, adapter.name)

        resources = adapter.discover_resources(location, content, scheme)
        prompts = adapter.discover_prompts(location, content)
        logger.info(
            "Location %r: %d resources, %d prompts", location.name, len(resources), len(prompts)
        )
        result.resources.extend(resources)
        result.prompts.extend(prompts)

    return result
