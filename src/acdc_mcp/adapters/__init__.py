"""Pluggable content-layout adapters."""

from .base import Adapter, ConventionAdapter, Location
from .conventions import ACDC_ADAPTER_NAME, LEGACY_ADAPTER_NAME, AcdcAdapter, LegacyAdapter
from .registry import AdapterRegistry, DiscoveryResult, default_registry, discover_all, select_adapter

__all__ = [
    "ACDC_ADAPTER_NAME",
    "LEGACY_ADAPTER_NAME",
    "AcdcAdapter",
    "Adapter",
    "AdapterRegistry",
    "ConventionAdapter",
    "DiscoveryResult",
    "LegacyAdapter",
    "Location",
    "default_registry",
    "discover_all",
    "select_adapter",
]
