"""Built-in directory conventions."""

from ..locations import LEGACY_PROMPTS_DIR, LEGACY_RESOURCES_DIR, PROMPTS_DIR, RESOURCES_DIR
from .base import ConventionAdapter

ACDC_ADAPTER_NAME = "acdc-mcp"
LEGACY_ADAPTER_NAME = "legacy"


class AcdcAdapter(ConventionAdapter):
    """Native layout: ``resources/`` and ``prompts/``."""

    adapter_name = ACDC_ADAPTER_NAME
    resources_dir = RESOURCES_DIR
    prompts_dir = PROMPTS_DIR


class LegacyAdapter(ConventionAdapter):
    """Legacy layout: ``mcp-resources/`` and ``mcp-prompts/``."""

    adapter_name = LEGACY_ADAPTER_NAME
    resources_dir = LEGACY_RESOURCES_DIR
    prompts_dir = LEGACY_PROMPTS_DIR
