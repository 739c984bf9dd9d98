"""Configuration management for ACDC MCP Server.

Handles environment-based configuration with layered loading:
1. Field defaults
2. .env file
3. Environment variables (``ACDC_MCP_`` prefix)
4. CLI overrides (highest priority, applied by the CLI)

The content model itself (server identity, tool overrides, content
locations) lives in ``mcp-metadata.yaml`` inside the content directory.
"""

import logging
import re
import sys
from pathlib import Path

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .models import McpMetadata

logger = logging.getLogger(__name__)

METADATA_FILE = "mcp-metadata.yaml"
TRANSPORTS = ("stdio", "sse", "http")

# RFC 3986: ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+\-.]*$")


class SearchSettings(BaseSettings):
    """Search engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ACDC_MCP_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_results: int = Field(default=10, ge=1, description="Default maximum number of search results")
    in_memory: bool = Field(default=True, description="Keep the index in memory instead of a temp directory")
    keywords_boost: float = Field(default=3.0, gt=0, description="Boost for keyword matches")
    name_boost: float = Field(default=2.0, gt=0, description="Boost for name matches")
    content_boost: float = Field(default=1.0, gt=0, description="Boost for content matches")
    batch_size: int = Field(default=100, ge=1, description="Documents per index batch")


class Settings(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="ACDC_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Content
    content_dir: Path = Field(default_factory=lambda: Path.cwd() / "content", description="Content directory")
    uri_scheme: str = Field(default="acdc", description="URI scheme for resources")

    # Transport
    transport: str = Field(default="stdio", description="Transport: stdio, sse or http")
    host: str = Field(default="0.0.0.0", description="HTTP server host")
    port: int = Field(default=8080, ge=1, le=65535, description="HTTP server port")

    # Search
    search: SearchSettings = Field(default_factory=SearchSettings)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")

    @field_validator("transport")
    @classmethod
    def validate_transport(cls, v: str) -> str:
        """Validate transport type."""
        if v.lower() not in TRANSPORTS:
            raise ValueError(f"transport must be one of {TRANSPORTS}, got: {v}")
        return v.lower()

    @field_validator("uri_scheme")
    @classmethod
    def validate_uri_scheme(cls, v: str) -> str:
        """Validate URI scheme per RFC 3986."""
        if not _SCHEME_RE.match(v):
            raise ValueError(
                "scheme must match RFC 3986 (start with a letter, contain only letters, digits, +, -, .), "
                f"got: {v}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @property
    def metadata_path(self) -> Path:
        return self.content_dir / METADATA_FILE


def load_metadata(content_dir: Path) -> McpMetadata:
    """Load and validate ``mcp-metadata.yaml`` from the content directory."""
    path = Path(content_dir) / METADATA_FILE
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"failed to read metadata file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse metadata file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"metadata file {path} must contain a mapping")

    try:
        metadata = McpMetadata.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid metadata in {path}: {e}") from e

    try:
        metadata.ensure_valid()
    except ConfigurationError as e:
        raise ConfigurationError(f"metadata validation failed: {e}") from e
    return metadata


def configure_logging(settings: Settings) -> None:
    """Route logging to stderr; stdout belongs to the stdio transport."""
    logging.basicConfig(
        level=settings.log_level,
        format=settings.log_format,
        stream=sys.stderr,
        force=True,
    )


def log_settings(settings: Settings) -> None:
    """Log the resolved settings, skipping ones irrelevant to the transport."""
    logger.info("Config: content_dir=%s", settings.content_dir)
    logger.info("Config: transport=%s", settings.transport)
    if settings.transport != "stdio":
        logger.info("Config: host=%s", settings.host)
        logger.info("Config: port=%s", settings.port)
    logger.info("Config: uri_scheme=%s", settings.uri_scheme)
    logger.info("Config: search.max_results=%s", settings.search.max_results)
    logger.info("Config: search.in_memory=%s", settings.search.in_memory)
    logger.info("Config: search.keywords_boost=%s", settings.search.keywords_boost)
    logger.info("Config: search.name_boost=%s", settings.search.name_boost)
    logger.info("Config: search.content_boost=%s", settings.search.content_boost)
