"""Exception taxonomy for the ACDC MCP Server.

Structural problems (``ConfigurationError`` and its subclasses) abort server
startup. Per-file problems (``FrontmatterError``, ``TemplateError``) are
logged and the file skipped during discovery. The remaining errors are
request-scoped and surface to the MCP client as call failures.
"""


class AcdcError(Exception):
    """Base class for all ACDC errors."""


# Configuration / structural errors

class ConfigurationError(AcdcError):
    """Invalid configuration or content layout."""


class NoLocations(ConfigurationError):
    """The content location list is empty."""

    def __init__(self) -> None:
        super().__init__("at least one content location is required")


class PathNotFound(ConfigurationError):
    """A content location path does not exist."""

    def __init__(self, location: str, path: str) -> None:
        super().__init__(f"content location {location!r}: path does not exist: {path}")
        self.location = location
        self.path = path


class NotADirectory(ConfigurationError):
    """A content location path exists but is not a directory."""

    def __init__(self, location: str, path: str) -> None:
        super().__init__(f"content location {location!r}: path is not a directory: {path}")
        self.location = location
        self.path = path


class MissingResourceDir(ConfigurationError):
    """Neither the current nor the legacy resource directory exists."""

    def __init__(self, location: str, path: str) -> None:
        super().__init__(
            f"content location {location!r}: missing resources/ or mcp-resources/ directory in {path}"
        )
        self.location = location
        self.path = path


class NoAdapterFound(ConfigurationError):
    """No registered adapter recognizes a directory layout."""

    def __init__(self, path: str) -> None:
        super().__init__(f"no adapter found that can handle path: {path}")
        self.path = path


class DiscoveryError(AcdcError):
    """Walking a content directory failed."""


# Per-file parse errors

class FrontmatterError(AcdcError):
    """A markdown file could not be split into metadata and body."""


class MissingFrontmatter(FrontmatterError):
    """Text does not start with the ``---`` delimiter line."""


class UnterminatedFrontmatter(FrontmatterError):
    """The closing ``---`` delimiter was never found."""


class MalformedDelimiter(FrontmatterError):
    """The closing ``---`` is followed by something other than a newline."""


class InvalidMetadataSyntax(FrontmatterError):
    """The metadata block is not a valid YAML mapping."""


class TemplateError(AcdcError):
    """Base class for prompt template errors."""


class TemplateSyntaxError(TemplateError):
    """A prompt template failed to compile."""


# Request-scoped errors

class UnknownResource(AcdcError):
    """No resource is registered under the requested URI."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"unknown resource: {uri}")
        self.uri = uri


class UnknownPrompt(AcdcError):
    """No prompt is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unknown prompt: {name}")
        self.name = name


class MissingRequiredArgument(AcdcError):
    """A required prompt argument is absent or empty."""

    def __init__(self, argument: str) -> None:
        super().__init__(f"missing required argument: {argument}")
        self.argument = argument


class ToolArgumentError(AcdcError):
    """A tool call is missing a required argument."""

    def __init__(self, argument: str) -> None:
        super().__init__(f"missing {argument!r} argument")
        self.argument = argument


class SearchError(AcdcError):
    """The search engine could not evaluate a query."""
