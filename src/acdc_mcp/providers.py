"""Resource and prompt providers.

In-memory lookup tables over discovered definitions. Resource bodies are
re-read from disk on every access so edits show up without a restart.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping

from mcp.types import PromptMessage, TextContent

from .errors import FrontmatterError, MissingRequiredArgument, UnknownPrompt, UnknownResource
from .frontmatter import load_markdown
from .models import PromptDefinition, ResourceDefinition, SearchDocument

logger = logging.getLogger(__name__)


class ResourceProvider:
    """Serves resources by URI."""

    def __init__(self, definitions: Iterable[ResourceDefinition]):
        self._definitions = list(definitions)
        self._by_uri = {d.uri: d for d in self._definitions}

    def list_resources(self) -> list[ResourceDefinition]:
        return list(self._definitions)

    def get(self, uri: str) -> ResourceDefinition | None:
        return self._by_uri.get(uri)

    def __len__(self) -> int:
        return len(self._definitions)

    def read_resource(self, uri: str) -> str:
        """Markdown body of the resource, frontmatter stripped.

        Raises:
            UnknownResource: no resource with this URI
            OSError, FrontmatterError: the file can no longer be read or parsed
        """
        definition = self._by_uri.get(uri)
        if definition is None:
            raise UnknownResource(uri)
        return load_markdown(definition.file_path).content

    def to_search_document(self, definition: ResourceDefinition) -> SearchDocument:
        return SearchDocument(
            uri=definition.uri,
            name=definition.name,
            content=self.read_resource(definition.uri),
            keywords=list(definition.keywords),
        )

    async def stream_resources(self, queue: asyncio.Queue) -> None:
        """Put one ``SearchDocument`` per resource on ``queue``.

        Files are read in a worker thread; ones that fail to read are logged
        and skipped. A full queue blocks until the consumer catches up or the
        task is cancelled.
        """
        for definition in self._definitions:
            try:
                document = await asyncio.to_thread(self.to_search_document, definition)
            except (OSError, UnicodeDecodeError, FrontmatterError) as e:
                logger.error("Error reading resource for indexing %s: %s", definition.uri, e)
                continue
            await queue.put(document)


class PromptProvider:
    """Serves prompts by name."""

    def __init__(self, definitions: Iterable[PromptDefinition]):
        self._definitions = list(definitions)
        self._by_name = {d.name: d for d in self._definitions}

    def list_prompts(self) -> list[PromptDefinition]:
        return list(self._definitions)

    def get(self, name: str) -> PromptDefinition | None:
        return self._by_name.get(name)

    def __len__(self) -> int:
        return len(self._definitions)

    def render(self, name: str, arguments: Mapping[str, str] | None = None) -> str:
        """Validate arguments and render the prompt template to text."""
        definition = self._by_name.get(name)
        if definition is None:
            raise UnknownPrompt(name)

        arguments = dict(arguments or {})
        for argument in definition.arguments:
            if argument.required and not arguments.get(argument.name):
                raise MissingRequiredArgument(argument.name)

        return definition.template.render(arguments)

    def get_prompt(self, name: str, arguments: Mapping[str, str] | None = None) -> list[PromptMessage]:
        """Render a prompt as a single user message.

        Raises:
            UnknownPrompt: no prompt with this name
            MissingRequiredArgument: a required argument is absent or empty
        """
        text = self.render(name, arguments)
        return [PromptMessage(role="user", content=TextContent(type="text", text=text))]
