"""Markdown frontmatter parsing.

A content file starts with a ``---`` line, a YAML metadata block, and a
closing ``---`` line; everything after is the markdown body. The split is
driven by a small state machine so the delimiter edge cases stay explicit.
"""

import logging
from enum import Enum
from pathlib import Path

import yaml

from .errors import (
    FrontmatterError,
    InvalidMetadataSyntax,
    MalformedDelimiter,
    MissingFrontmatter,
    UnterminatedFrontmatter,
)
from .models import MarkdownWithFrontmatter

logger = logging.getLogger(__name__)

DELIMITER = "---"
_OPEN = DELIMITER + "\n"
_CLOSE = "\n" + DELIMITER


class _State(Enum):
    EXPECT_OPEN_DELIM = "expect_open_delim"
    IN_FRONTMATTER = "in_frontmatter"
    IN_BODY = "in_body"


def split_frontmatter(text: str) -> tuple[str, str]:
    """Split text into the raw metadata block and the body.

    Raises:
        MissingFrontmatter: text does not start with ``---\\n``
        UnterminatedFrontmatter: no closing ``---`` line
        MalformedDelimiter: closing ``---`` followed by other characters
    """
    text = text.replace("\r\n", "\n")
    state = _State.EXPECT_OPEN_DELIM
    pos = 0
    block = ""

    while state is not _State.IN_BODY:
        if state is _State.EXPECT_OPEN_DELIM:
            if not text.startswith(_OPEN):
                raise MissingFrontmatter("file must start with YAML frontmatter (---\\n)")
            pos = len(_OPEN)
            state = _State.IN_FRONTMATTER

        elif state is _State.IN_FRONTMATTER:
            # Empty frontmatter: the closing delimiter follows the opening one directly
            if text.startswith(DELIMITER, pos) and text[pos + len(DELIMITER):pos + len(DELIMITER) + 1] in ("\n", ""):
                block = ""
                pos += len(DELIMITER)
            else:
                end = text.find(_CLOSE, pos)
                if end == -1:
                    raise UnterminatedFrontmatter("invalid frontmatter format - missing closing ---")
                block = text[pos:end]
                pos = end + len(_CLOSE)
                if pos < len(text) and text[pos] != "\n":
                    raise MalformedDelimiter("closing --- must be on its own line")
            # Skip the newline that terminates the closing delimiter
            if pos < len(text):
                pos += 1
            state = _State.IN_BODY

    return block, text[pos:]


def parse_frontmatter(text: str) -> MarkdownWithFrontmatter:
    """Parse markdown text into metadata and body."""
    block, body = split_frontmatter(text)
    if not block.strip():
        return MarkdownWithFrontmatter(metadata={}, content=body)

    try:
        metadata = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise InvalidMetadataSyntax(f"invalid YAML in frontmatter: {e}") from e

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise InvalidMetadataSyntax(
            f"frontmatter must be a mapping, got {type(metadata).__name__}"
        )
    return MarkdownWithFrontmatter(metadata=metadata, content=body)


def load_markdown(path: str | Path) -> MarkdownWithFrontmatter:
    """Read a UTF-8 markdown file and parse its frontmatter.

    Parse errors are re-raised with the file path in the message; I/O errors
    propagate unchanged.
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        return parse_frontmatter(text)
    except FrontmatterError as e:
        raise type(e)(f"{e} in {path}") from e
