"""
Line Classifier for Desa Chat Markup

Splits a message into source lines and decides, line by line, whether a
line is a bullet list item or ordinary text.
"""

from dataclasses import dataclass
from typing import List

LIST_MARKER = "* "


@dataclass(frozen=True)
class SourceLine:
    """A single line of the source message."""

    raw: str
    content: str
    is_list_item: bool

    @property
    def is_blank(self) -> bool:
        return not self.content

    @property
    def item_content(self) -> str:
        """Content of a list item with the ``* `` marker removed."""
        if not self.is_list_item:
            return self.content
        return self.content[len(LIST_MARKER):]


def classify_line(raw: str) -> SourceLine:
    """
    Classify one raw line.

    A line is a list item only if its trimmed form starts with ``"* "``.
    A lone ``"*"`` is ordinary text, whitespace-only lines are blank text.
    """
    content = raw.strip()
    return SourceLine(raw=raw, content=content, is_list_item=content.startswith(LIST_MARKER))


def split_lines(message: str) -> List[SourceLine]:
    """Split a message on newline boundaries and classify every line."""
    return [classify_line(raw) for raw in message.split("\n")]
