"""
AST Node Classes for Desa Chat Markup

This module defines the node classes that make up a RenderTree: the
data-only description of how a single chatbot message should be displayed.
Nodes are immutable, so a tree can be cached and shared between threads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Tuple, Union


class NodeType(Enum):
    """Enumeration of all RenderTree node types."""

    DOCUMENT = "document"
    PARAGRAPH = "paragraph"
    TEXT_LINE = "text_line"
    LIST = "list"
    LIST_ITEM = "list_item"
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    LINK = "link"


@dataclass(frozen=True)
class MDText:
    """Plain text run, copied verbatim from the source message."""

    content: str

    @property
    def node_type(self) -> NodeType:
        return NodeType.TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.node_type.value, "content": self.content}


@dataclass(frozen=True)
class MDBold:
    """Bold emphasis (``**text**``)."""

    children: Tuple[MDText, ...] = ()

    @property
    def node_type(self) -> NodeType:
        return NodeType.BOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class MDItalic:
    """Italic emphasis (``*text*``)."""

    children: Tuple[MDText, ...] = ()

    @property
    def node_type(self) -> NodeType:
        return NodeType.ITALIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "children": [child.to_dict() for child in self.children],
        }


LabelSpan = Union[MDText, MDBold, MDItalic]


@dataclass(frozen=True)
class MDLink:
    """
    Link node.

    ``children`` is the visible label. Markdown links get their label run
    through emphasis parsing once; bare URLs use the URL itself as label
    and are flagged ``external`` so the host opens them in a new context.
    """

    url: str
    children: Tuple[LabelSpan, ...] = ()
    external: bool = False

    @property
    def node_type(self) -> NodeType:
        return NodeType.LINK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "url": self.url,
            "external": self.external,
            "children": [child.to_dict() for child in self.children],
        }


InlineSpan = Union[MDText, MDBold, MDItalic, MDLink]


@dataclass(frozen=True)
class MDTextLine:
    """
    One entry of a paragraph: inline content plus an optional trailing break.

    An entry with no children and ``trailing_break`` set is a bare break
    marker (blank source line, or the separator emitted before a list).
    """

    children: Tuple[InlineSpan, ...] = ()
    trailing_break: bool = False

    @property
    def node_type(self) -> NodeType:
        return NodeType.TEXT_LINE

    def is_break_only(self) -> bool:
        return not self.children and self.trailing_break

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "trailing_break": self.trailing_break,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class MDParagraph:
    """Run of consecutive non-list lines."""

    lines: Tuple[MDTextLine, ...] = ()

    @property
    def node_type(self) -> NodeType:
        return NodeType.PARAGRAPH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "lines": [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class MDListItem:
    """Content of one bullet, marker stripped."""

    children: Tuple[InlineSpan, ...] = ()

    @property
    def node_type(self) -> NodeType:
        return NodeType.LIST_ITEM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class MDList:
    """Unordered list built from one contiguous run of ``* `` lines."""

    items: Tuple[MDListItem, ...] = ()

    @property
    def node_type(self) -> NodeType:
        return NodeType.LIST

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "items": [item.to_dict() for item in self.items],
        }


Block = Union[MDParagraph, MDList]


@dataclass(frozen=True)
class MDDocument:
    """Root of a RenderTree: the ordered block sequence of one message."""

    blocks: Tuple[Block, ...] = field(default_factory=tuple)

    @property
    def node_type(self) -> NodeType:
        return NodeType.DOCUMENT

    def is_empty(self) -> bool:
        return not self.blocks

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.node_type.value,
            "blocks": [block.to_dict() for block in self.blocks],
        }
