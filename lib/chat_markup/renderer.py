"""
Renderers for Desa Chat Markup

This module paints a RenderTree for a host. ``HTMLRenderer`` produces the
markup shown inside the chatbot bubble of the portal, ``PlainTextRenderer``
produces a markup-free version for notifications and log previews.
"""

import html
import re
from typing import Any, Dict, Iterator, List, Optional

from .ast_nodes import (
    Block,
    InlineSpan,
    MDBold,
    MDDocument,
    MDItalic,
    MDLink,
    MDList,
    MDParagraph,
    MDText,
    MDTextLine,
)

# Browsers drop control characters and whitespace before resolving a scheme
_URL_IGNORED_CHARS = re.compile(r"[\x00-\x20\x7f]")
_URL_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")

DEFAULT_ALLOWED_SCHEMES = ("http", "https", "mailto")


def is_safe_link_target(url: str, allowed_schemes=DEFAULT_ALLOWED_SCHEMES) -> bool:
    """Return True for relative targets and targets with an allowed scheme."""
    match = _URL_SCHEME.match(_URL_IGNORED_CHARS.sub("", url))
    if match is None:
        return True
    return match.group(1).lower() in allowed_schemes


class HTMLRenderer:
    """
    Renderer that converts a RenderTree to an HTML fragment.

    Only bare URLs (external links) open in a new browsing context.
    Links whose target has a scheme outside ``allowed_schemes`` (for example
    ``javascript:``) are painted as their label without an anchor.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        """
        Initialize the HTML renderer.

        Args:
            options: Optional rendering configuration
        """
        self.options = options or {}

        # Default rendering options
        self.escape_html = self.options.get("escape_html", True)
        self.line_break = self.options.get("line_break", "<br>")
        self.link_class = self.options.get("link_class", None)
        self.allowed_schemes = tuple(s.lower() for s in self.options.get("allowed_schemes", DEFAULT_ALLOWED_SCHEMES))

    def render(self, document: MDDocument) -> str:
        """
        Render a RenderTree to HTML.

        Args:
            document: The root document node to render

        Returns:
            HTML string representation of the message
        """
        if not isinstance(document, MDDocument):
            raise ValueError("Expected MDDocument as root node")

        return "".join(self._render_block(block) for block in document.blocks)

    def _render_block(self, block: Block) -> str:
        if isinstance(block, MDParagraph):
            return "".join(self._render_text_line(line) for line in block.lines)
        elif isinstance(block, MDList):
            items = "".join(f"<li>{self._render_inline(item.children)}</li>" for item in block.items)
            return f"<ul>{items}</ul>"
        else:
            return f"<!-- Unknown block type: {type(block).__name__} -->"

    def _render_text_line(self, line: MDTextLine) -> str:
        content = self._render_inline(line.children)
        if line.trailing_break:
            content += self.line_break
        return content

    def _render_inline(self, nodes) -> str:
        return "".join(self._render_span(node) for node in nodes)

    def _render_span(self, node: InlineSpan) -> str:
        if isinstance(node, MDText):
            return self._escape_html(node.content)
        elif isinstance(node, MDBold):
            return f"<strong>{self._render_inline(node.children)}</strong>"
        elif isinstance(node, MDItalic):
            return f"<em>{self._render_inline(node.children)}</em>"
        elif isinstance(node, MDLink):
            return self._render_link(node)
        else:
            return f"<!-- Unknown node type: {type(node).__name__} -->"

    def _render_link(self, node: MDLink) -> str:
        if not is_safe_link_target(node.url, self.allowed_schemes):
            return self._render_inline(node.children)

        attrs = [f'href="{html.escape(node.url, quote=True)}"']
        if self.link_class:
            attrs.append(f'class="{html.escape(self.link_class, quote=True)}"')
        if node.external:
            attrs.append('target="_blank"')
            attrs.append('rel="noopener noreferrer"')
        return f"<a {' '.join(attrs)}>{self._render_inline(node.children)}</a>"

    def _escape_html(self, text: str) -> str:
        if not self.escape_html:
            return text
        return html.escape(text, quote=False)


class PlainTextRenderer:
    """Renderer that strips all markup and keeps the readable text."""

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.options = options or {}

        self.bullet = self.options.get("bullet", "• ")
        self.show_link_targets = self.options.get("show_link_targets", False)

    def render(self, document: MDDocument) -> str:
        if not isinstance(document, MDDocument):
            raise ValueError("Expected MDDocument as root node")

        parts: List[str] = []
        last_index = len(document.blocks) - 1
        for index, block in enumerate(document.blocks):
            if isinstance(block, MDParagraph):
                for line in block.lines:
                    parts.append(self._render_inline(line.children))
                    if line.trailing_break:
                        parts.append("\n")
            elif isinstance(block, MDList):
                items = [self.bullet + self._render_inline(item.children) for item in block.items]
                parts.append("\n".join(items))
                # A list is a block of its own, the text after it starts on a new line
                if index < last_index:
                    parts.append("\n")

        return "".join(parts)

    def _render_inline(self, nodes) -> str:
        parts = []
        for node in nodes:
            if isinstance(node, MDText):
                parts.append(node.content)
            elif isinstance(node, (MDBold, MDItalic)):
                parts.append(self._render_inline(node.children))
            elif isinstance(node, MDLink):
                label = self._render_inline(node.children)
                if self.show_link_targets and not node.external and label != node.url:
                    label = f"{label} ({node.url})"
                parts.append(label)
        return "".join(parts)


def iter_text_nodes(document: MDDocument) -> Iterator[MDText]:
    """Yield every ``MDText`` leaf of a RenderTree in source order."""

    def walk(nodes) -> Iterator[MDText]:
        for node in nodes:
            if isinstance(node, MDText):
                yield node
            else:
                yield from walk(node.children)

    for block in document.blocks:
        if isinstance(block, MDParagraph):
            for line in block.lines:
                yield from walk(line.children)
        elif isinstance(block, MDList):
            for item in block.items:
                yield from walk(item.children)


def extract_text(document: MDDocument) -> str:
    """Concatenate all text leaves, ignoring breaks and markup."""
    return "".join(node.content for node in iter_text_nodes(document))
