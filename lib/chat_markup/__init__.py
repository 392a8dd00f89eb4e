"""
Desa Chat Markup v1.0

Formatter for the messages shown in the village portal chatbot. Replies of
the conversational backend use a small markup subset which this package
turns into a data-only RenderTree; the host UI decides how to paint it.

Supported markup:
- Bulleted lists: lines starting with ``* ``
- Bold ``**text**`` and italic ``*text*``
- Markdown links ``[label](url)`` and bare ``http(s)://`` URLs
- Line breaks

Usage:
    from lib.chat_markup import MessageFormatter, message_to_html

    formatter = MessageFormatter()
    tree = formatter.format("Syarat surat:\\n* KTP\\n* KK")
    html = formatter.format_to_html("Info di https://desa.example")

    # Convenience function
    html = message_to_html("**Jam layanan**: 08.00 - 15.00")
"""

from .ast_nodes import (
    Block,
    InlineSpan,
    MDBold,
    MDDocument,
    MDItalic,
    MDLink,
    MDList,
    MDListItem,
    MDParagraph,
    MDText,
    MDTextLine,
    NodeType,
)
from .block_assembler import BlockAssembler
from .cache import NullRenderCache, RenderCache, createRenderCache
from .formatter import FormatterError, MessageFormatter, format_message, message_to_html, message_to_text
from .inline_parser import InlineMatch, InlineParser, InlineTokenizer, MatchKind
from .line_classifier import LIST_MARKER, SourceLine, classify_line, split_lines
from .renderer import HTMLRenderer, PlainTextRenderer, extract_text, is_safe_link_target, iter_text_nodes

__version__ = "1.0.0"
__all__ = [
    "MessageFormatter",
    "FormatterError",
    "format_message",
    "message_to_html",
    "message_to_text",
    "BlockAssembler",
    "InlineParser",
    "InlineTokenizer",
    "InlineMatch",
    "MatchKind",
    "SourceLine",
    "LIST_MARKER",
    "classify_line",
    "split_lines",
    "HTMLRenderer",
    "PlainTextRenderer",
    "extract_text",
    "iter_text_nodes",
    "is_safe_link_target",
    "RenderCache",
    "NullRenderCache",
    "createRenderCache",
    # AST Nodes
    "NodeType",
    "Block",
    "InlineSpan",
    "MDDocument",
    "MDParagraph",
    "MDTextLine",
    "MDList",
    "MDListItem",
    "MDText",
    "MDBold",
    "MDItalic",
    "MDLink",
]
