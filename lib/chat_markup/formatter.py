"""
Main Message Formatter for Desa Chat Markup

This module provides the MessageFormatter class that orchestrates line
classification, block assembly, inline parsing and rendering for chatbot
messages.
"""

import logging
from typing import Any, Dict, Optional

from .ast_nodes import Block, MDDocument, MDList, MDParagraph, MDText, MDTextLine
from .block_assembler import BlockAssembler
from .cache import RenderCache
from .inline_parser import InlineParser
from .line_classifier import split_lines
from .renderer import HTMLRenderer, PlainTextRenderer

logger = logging.getLogger(__name__)


class FormatterError(Exception):
    """Exception raised in strict mode when formatting fails unexpectedly."""

    def __init__(self, message: str, line: Optional[int] = None):
        """
        Initialize formatter error.

        Args:
            message: Error message
            line: Line number (1-based) being processed when the error occurred
        """
        self.message = message
        self.line = line

        location = f" at line {line}" if line is not None else ""
        super().__init__(f"{message}{location}")


class MessageFormatter:
    """
    Formats chatbot messages into RenderTrees.

    Processing model:
    1. Split the message into lines and classify each one
    2. Assemble lines into paragraph and list blocks
    3. Parse inline links and emphasis inside every line and list item
    4. Optionally render the tree for a host (HTML or plain text)

    Formatting never fails for a string input: malformed markup is kept as
    plain text.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None, cache: Optional[RenderCache] = None):
        """
        Initialize the message formatter.

        Args:
            options: Optional formatter configuration
            cache: Optional cache of RenderTrees keyed by source message
        """
        self.options = options or {}
        self.cache = cache

        # Formatter options
        self.strict_mode = self.options.get("strict_mode", False)
        self.max_message_length = self.options.get("max_message_length", 0)

        # Stateless, safe to share between calls
        self.inline_parser = InlineParser()

        self.html_renderer = HTMLRenderer(self.options.get("html_options", {}))
        self.text_renderer = PlainTextRenderer(self.options.get("text_options", {}))

        self.format_stats: Dict[str, Any] = self._empty_stats()

    def format(self, message: str) -> MDDocument:
        """
        Format a chatbot message into a RenderTree.

        Args:
            message: Raw message text

        Returns:
            MDDocument describing how to display the message

        Raises:
            ValueError: If message is not a string
            FormatterError: If formatting fails in strict mode
        """
        if not isinstance(message, str):
            raise ValueError("Input must be a string")

        stats = self._empty_stats()

        if self.cache is not None:
            cached = self.cache.get(message)
            if cached is not None:
                stats["cache_hit"] = True
                self._collect_stats(cached, stats)
                self.format_stats = stats
                return cached

        if self.max_message_length and len(message) > self.max_message_length:
            logger.warning(
                f"Message of {len(message)} chars exceeds max_message_length={self.max_message_length}, "
                "formatting as plain text"
            )
            document = self._create_verbatim_document(message)
        else:
            document = self._format_lines(message, stats)

        self._collect_stats(document, stats)
        self.format_stats = stats
        logger.debug(
            f"Formatted message: {stats['lines_processed']} lines, "
            f"{stats['blocks_emitted']} blocks, {stats['inline_spans']} inline spans"
        )

        if self.cache is not None:
            self.cache.set(message, document)

        return document

    def format_to_html(self, message: str) -> str:
        """Format a message and render it to an HTML fragment."""
        return self.html_renderer.render(self.format(message))

    def format_to_text(self, message: str) -> str:
        """Format a message and render it to plain text."""
        return self.text_renderer.render(self.format(message))

    def get_tree_json(self, message: str) -> Dict[str, Any]:
        """Format a message and return the tree as a JSON-serializable dict."""
        return self.format(message).to_dict()

    def get_stats(self) -> Dict[str, Any]:
        """
        Statistics of the last format call on this instance.

        The tree returned by ``format`` never depends on these. When one
        formatter is shared between threads the values may belong to any
        of the concurrent calls; use a formatter per thread if they matter.
        """
        return self.format_stats.copy()

    def _format_lines(self, message: str, stats: Dict[str, Any]) -> MDDocument:
        lines = split_lines(message)
        stats["lines_processed"] = len(lines)

        try:
            return MDDocument(BlockAssembler(lines, self.inline_parser).assemble())
        except Exception as e:
            error_msg = f"Formatting failed: {e}"
            if self.strict_mode:
                raise FormatterError(error_msg) from e
            logger.error(error_msg)
            logger.exception(e)
            return self._create_verbatim_document(message)

    def _create_verbatim_document(self, message: str) -> MDDocument:
        """Document showing the whole message as one plain text run."""
        if not message:
            return MDDocument()
        return MDDocument((MDParagraph((MDTextLine((MDText(message),)),)),))

    def _collect_stats(self, document: MDDocument, stats: Dict[str, Any]) -> None:
        stats["blocks_emitted"] = len(document.blocks)
        for block in document.blocks:
            stats["list_items"] += self._count_list_items(block)
            stats["inline_spans"] += self._count_inline_spans(block)

    def _count_list_items(self, block: Block) -> int:
        return len(block.items) if isinstance(block, MDList) else 0

    def _count_inline_spans(self, block: Block) -> int:
        if isinstance(block, MDList):
            return sum(len(item.children) for item in block.items)
        return sum(len(line.children) for line in block.lines)

    def _empty_stats(self) -> Dict[str, Any]:
        return {
            "lines_processed": 0,
            "blocks_emitted": 0,
            "list_items": 0,
            "inline_spans": 0,
            "cache_hit": False,
        }


# Convenience functions for quick formatting


def format_message(text: str, **options) -> MDDocument:
    """
    Format a chatbot message into a RenderTree.

    Args:
        text: Message text to format
        **options: Formatter options

    Returns:
        MDDocument representing the formatted message
    """
    formatter = MessageFormatter(options)
    return formatter.format(text)


def message_to_html(text: str, **options) -> str:
    """
    Convert a chatbot message to an HTML fragment.

    Args:
        text: Message text to convert
        **options: Formatter and renderer options

    Returns:
        HTML string
    """
    formatter = MessageFormatter(options)
    return formatter.format_to_html(text)


def message_to_text(text: str, **options) -> str:
    """Convert a chatbot message to plain text without markup."""
    formatter = MessageFormatter(options)
    return formatter.format_to_text(text)
