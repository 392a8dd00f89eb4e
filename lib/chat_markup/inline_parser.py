"""
Inline Parser for Desa Chat Markup

This module finds inline markup inside one text segment (a paragraph line or
the content of a list item) and turns it into inline nodes.

Parsing runs in two passes, each a single left-to-right regex scan:

1. Links: markdown links ``[label](target)`` and bare ``http(s)://`` URLs.
   The earliest match wins, so a URL inside an already matched markdown
   link is never picked up a second time.
2. Emphasis: ``**bold**`` and ``*italic*`` over the text left between links.
   Bold is tried first at each offset. An italic delimiter touching another
   ``*`` or ``_`` (or whitespace on its inner side) is not a delimiter.
   Italic content never contains ``*``, so a failed opener stops at the
   next star.

Link labels go through the emphasis pass once; nothing else is re-parsed.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .ast_nodes import InlineSpan, LabelSpan, MDBold, MDItalic, MDLink, MDText


class MatchKind(Enum):
    """Kinds of inline markup recognised by the tokenizer."""

    MARKDOWN_LINK = "markdown_link"
    BARE_URL = "bare_url"
    BOLD = "bold"
    ITALIC = "italic"


@dataclass(frozen=True)
class InlineMatch:
    """A single markup match inside a segment, ``start``/``end`` are slice bounds."""

    kind: MatchKind
    start: int
    end: int
    text: str
    url: Optional[str] = None


class InlineTokenizer:
    """
    Finds link and emphasis markup in a text segment.

    Both scans are deterministic and never overlap their own matches.
    """

    def __init__(self):
        # Compile regex patterns for efficiency
        self._compile_patterns()

    def _compile_patterns(self) -> None:
        """Compile regex patterns used for inline tokenizing."""
        # Markdown link first, so it wins over a bare URL starting at the same offset
        self.link_pattern = re.compile(
            r"\[(?P<label>[^\[\]]+)\]\((?P<target>[^\s()]+)\)"
            r"|(?P<url>https?://\S+)"
        )

        self.emphasis_pattern = re.compile(
            r"\*\*(?P<bold>.+?)\*\*"
            r"|(?<![*_])\*(?![\s*_])(?P<italic>[^*]+?)(?<![\s*_])\*(?![*_])"
        )

    def find_links(self, segment: str) -> List[InlineMatch]:
        """Return markdown links and bare URLs in ``segment``, left to right."""
        matches = []
        for match in self.link_pattern.finditer(segment):
            if match.group("url") is not None:
                url = match.group("url")
                matches.append(InlineMatch(MatchKind.BARE_URL, match.start(), match.end(), url, url))
            else:
                matches.append(
                    InlineMatch(
                        MatchKind.MARKDOWN_LINK,
                        match.start(),
                        match.end(),
                        match.group("label"),
                        match.group("target"),
                    )
                )
        return matches

    def find_emphasis(self, segment: str) -> List[InlineMatch]:
        """Return bold and italic spans in ``segment``, left to right."""
        matches = []
        for match in self.emphasis_pattern.finditer(segment):
            if match.group("bold") is not None:
                matches.append(InlineMatch(MatchKind.BOLD, match.start(), match.end(), match.group("bold")))
            else:
                matches.append(InlineMatch(MatchKind.ITALIC, match.start(), match.end(), match.group("italic")))
        return matches


class InlineParser:
    """
    Renders tokenizer matches into inline nodes.

    The produced sequence covers the whole segment: every match becomes its
    node and every non-empty gap between matches becomes an ``MDText``.
    """

    def __init__(self, tokenizer: Optional[InlineTokenizer] = None):
        self.tokenizer = tokenizer or InlineTokenizer()

    def parse_inline_content(self, segment: str) -> Tuple[InlineSpan, ...]:
        """
        Parse one segment into inline nodes.

        Args:
            segment: Text of a single line or list item

        Returns:
            Tuple of inline nodes, empty for an empty segment
        """
        if not segment:
            return ()

        nodes: List[InlineSpan] = []
        pos = 0
        for match in self.tokenizer.find_links(segment):
            if match.start > pos:
                nodes.extend(self._parse_emphasis(segment[pos : match.start]))
            nodes.append(self._build_link(match))
            pos = match.end

        if pos < len(segment):
            nodes.extend(self._parse_emphasis(segment[pos:]))

        return tuple(nodes)

    def _build_link(self, match: InlineMatch) -> MDLink:
        """Create a link node from a pass-one match."""
        if match.kind == MatchKind.BARE_URL:
            return MDLink(url=match.text, children=(MDText(match.text),), external=True)

        url = match.url if match.url is not None else ""
        return MDLink(url=url, children=self._parse_emphasis(match.text), external=False)

    def _parse_emphasis(self, segment: str) -> Tuple[LabelSpan, ...]:
        """Run the emphasis pass over text that contains no links."""
        nodes: List[LabelSpan] = []
        pos = 0
        for match in self.tokenizer.find_emphasis(segment):
            if match.start > pos:
                nodes.append(MDText(segment[pos : match.start]))
            if match.kind == MatchKind.BOLD:
                nodes.append(MDBold((MDText(match.text),)))
            else:
                nodes.append(MDItalic((MDText(match.text),)))
            pos = match.end

        if pos < len(segment):
            nodes.append(MDText(segment[pos:]))

        return tuple(nodes)
