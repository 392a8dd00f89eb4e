"""
Block Assembler for Desa Chat Markup

Walks the classified lines of a message in order, groups consecutive list
lines into list blocks and collects everything else into paragraphs, adding
line breaks between pieces.
"""

from typing import List, Optional, Sequence, Tuple

from .ast_nodes import Block, MDList, MDListItem, MDParagraph, MDTextLine
from .inline_parser import InlineParser
from .line_classifier import SourceLine


class BlockAssembler:
    """
    Builds the block sequence of a RenderTree from classified lines.

    Break rules:
    - A list that follows earlier output is preceded by one break.
    - A text line gets a trailing break unless it is the last line or the
      next line opens a list (the list adds its own break).
    - A blank line becomes a break only if a non-blank text line follows
      somewhere later, so the message never ends with dangling breaks.
    """

    def __init__(self, lines: Sequence[SourceLine], inline_parser: Optional[InlineParser] = None):
        self.lines = lines
        self.inline_parser = inline_parser or InlineParser()

        self._blocks: List[Block] = []
        self._paragraph_lines: List[MDTextLine] = []
        self._list_items: Optional[List[MDListItem]] = None

    def assemble(self) -> Tuple[Block, ...]:
        """
        Assemble the lines into blocks.

        Returns:
            Tuple of paragraph and list blocks in source order
        """
        lines = self.lines
        self._reset()
        text_follows = self._text_follows(lines)
        last_index = len(lines) - 1

        for index, line in enumerate(lines):
            if line.is_list_item:
                items = self._list_items if self._list_items is not None else self._open_list()
                items.append(MDListItem(self.inline_parser.parse_inline_content(line.item_content)))
                continue

            self._close_list()

            if not line.is_blank:
                is_last = index == last_index
                next_is_list = not is_last and lines[index + 1].is_list_item
                self._paragraph_lines.append(
                    MDTextLine(
                        self.inline_parser.parse_inline_content(line.content),
                        trailing_break=not (is_last or next_is_list),
                    )
                )
            elif text_follows[index]:
                self._emit_break()

        self._close_list()
        self._flush_paragraph()

        return tuple(self._blocks)

    def _reset(self) -> None:
        self._blocks = []
        self._paragraph_lines = []
        self._list_items = None

    def _text_follows(self, lines: Sequence[SourceLine]) -> List[bool]:
        """For every index, whether a non-blank text line appears after it."""
        follows = [False] * len(lines)
        seen = False
        for index in range(len(lines) - 1, -1, -1):
            follows[index] = seen
            line = lines[index]
            if not line.is_list_item and not line.is_blank:
                seen = True
        return follows

    def _has_output(self) -> bool:
        return bool(self._blocks or self._paragraph_lines)

    def _emit_break(self) -> None:
        self._paragraph_lines.append(MDTextLine((), trailing_break=True))

    def _open_list(self) -> List[MDListItem]:
        if self._has_output():
            self._emit_break()
        self._flush_paragraph()
        self._list_items = []
        return self._list_items

    def _close_list(self) -> None:
        if self._list_items is not None:
            self._blocks.append(MDList(tuple(self._list_items)))
            self._list_items = None

    def _flush_paragraph(self) -> None:
        if self._paragraph_lines:
            self._blocks.append(MDParagraph(tuple(self._paragraph_lines)))
            self._paragraph_lines = []
