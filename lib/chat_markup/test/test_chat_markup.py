"""
Test Suite for Desa Chat Markup

Covers line classification, inline tokenizing and rendering, block assembly
and the MessageFormatter entry point.
"""

import os
import sys
import time
import unittest
from unittest.mock import patch

# Add the project root to the path so we can import the chat_markup module
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", ".."))

from lib.chat_markup import (  # noqa: E402
    FormatterError,
    InlineParser,
    InlineTokenizer,
    MatchKind,
    MessageFormatter,
    RenderCache,
    classify_line,
    extract_text,
    format_message,
    split_lines,
)
from lib.chat_markup.ast_nodes import (  # noqa: E402
    MDBold,
    MDDocument,
    MDItalic,
    MDLink,
    MDList,
    MDListItem,
    MDParagraph,
    MDText,
    MDTextLine,
)
from lib.chat_markup.block_assembler import BlockAssembler  # noqa: E402

BREAK = MDTextLine((), trailing_break=True)


def text_line(content: str, trailing_break: bool = False) -> MDTextLine:
    return MDTextLine((MDText(content),), trailing_break=trailing_break)


class TestLineClassifier(unittest.TestCase):
    """Test the line classifier."""

    def test_list_item(self):
        line = classify_line("* KTP asli")
        self.assertTrue(line.is_list_item)
        self.assertEqual(line.content, "* KTP asli")
        self.assertEqual(line.item_content, "KTP asli")

    def test_indented_list_item(self):
        line = classify_line("   * Kartu Keluarga  ")
        self.assertTrue(line.is_list_item)
        self.assertEqual(line.raw, "   * Kartu Keluarga  ")
        self.assertEqual(line.item_content, "Kartu Keluarga")

    def test_not_list_items(self):
        for raw in ["*", "* ", "*   ", "*bold*", "**Syarat**", "- item", "text * text", ""]:
            with self.subTest(raw=raw):
                self.assertFalse(classify_line(raw).is_list_item)

    def test_blank_lines(self):
        for raw in ["", "   ", "\t", "\r"]:
            with self.subTest(raw=raw):
                line = classify_line(raw)
                self.assertTrue(line.is_blank)
                self.assertFalse(line.is_list_item)

    def test_split_lines_keeps_order(self):
        lines = split_lines("a\n* b\n\nc")
        self.assertEqual([line.content for line in lines], ["a", "* b", "", "c"])
        self.assertEqual([line.is_list_item for line in lines], [False, True, False, False])

    def test_split_lines_crlf(self):
        lines = split_lines("a\r\nb")
        self.assertEqual([line.content for line in lines], ["a", "b"])


class TestInlineTokenizer(unittest.TestCase):
    """Test the two tokenizer passes."""

    def setUp(self):
        self.tokenizer = InlineTokenizer()

    def test_markdown_link_and_bare_url(self):
        matches = self.tokenizer.find_links("[click](http://a.com) see http://b.com")
        self.assertEqual([m.kind for m in matches], [MatchKind.MARKDOWN_LINK, MatchKind.BARE_URL])
        self.assertEqual(matches[0].text, "click")
        self.assertEqual(matches[0].url, "http://a.com")
        self.assertEqual((matches[0].start, matches[0].end), (0, 21))
        self.assertEqual(matches[1].url, "http://b.com")

    def test_url_inside_markdown_link_not_matched_twice(self):
        matches = self.tokenizer.find_links("[https://a.com](https://a.com)")
        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].kind, MatchKind.MARKDOWN_LINK)

    def test_bold_wins_over_italic(self):
        matches = self.tokenizer.find_emphasis("**bold** and *italic*")
        self.assertEqual([m.kind for m in matches], [MatchKind.BOLD, MatchKind.ITALIC])
        self.assertEqual([m.text for m in matches], ["bold", "italic"])

    def test_no_matches(self):
        self.assertEqual(self.tokenizer.find_links("tidak ada tautan"), [])
        self.assertEqual(self.tokenizer.find_emphasis("5 * 3 = 15"), [])

    def test_deterministic(self):
        segment = "**a** *b* [c](d) http://e.f"
        self.assertEqual(self.tokenizer.find_links(segment), self.tokenizer.find_links(segment))
        self.assertEqual(self.tokenizer.find_emphasis(segment), self.tokenizer.find_emphasis(segment))


class TestInlineParser(unittest.TestCase):
    """Test rendering of inline matches into nodes."""

    def setUp(self):
        self.parser = InlineParser()

    def test_empty_segment(self):
        self.assertEqual(self.parser.parse_inline_content(""), ())

    def test_plain_text(self):
        self.assertEqual(self.parser.parse_inline_content("Halo warga"), (MDText("Halo warga"),))

    def test_link_precedence(self):
        nodes = self.parser.parse_inline_content("[click](http://a.com) see http://b.com")
        self.assertEqual(
            nodes,
            (
                MDLink("http://a.com", (MDText("click"),), external=False),
                MDText(" see "),
                MDLink("http://b.com", (MDText("http://b.com"),), external=True),
            ),
        )

    def test_emphasis_precedence(self):
        nodes = self.parser.parse_inline_content("**bold** and *italic*")
        self.assertEqual(
            nodes,
            (MDBold((MDText("bold"),)), MDText(" and "), MDItalic((MDText("italic"),))),
        )

    def test_link_label_is_formatted_once(self):
        nodes = self.parser.parse_inline_content("[**Daftar** *sekarang*](https://desa.id/daftar)")
        self.assertEqual(
            nodes,
            (
                MDLink(
                    "https://desa.id/daftar",
                    (MDBold((MDText("Daftar"),)), MDText(" "), MDItalic((MDText("sekarang"),))),
                ),
            ),
        )

    def test_bold_content_is_not_reparsed(self):
        nodes = self.parser.parse_inline_content("**a *b* c**")
        self.assertEqual(nodes, (MDBold((MDText("a *b* c"),)),))

    def test_emphasis_does_not_cross_links(self):
        nodes = self.parser.parse_inline_content("**[a](b)**")
        self.assertEqual(nodes, (MDText("**"), MDLink("b", (MDText("a"),)), MDText("**")))

    def test_bare_url_keeps_trailing_characters(self):
        nodes = self.parser.parse_inline_content("Kunjungi https://desa.id.")
        self.assertEqual(
            nodes,
            (MDText("Kunjungi "), MDLink("https://desa.id.", (MDText("https://desa.id."),), external=True)),
        )

    def test_link_target_copied_verbatim(self):
        nodes = self.parser.parse_inline_content("[Form](HTTPS://Desa.ID/a?b=1&c=%20)")
        self.assertEqual(nodes[0].url, "HTTPS://Desa.ID/a?b=1&c=%20")

    def test_bare_star_rejection(self):
        for segment in ["5 * 3 = 15", "2 * 3 * 4", "*", "a * b"]:
            with self.subTest(segment=segment):
                self.assertEqual(self.parser.parse_inline_content(segment), (MDText(segment),))

    def test_italic_guard(self):
        test_cases = [
            ("snake_case_name", (MDText("snake_case_name"),)),
            ("*_x_*", (MDText("*_x_*"),)),
            ("_*x*_", (MDText("_*x*_"),)),
            ("a*b*c", (MDText("a"), MDItalic((MDText("b"),)), MDText("c"))),
            ("*a b*", (MDItalic((MDText("a b"),)),)),
        ]
        for segment, expected in test_cases:
            with self.subTest(segment=segment):
                self.assertEqual(self.parser.parse_inline_content(segment), expected)

    def test_triple_stars(self):
        # Bold is tried first and takes the leading star into its content
        nodes = self.parser.parse_inline_content("***text***")
        self.assertEqual(nodes, (MDBold((MDText("*text"),)), MDText("*")))

    def test_malformed_markup_is_plain_text(self):
        for segment in ["**", "****", "**unterminated", "text**", "*open", "[a](b", "[a]", "[](b)", "](x)"]:
            with self.subTest(segment=segment):
                self.assertEqual(self.parser.parse_inline_content(segment), (MDText(segment),))


class TestBlockAssembler(unittest.TestCase):
    """Test grouping of lines into blocks and break placement."""

    def assemble(self, message: str):
        return BlockAssembler(split_lines(message)).assemble()

    def test_list_grouping(self):
        blocks = self.assemble("a\n* x\n* y\nb")
        self.assertEqual(
            blocks,
            (
                MDParagraph((text_line("a"), BREAK)),
                MDList((MDListItem((MDText("x"),)), MDListItem((MDText("y"),)))),
                MDParagraph((text_line("b"),)),
            ),
        )

    def test_list_at_start_has_no_leading_break(self):
        blocks = self.assemble("* a\n* b")
        self.assertEqual(blocks, (MDList((MDListItem((MDText("a"),)), MDListItem((MDText("b"),)))),))

    def test_trailing_break_between_text_lines(self):
        blocks = self.assemble("hello\nworld")
        self.assertEqual(blocks, (MDParagraph((text_line("hello", True), text_line("world"))),))

    def test_blank_line_between_text(self):
        blocks = self.assemble("a\n\nb")
        self.assertEqual(blocks, (MDParagraph((text_line("a", True), BREAK, text_line("b"))),))

    def test_leading_blank_lines(self):
        blocks = self.assemble("\n\nhello")
        self.assertEqual(blocks, (MDParagraph((BREAK, BREAK, text_line("hello"))),))

    def test_trailing_blank_lines_add_nothing(self):
        # The text line itself keeps its break since it is not the last line
        blocks = self.assemble("a\n\n\n")
        self.assertEqual(blocks, (MDParagraph((text_line("a", True),)),))

    def test_blank_line_before_list_only(self):
        blocks = self.assemble("a\n\n* x")
        self.assertEqual(
            blocks,
            (MDParagraph((text_line("a", True), BREAK)), MDList((MDListItem((MDText("x"),)),))),
        )

    def test_blank_line_splits_lists(self):
        blocks = self.assemble("* a\n\n* b")
        self.assertEqual(
            blocks,
            (
                MDList((MDListItem((MDText("a"),)),)),
                MDParagraph((BREAK,)),
                MDList((MDListItem((MDText("b"),)),)),
            ),
        )

    def test_text_after_list(self):
        blocks = self.assemble("* a\nSelesai\nTerima kasih")
        self.assertEqual(
            blocks,
            (
                MDList((MDListItem((MDText("a"),)),)),
                MDParagraph((text_line("Selesai", True), text_line("Terima kasih"))),
            ),
        )

    def test_list_items_are_inline_formatted(self):
        blocks = self.assemble("* **KTP** asli\n* [Formulir](https://desa.id/f)")
        self.assertEqual(
            blocks,
            (
                MDList(
                    (
                        MDListItem((MDBold((MDText("KTP"),)), MDText(" asli"))),
                        MDListItem((MDLink("https://desa.id/f", (MDText("Formulir"),)),)),
                    )
                ),
            ),
        )

    def test_whitespace_only_message(self):
        self.assertEqual(self.assemble("   \n\t\n"), ())


class TestMessageFormatter(unittest.TestCase):
    """Test the formatter entry point and its documented properties."""

    def setUp(self):
        self.formatter = MessageFormatter()

    def test_empty_input(self):
        document = self.formatter.format("")
        self.assertIsInstance(document, MDDocument)
        self.assertTrue(document.is_empty())
        self.assertEqual(document.to_dict(), {"type": "document", "blocks": []})

    def test_non_string_input(self):
        for value in [None, 42, b"bytes", ["a"]]:
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    self.formatter.format(value)  # type: ignore[arg-type]

    def test_plain_text_idempotence(self):
        document = self.formatter.format("  Halo  \nSelamat datang\n\nDi desa kami")
        self.assertEqual(
            document,
            MDDocument(
                (
                    MDParagraph(
                        (
                            text_line("Halo", True),
                            text_line("Selamat datang", True),
                            BREAK,
                            text_line("Di desa kami"),
                        )
                    ),
                )
            ),
        )

    def test_coverage(self):
        test_cases = [
            ("**bold** and *italic*", "bold and italic"),
            ("a\n* x\n* y\nb", "axyb"),
            ("[click](http://a.com) see http://b.com", "click see http://b.com"),
            ("[**Daftar**](https://desa.id)", "Daftar"),
            ("5 * 3 = 15", "5 * 3 = 15"),
            ("***text***", "*text*"),
            ("**unterminated [link](", "**unterminated [link]("),
        ]
        for message, expected in test_cases:
            with self.subTest(message=message):
                self.assertEqual(extract_text(self.formatter.format(message)), expected)

    def test_determinism(self):
        message = "Syarat:\n* **KTP**\n* KK\nInfo: https://desa.id dan [kontak](https://desa.id/k)"
        self.assertEqual(self.formatter.format(message), self.formatter.format(message))
        self.assertEqual(format_message(message), MessageFormatter().format(message))

    def test_pathological_input_terminates(self):
        message = ("**" * 2000) + ("*" * 2001) + ("[" * 1000) + ("http://" * 500)
        document = self.formatter.format(message)
        self.assertFalse(document.is_empty())

    def test_unclosed_italic_openers_scale_linearly(self):
        message = "*a " * 40000
        started = time.perf_counter()
        document = self.formatter.format(message)
        elapsed = time.perf_counter() - started
        self.assertEqual(document, MDDocument((MDParagraph((text_line(message.strip()),)),)))
        self.assertLess(elapsed, 2.0)

    def test_italic_content_stops_at_next_star(self):
        nodes = InlineParser().parse_inline_content("*a *b*")
        self.assertEqual(nodes, (MDText("*a "), MDItalic((MDText("b"),))))

    def test_stats(self):
        self.formatter.format("a\n* x\n* y\nb")
        stats = self.formatter.get_stats()
        self.assertEqual(stats["lines_processed"], 4)
        self.assertEqual(stats["blocks_emitted"], 3)
        self.assertEqual(stats["list_items"], 2)
        self.assertEqual(stats["inline_spans"], 4)
        self.assertFalse(stats["cache_hit"])

    def test_stats_describe_last_call(self):
        self.formatter.format("* a\n* b\n* c")
        document = self.formatter.format("Halo")
        stats = self.formatter.get_stats()
        self.assertEqual(stats["lines_processed"], 1)
        self.assertEqual(stats["list_items"], 0)
        stats["lines_processed"] = 99
        self.assertEqual(self.formatter.get_stats()["lines_processed"], 1)
        self.assertEqual(document, MDDocument((MDParagraph((text_line("Halo"),)),)))

    def test_cache_reuses_tree(self):
        formatter = MessageFormatter(cache=RenderCache())
        first = formatter.format("**Halo**")
        second = formatter.format("**Halo**")
        self.assertIs(first, second)
        self.assertTrue(formatter.get_stats()["cache_hit"])

    def test_max_message_length_falls_back_to_plain_text(self):
        formatter = MessageFormatter({"max_message_length": 5})
        document = formatter.format("**long message**")
        self.assertEqual(document, MDDocument((MDParagraph((text_line("**long message**"),)),)))

    def test_internal_failure_degrades_to_plain_text(self):
        with patch("lib.chat_markup.formatter.BlockAssembler.assemble", side_effect=RuntimeError("boom")):
            document = self.formatter.format("*x*")
        self.assertEqual(document, MDDocument((MDParagraph((text_line("*x*"),)),)))

    def test_internal_failure_raises_in_strict_mode(self):
        formatter = MessageFormatter({"strict_mode": True})
        with patch("lib.chat_markup.formatter.BlockAssembler.assemble", side_effect=RuntimeError("boom")):
            with self.assertRaises(FormatterError):
                formatter.format("*x*")

    def test_tree_json(self):
        tree = self.formatter.get_tree_json("Lihat http://a.id")
        self.assertEqual(
            tree,
            {
                "type": "document",
                "blocks": [
                    {
                        "type": "paragraph",
                        "lines": [
                            {
                                "type": "text_line",
                                "trailing_break": False,
                                "children": [
                                    {"type": "text", "content": "Lihat "},
                                    {
                                        "type": "link",
                                        "url": "http://a.id",
                                        "external": True,
                                        "children": [{"type": "text", "content": "http://a.id"}],
                                    },
                                ],
                            }
                        ],
                    }
                ],
            },
        )


if __name__ == "__main__":
    unittest.main()
