"""Tests for terminal rendering of attributed documents."""

import unittest

from tripjournal.attributes import Attributes, Color, UnderlineStyle, link_bundle
from tripjournal.model import AttributedDocument, Selection
from tripjournal.terminal_render import COMBINING_LONG_STROKE, TerminalRenderer


class FakeTerminal:
    """Stands in for blessed.Terminal with readable sequences."""
    normal = '<n>'
    bold = '<b>'
    italic = '<i>'
    underline = '<u>'

    def color_rgb(self, r, g, b):
        return f'<{r},{g},{b}>'


class TestTerminalRenderer(unittest.TestCase):

    def setUp(self):
        self.renderer = TerminalRenderer(FakeTerminal())

    def test_plain_text_has_no_sequences(self):
        self.assertEqual(self.renderer.render(AttributedDocument("plain")), "plain")

    def test_styled_run(self):
        doc = AttributedDocument.from_runs([
            ("a", Attributes()),
            ("b", Attributes(bold=True, italic=True)),
            ("c", Attributes()),
        ])
        self.assertEqual(self.renderer.render(doc), "a<n><b><i>b<n>c")

    def test_link_colour_and_underline(self):
        doc = AttributedDocument("xy")
        doc.set_attributes(Selection(1, 1), link_bundle("g1", Color(1, 2, 3)))
        self.assertEqual(self.renderer.render(doc), "x<n><u><1,2,3>y<n>")

    def test_strikethrough_overlay(self):
        doc = AttributedDocument.from_runs([("ab", Attributes(strikethrough=True))])
        expected = "<n>a" + COMBINING_LONG_STROKE + "b" + COMBINING_LONG_STROKE + "<n>"
        self.assertEqual(self.renderer.render(doc), expected)

    def test_attributes_reset_per_line(self):
        doc = AttributedDocument.from_runs([
            ("one\ntwo", Attributes(underline=UnderlineStyle.DOUBLE)),
        ])
        self.assertEqual(self.renderer.render_lines(doc), ["<n><u>one<n>", "<n><u>two<n>"])

    def test_empty_document(self):
        self.assertEqual(self.renderer.render_lines(AttributedDocument()), [""])


if __name__ == '__main__':
    unittest.main()
