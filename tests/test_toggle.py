"""Tests for selection and caret style toggling."""

import unittest

from tripjournal.attributes import ACCENT_COLOR, PLAIN, Attributes, UnderlineStyle, link_bundle
from tripjournal.errors import InvalidRange
from tripjournal.model import AttributedDocument, Selection
from tripjournal.style import StyleDimension, StyleState
from tripjournal.toggle import StyleToggleEngine, ToggleResult


class TestSelectionToggle(unittest.TestCase):

    def setUp(self):
        self.doc = AttributedDocument("Hello world")
        self.engine = StyleToggleEngine()

    def test_bold_toggle_on_selection(self):
        result = self.engine.toggle_bold(self.doc, Selection(0, 5))
        self.assertIs(result, ToggleResult.APPLIED)
        for i in range(5):
            self.assertTrue(self.doc.attributes_at(i).bold)
        for i in range(5, 11):
            self.assertFalse(self.doc.attributes_at(i).bold)

    def test_toggle_twice_restores_dimension(self):
        for dimension in StyleDimension:
            self.engine.toggle(self.doc, Selection(0, 5), dimension)
            self.engine.toggle(self.doc, Selection(0, 5), dimension)
        self.assertTrue(all(a == PLAIN for a in self.doc.attributes_in(Selection(0, 11))))

    def test_mixed_range_follows_anchor(self):
        self.doc.set_attributes(Selection(0, 2), {'bold': True})
        self.engine.toggle_bold(self.doc, Selection(0, 11))
        self.assertFalse(any(a.bold for a in self.doc.attributes_in(Selection(0, 11))))

        self.doc.set_attributes(Selection(4, 3), {'bold': True})
        self.engine.toggle_bold(self.doc, Selection(0, 11))
        self.assertTrue(all(a.bold for a in self.doc.attributes_in(Selection(0, 11))))

    def test_toggle_keeps_other_dimensions(self):
        self.doc.set_attributes(Selection(0, 11), {'italic': True, 'strikethrough': True})
        self.engine.toggle_bold(self.doc, Selection(0, 5))
        self.assertEqual(self.doc.attributes_at(0),
                         Attributes(bold=True, italic=True, strikethrough=True))

    def test_underline_and_strikethrough(self):
        self.engine.toggle_underline(self.doc, Selection(6, 5))
        self.engine.toggle_strikethrough(self.doc, Selection(0, 3))
        self.assertEqual(self.doc.attributes_at(6).underline, UnderlineStyle.SINGLE)
        self.assertIsNone(self.doc.attributes_at(5).underline)
        self.assertTrue(self.doc.attributes_at(2).strikethrough)
        self.assertFalse(self.doc.attributes_at(3).strikethrough)

    def test_invalid_range(self):
        with self.assertRaises(InvalidRange):
            self.engine.toggle_bold(self.doc, Selection(8, 10))
        self.assertTrue(all(a == PLAIN for a in self.doc.attributes_in(Selection(0, 11))))

    def test_typing_style_follows_toggled_selection(self):
        self.engine.toggle_italic(self.doc, Selection(0, 5))
        self.assertTrue(self.engine.typing_style.italic)


class TestLinkUnderline(unittest.TestCase):

    def setUp(self):
        self.doc = AttributedDocument("Hello world")
        self.doc.set_attributes(Selection(6, 5), link_bundle("g1"))
        self.engine = StyleToggleEngine()

    def test_underline_rejected_when_anchor_is_link(self):
        before = self.doc.copy()
        result = self.engine.toggle_underline(self.doc, Selection(6, 5))
        self.assertIs(result, ToggleResult.REJECTED_LINK_UNDERLINE)
        self.assertEqual(self.doc, before)

    def test_bold_over_link_keeps_link(self):
        self.engine.toggle_bold(self.doc, Selection(6, 5))
        attrs = self.doc.attributes_at(8)
        self.assertTrue(attrs.bold)
        self.assertEqual(attrs.link.group_id, "g1")
        self.assertEqual(attrs.foreground, ACCENT_COLOR)
        self.assertEqual(attrs.underline, UnderlineStyle.SINGLE)

    def test_underline_range_spanning_link_spares_link(self):
        self.engine.toggle_underline(self.doc, Selection(0, 11))
        self.assertEqual(self.doc.attributes_at(0).underline, UnderlineStyle.SINGLE)
        self.engine.toggle_underline(self.doc, Selection(0, 11))
        self.assertIsNone(self.doc.attributes_at(0).underline)
        for i in range(6, 11):
            self.assertEqual(self.doc.attributes_at(i).underline, UnderlineStyle.SINGLE)
            self.assertIsNotNone(self.doc.attributes_at(i).link)


class TestCaretToggle(unittest.TestCase):

    def test_italic_on_empty_document(self):
        doc = AttributedDocument()
        engine = StyleToggleEngine()
        result = engine.toggle_italic(doc, Selection(0, 0))
        self.assertIs(result, ToggleResult.TYPING_STYLE)
        self.assertEqual(doc.length, 0)
        self.assertTrue(engine.typing_style.italic)

        doc.insert_text(0, "a", engine.typing_attributes())
        self.assertTrue(doc.attributes_at(0).italic)

    def test_caret_toggle_leaves_document_alone(self):
        doc = AttributedDocument("abc")
        engine = StyleToggleEngine()
        before = doc.copy()
        engine.toggle_bold(doc, Selection(3, 0))
        self.assertEqual(doc, before)
        self.assertTrue(engine.typing_style.bold)

    def test_style_at_caret_reads_previous_character(self):
        doc = AttributedDocument("ab")
        doc.set_attributes(Selection(0, 1), {'bold': True})
        engine = StyleToggleEngine()
        self.assertTrue(engine.style_at(doc, Selection(1, 0)).bold)
        self.assertFalse(engine.style_at(doc, Selection(2, 0)).bold)
        # At the start there is no previous character; the first one is used
        self.assertTrue(engine.style_at(doc, Selection(0, 0)).bold)

    def test_sync_typing_style(self):
        doc = AttributedDocument("ab")
        doc.set_attributes(Selection(1, 1), {'strikethrough': True})
        engine = StyleToggleEngine()
        self.assertEqual(engine.sync_typing_style(doc, Selection(2, 0)),
                         StyleState(strikethrough=True))


if __name__ == '__main__':
    unittest.main()
