"""
Tests for bibliography extraction

Threshold-dependent expectations characterize the default config values.
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.bib import (
    FirstLineIndentStrategy, ListNumberStrategy, ParagraphSpacingStrategy, ReferenceExtractor,
    extract_references, references_title_offset, text_parts,
)
from layout_engine.bib.common import can_start_with, has_valid_year, reference_text
from layout_engine.structure import structure_glyphs
from layout_engine.types import ExternalLinkOverlay, Glyph, Position
from fixtures import make_line, structured_page

BODY = [
    "Prior work [1] showed this clearly.",
    "Another result [2] was found.",
]
SHORT_BIBLIOGRAPHY = [
    "References",
    "[1] Smith J. A study of things. Journal of Tests, 2001.",
    "[2] Jones K. Another study here. Proc. Conf, 2005.",
]


def _stream(*pages):
    stream = []
    for i, lines in enumerate(pages):
        stream.extend(structured_page(lines, page_index=i))
    return stream


class TestListNumberReferences(unittest.TestCase):

    def setUp(self):
        self.stream = _stream(BODY, SHORT_BIBLIOGRAPHY)

    def test_numbered_entries(self):
        result = extract_references(self.stream)
        self.assertIsNotNone(result)
        self.assertEqual(result.strategy, 'list-number')
        self.assertEqual([r.index for r in result.references], [1, 2])
        self.assertEqual(result.references[0].text, SHORT_BIBLIOGRAPHY[1])
        self.assertEqual(result.references[1].text, SHORT_BIBLIOGRAPHY[2])
        self.assertTrue(all(r.position.page_index == 1 for r in result.references))

    def test_offset_points_at_first_entry(self):
        result = extract_references(self.stream)
        self.assertEqual(self.stream[result.offset].char, '[')
        self.assertEqual(self.stream[result.offset].page_index, 1)

    def test_break_point_gaps(self):
        points = ListNumberStrategy().break_points(self.stream, 0)
        self.assertEqual([p.number for p in points], [1, 2])
        self.assertEqual([p.gap for p in points], [10.0, 10.0])
        self.assertEqual([p.gap2 for p in points], [20.0, 20.0])

    def test_text_parts(self):
        result = extract_references(self.stream)
        parts = result.references[0].text_parts
        self.assertEqual(len(parts), 1)
        self.assertEqual(parts[0].text, SHORT_BIBLIOGRAPHY[1])
        self.assertEqual(parts[0].font_name, 'Times')

    def test_urls_from_link_overlays(self):
        calls = []

        def links(page_index, glyphs):
            calls.append(page_index)
            return [ExternalLinkOverlay(
                position=Position(page_index=1, rects=[(70, 687, 400, 699)]),
                url='https://example.org/smith',
            )]

        result = ReferenceExtractor().extract(self.stream, links)
        self.assertEqual(calls, [1])
        first, second = result.references
        self.assertTrue(all(g.url == 'https://example.org/smith' for g in first.chars))
        self.assertTrue(all(g.url is None for g in second.chars))
        self.assertEqual(first.text_parts[0].url, 'https://example.org/smith')

    def test_body_only_document(self):
        self.assertIsNone(extract_references(_stream(BODY, BODY)))

    def test_empty_stream(self):
        self.assertIsNone(ReferenceExtractor().extract([]))


NAMES = ['Adams', 'Baker', 'Clark', 'Davis', 'Evans', 'Fisher', 'Grant', 'Hughes']
SINGLE_LINE_ENTRY = "Irwin B. A short single line entry about flush printed lists, 1999."


def _layout(rows, page_index=0):
    """Structure (text, x, y) rows of one page"""
    raw = []
    for text, x, y in rows:
        raw.extend(make_line(text, x=x, y=y, page_index=page_index))
    return structure_glyphs(raw)


def _hanging_rows(title=False, single_line_after=None):
    """Entries with the first line at x=72 and the continuation at x=84"""
    rows = []
    y = 700.0
    if title:
        rows.append(("References", 72.0, y))
        y -= 24
    for n, name in enumerate(NAMES, 1):
        rows.append((f"{name} A. A study of hanging indents in printed", 72.0, y))
        rows.append((f"bibliographies, volume {n}. Layout Letters, {1990 + n}.", 84.0, y - 12))
        y -= 24
        if name == single_line_after:
            rows.append((SINGLE_LINE_ENTRY, 72.0, y))
            y -= 12
    return rows


def _spaced_rows():
    """Body paragraph, then flush-left entries with an extra 8pt between them"""
    rows = [
        ("Results are summarised in the tables below.", 72.0, 700.0),
        ("Details follow in the appendix.", 72.0, 688.0),
    ]
    y = 668.0
    for n, name in enumerate(NAMES, 1):
        rows.append((f"{name} B. Paragraph spacing between the entries of", 72.0, y))
        rows.append((f"a reference list, part {n}. Spacing Review, {1980 + n}.", 72.0, y - 12))
        y -= 32
    return rows


class TestFirstLineIndentReferences(unittest.TestCase):

    def test_hanging_indent_entries(self):
        stream = _layout(_hanging_rows())
        result = extract_references(stream)
        self.assertEqual(result.strategy, 'first-line-indent')
        self.assertEqual(len(result.references), 8)
        self.assertEqual(
            result.references[0].text,
            "Adams A. A study of hanging indents in printed bibliographies, volume 1. Layout Letters, 1991."
        )
        self.assertTrue(result.references[-1].text.startswith("Hughes A."))
        self.assertIsNone(result.references[0].index)

    def test_break_points_carry_indent_delta(self):
        stream = _layout(_hanging_rows())
        points = FirstLineIndentStrategy().break_points(stream, 0)
        self.assertEqual(len(points), 8)
        self.assertTrue(all(p.delta == 12.0 for p in points))
        self.assertTrue(all(stream[p.offset].rect[0] == 72.0 for p in points))

    def test_no_indent_change(self):
        self.assertIsNone(FirstLineIndentStrategy().extract(_layout(_spaced_rows()), 0))

    def test_titled_list_with_single_line_entry(self):
        stream = _stream(BODY)
        stream.extend(_layout(_hanging_rows(title=True, single_line_after='Davis'), page_index=1))
        section_offset = references_title_offset(stream)
        self.assertEqual(stream[section_offset].char, 'A')

        result = extract_references(stream)
        self.assertEqual(result.strategy, 'first-line-indent')
        self.assertEqual(result.offset, section_offset)
        self.assertEqual(len(result.references), 9)
        self.assertTrue(result.references[0].text.startswith("Adams A."))
        self.assertTrue(result.references[3].text.endswith("Layout Letters, 1994."))
        self.assertEqual(result.references[4].text, SINGLE_LINE_ENTRY)
        self.assertTrue(result.references[5].text.startswith("Evans A."))
        self.assertTrue(all(r.position.page_index == 1 for r in result.references))

    def test_aligned_single_line_entry_added(self):
        stream = _layout(_hanging_rows(title=True, single_line_after='Davis'))
        strategy = FirstLineIndentStrategy()
        section_offset = references_title_offset(stream)
        clusters = [strategy.break_points(stream, section_offset)]
        self.assertEqual(len(clusters[0]), 8)

        strategy.add_aligned_breaks(stream, clusters, section_offset)
        self.assertEqual(len(clusters[0]), 9)
        added = [bp for bp in clusters[0] if bp.text == '---']
        self.assertEqual(len(added), 1)
        self.assertEqual(stream[added[0].offset].char, 'I')
        offsets = [bp.offset for bp in clusters[0]]
        self.assertEqual(offsets, sorted(offsets))


class TestParagraphSpacingReferences(unittest.TestCase):

    def setUp(self):
        self.stream = _layout(_spaced_rows())

    def test_spaced_entries(self):
        result = extract_references(self.stream)
        self.assertEqual(result.strategy, 'paragraph-spacing')
        self.assertEqual(len(result.references), 8)
        self.assertEqual(
            result.references[0].text,
            "Adams B. Paragraph spacing between the entries of a reference list, part 1. Spacing Review, 1981."
        )
        self.assertEqual(self.stream[result.offset].char, 'A')

    def test_break_points_carry_spacing(self):
        points = ParagraphSpacingStrategy().break_points(self.stream, 0)
        spacings = sorted(p.spacing for p in points)
        # One break inside the body paragraph, one before each entry
        self.assertEqual(spacings, [2.0] + [10.0] * 8)

    def test_first_entry_needs_line_above(self):
        # Nothing above the first entry to measure a gap from
        result = ParagraphSpacingStrategy().extract(_layout(_hanging_rows()), 0)
        self.assertEqual(len(result.references), 7)
        self.assertTrue(result.references[0].text.startswith("Baker A."))


class TestSectionTitle(unittest.TestCase):

    def setUp(self):
        entries = [
            f"[{n}] Author A. Title number {n} of works. Journal, {2000 + n}."
            for n in range(1, 9)
        ]
        self.stream = _stream(BODY, ["References", ""] + entries)

    def test_title_found(self):
        offset = references_title_offset(self.stream)
        self.assertGreater(offset, 0)
        self.assertEqual(self.stream[offset - 1].char, 's')
        self.assertEqual(self.stream[offset].char, '[')

    def test_entries_after_title(self):
        result = extract_references(self.stream)
        self.assertEqual(result.offset, references_title_offset(self.stream))
        self.assertEqual([r.index for r in result.references], list(range(1, 9)))

    def test_title_needs_following_text(self):
        self.assertEqual(references_title_offset(_stream(BODY, SHORT_BIBLIOGRAPHY)), 0)


class TestHelpers(unittest.TestCase):

    def test_has_valid_year(self):
        self.assertTrue(has_valid_year(make_line("Journal, 1999.")))
        self.assertFalse(has_valid_year(make_line("Page 1234 of 5")))

    def test_can_start_with(self):
        upper = Glyph(char='S', rect=(0, 0, 1, 1))
        lower = Glyph(char='s', rect=(0, 0, 1, 1))
        digit = Glyph(char='1', rect=(0, 0, 1, 1))
        accented = Glyph(char='Ö', rect=(0, 0, 1, 1))
        self.assertTrue(can_start_with(upper))
        self.assertTrue(can_start_with(accented))
        self.assertFalse(can_start_with(lower))
        self.assertFalse(can_start_with(digit))

    def test_reference_text_joins_lines(self):
        glyphs = structured_page(["Smith J. A long", "title, 2001."])
        self.assertEqual(reference_text(glyphs), "Smith J. A long title, 2001.")

    def test_text_parts_split_on_font(self):
        glyphs = structured_page(["Smith J."])
        for g in glyphs[:5]:
            g.font_name = 'Times-Bold'
        parts = text_parts(glyphs)
        self.assertEqual([p.text for p in parts], ['Smith ', 'J.'])


if __name__ == '__main__':
    unittest.main()
