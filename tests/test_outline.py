"""
Tests for outline normalization and extraction

Threshold-dependent expectations characterize the default config values.
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.outline import (
    OutlineExtractor, format_outline, normalize_outline, parse_number_parts,
)
from layout_engine.structure import structure_glyphs
from layout_engine.types import OutlineEntry, Position
from fixtures import make_line, make_page


def _heading_page(page_index, heading=None):
    raw = []
    if heading:
        raw.extend(make_line(heading, y=740.0, font_name='Helvetica-Bold', font_size=14.0,
                             page_index=page_index))
    raw.extend(make_page([
        "Body text of the page goes here.",
        "More body text follows on this line.",
    ], page_index=page_index))
    glyphs = structure_glyphs(raw)
    for g in glyphs:
        g.page_index = page_index
    return glyphs


class TestOutlineNormalizer(unittest.TestCase):

    def setUp(self):
        self.destinations = {
            'intro': Position(page_index=0, rects=[(0, 700, 0, 700)]),
            'methods': Position(page_index=3, rects=[(0, 500, 0, 500)]),
        }

    def resolve(self, dest):
        return self.destinations.get(dest)

    def test_positions_resolved(self):
        entries = [
            OutlineEntry(title='Introduction', dest='intro'),
            OutlineEntry(title='Methods', dest='methods', children=[
                OutlineEntry(title='Website', url='https://example.org'),
            ]),
        ]
        nodes = normalize_outline(entries, self.resolve)
        self.assertEqual([n.title for n in nodes], ['Introduction', 'Methods'])
        self.assertEqual(nodes[1].location.position.page_index, 3)
        self.assertEqual(nodes[1].sort_index, '00003|000000|00000')
        self.assertEqual(nodes[1].children[0].location.url, 'https://example.org')

    def test_single_wrapper_collapsed(self):
        entries = [OutlineEntry(title='Paper Title', dest='intro', children=[
            OutlineEntry(title='A', dest='intro'),
            OutlineEntry(title='B', dest='methods'),
        ])]
        nodes = normalize_outline(entries, self.resolve)
        self.assertEqual([n.title for n in nodes], ['A', 'B'])

    def test_unresolved_destination_kept_without_position(self):
        nodes = normalize_outline([OutlineEntry(title='Lost', dest='missing')], self.resolve)
        self.assertEqual(len(nodes), 1)
        self.assertIsNone(nodes[0].location.position)
        self.assertIsNone(nodes[0].sort_index)

    def test_empty(self):
        self.assertEqual(normalize_outline(None, self.resolve), [])


class TestOutlineExtractor(unittest.TestCase):

    def test_references_anchor_on_middle_page(self):
        headings = {
            0: 'Introduction',
            10: 'Methods',
            25: 'Results',
            40: 'Discussion',
            50: 'References',
        }
        pages = {i: _heading_page(i, headings.get(i)) for i in range(100)}

        nodes = OutlineExtractor().extract(100, lambda i: pages[i])
        self.assertEqual(
            [n.title for n in nodes],
            ['Introduction', 'Methods', 'Results', 'Discussion', 'References'],
        )
        self.assertEqual(nodes[-1].location.position.page_index, 50)
        self.assertTrue(all(not n.children for n in nodes))

    def test_without_known_title_nothing_extracted(self):
        headings = {0: 'Introduction', 20: 'Methods', 40: 'Results', 60: 'Discussion', 80: 'Summary'}
        pages = {i: _heading_page(i, headings.get(i)) for i in range(100)}
        self.assertEqual(OutlineExtractor().extract(100, lambda i: pages[i]), [])

    def test_too_few_headings(self):
        headings = {0: 'Introduction', 30: 'Results', 60: 'References'}
        pages = {i: _heading_page(i, headings.get(i)) for i in range(100)}
        self.assertEqual(OutlineExtractor().extract(100, lambda i: pages[i]), [])

    def test_parse_number_parts(self):
        glyphs = structure_glyphs(make_line("2.1 Data sources"))
        self.assertEqual(parse_number_parts(glyphs), [2, 1])
        glyphs = structure_glyphs(make_line("10 Conclusion"))
        self.assertEqual(parse_number_parts(glyphs), [10])
        glyphs = structure_glyphs(make_line("Overview"))
        self.assertEqual(parse_number_parts(glyphs), [])


class TestFormatOutline(unittest.TestCase):

    def test_indentation(self):
        entries = [OutlineEntry(title='A', dest='a', children=[OutlineEntry(title='A.1', dest='a')]),
                   OutlineEntry(title='B', dest='a')]
        nodes = normalize_outline(entries, lambda d: Position(page_index=0))
        self.assertEqual(format_outline(nodes), "A\n  A.1\nB")


if __name__ == '__main__':
    unittest.main()
