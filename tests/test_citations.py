"""
Tests for numeric and name-year citation matching
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.matcher import (
    CitationMatcher, NameYearMatcher, NumberMatcher, match_by_name_year, match_by_number,
    match_citations, parse_numbers,
)
from layout_engine.matcher.name_year import is_year, word_type
from layout_engine.types import Position, Reference
from fixtures import structured_page


def _reference(text, index=None, page_index=1):
    chars = structured_page([text], page_index=page_index)
    return Reference(
        text=text,
        chars=chars,
        position=Position(page_index=page_index, rects=[(72.0, 700.0, 400.0, 710.0)]),
        index=index,
    )


class TestParseNumbers(unittest.TestCase):

    def test_list_and_range(self):
        self.assertEqual(parse_numbers("[2, 4-6]"), [2, 4, 5, 6])

    def test_en_dash_range(self):
        self.assertEqual(parse_numbers("[1–3]"), [1, 2, 3])

    def test_zero_ignored(self):
        self.assertEqual(parse_numbers("(0)"), [])

    def test_fill_capped(self):
        self.assertEqual(len(parse_numbers("[1-500]", max_fill=50)), 50)


class TestNumberMatcher(unittest.TestCase):

    def setUp(self):
        self.reference = _reference("[1] Smith J. A study of things. Journal, 2001.", index=1)

    def test_bracket_citation(self):
        chars = structured_page(["see [1] here and 42 more"], page_index=0)
        overlays = match_by_number(chars, [self.reference])
        self.assertEqual(len(overlays), 1)
        self.assertEqual(overlays[0].word, '[1]')
        self.assertIs(overlays[0].references[0], self.reference)
        self.assertEqual(overlays[0].position.page_index, 0)

    def test_find_ranges(self):
        chars = structured_page(["see [1, 3] and (2) here"])
        ranges = NumberMatcher().find_ranges(chars)
        self.assertEqual([r.text for r in ranges], ['[1,3]', '(2)'])
        self.assertEqual([r.type for r in ranges], ['brackets', 'parentheses'])

    def test_unknown_number_ignored(self):
        chars = structured_page(["see [7] here"])
        self.assertEqual(match_by_number(chars, [self.reference]), [])

    def test_disagreeing_link_dropped(self):
        chars = structured_page(["see [1] here"])

        def links(page_index):
            return [((90.0, 699.0, 108.0, 711.0), Position(page_index=5))]

        self.assertEqual(match_by_number(chars, [self.reference], links), [])

    def test_agreeing_link_kept(self):
        chars = structured_page(["see [1] here"])

        def links(page_index):
            return [((90.0, 699.0, 108.0, 711.0), Position(page_index=1))]

        overlays = match_by_number(chars, [self.reference], links)
        self.assertEqual(len(overlays), 1)


class TestNameYearMatcher(unittest.TestCase):

    def setUp(self):
        self.reference = _reference("Smith J. and Brown K. A study of things. Journal, 2001.")

    def test_word_types(self):
        self.assertTrue(is_year('2001'))
        self.assertFalse(is_year('1700'))
        self.assertEqual(word_type('Smith'), 'name')
        self.assertEqual(word_type('2001'), 'year')
        self.assertIsNone(word_type('and'))

    def test_reference_index_stops_at_year(self):
        index = NameYearMatcher().reference_index([self.reference])
        self.assertIn('Smith', index)
        self.assertIn('Brown', index)
        self.assertIn('2001', index)
        self.assertNotIn('K', index)

    def test_author_year_mention(self):
        chars = structured_page(["as shown by Smith and Brown (2001) in"], page_index=0)
        overlays = match_by_name_year(chars, [self.reference])
        self.assertEqual([o.word for o in overlays], ['Smith', 'Brown', '2001'])
        for overlay in overlays:
            self.assertEqual(overlay.references, [self.reference])

    def test_name_far_from_entry_start_ignored(self):
        chars = structured_page(["The Journal reported"], page_index=0)
        self.assertEqual(match_by_name_year(chars, [self.reference]), [])


class TestCitationMatcher(unittest.TestCase):

    def test_numeric_dispatch_and_reference_overlays(self):
        references = [
            _reference("[1] Smith J. A study of things. Journal, 2001.", index=1),
            _reference("[2] Jones K. Another study here. Proc, 2005.", index=2),
        ]
        chars = structured_page(["Prior work [1] showed", "and [2] and also [1] too."], page_index=0)
        citations, reference_overlays = match_citations(chars, references)
        self.assertEqual([c.word for c in citations], ['[1]', '[2]', '[1]'])
        self.assertEqual(len(reference_overlays), 2)
        first = reference_overlays[0]
        self.assertEqual(first.references, [references[0]])
        self.assertEqual([e.word for e in first.citations], ['[1]', '[1]'])
        self.assertEqual(first.sort_index, '00001|000000|00000')
        self.assertEqual(first.position.page_index, 1)

    def test_name_year_dispatch(self):
        reference = _reference("Smith J. and Brown K. A study of things. Journal, 2001.")
        chars = structured_page(["as shown by Smith and Brown (2001) in"], page_index=0)
        citations, reference_overlays = CitationMatcher().match(chars, [reference])
        self.assertEqual(len(citations), 3)
        self.assertEqual(len(reference_overlays), 1)
        self.assertEqual(len(reference_overlays[0].citations), 3)

    def test_no_references(self):
        self.assertEqual(CitationMatcher().match(structured_page(["text"]), []), ([], []))


if __name__ == '__main__':
    unittest.main()
