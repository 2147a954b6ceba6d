"""
Tests for glyph structuring and bidi reordering
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.structure import (
    GlyphStructurer, bidi_reorder, char_type, glyphs_to_text, is_rtl, structure_glyphs,
)
from layout_engine.types import Glyph
from fixtures import make_line, make_page, text_of


def _glyph(ch, x, y=700.0, width=5.0, height=10.0, size=10.0):
    return Glyph(char=ch, rect=(x, y, x + width, y + height), font_name='Times',
                 font_size=size, baseline=y)


class TestBidi(unittest.TestCase):

    def test_char_types(self):
        self.assertEqual(char_type('A'), 'L')
        self.assertEqual(char_type('1'), 'EN')
        self.assertEqual(char_type('ב'), 'R')
        self.assertEqual(char_type('ب'), 'AL')
        self.assertTrue(is_rtl('ג'))
        self.assertFalse(is_rtl('x'))

    def test_latin_hebrew_golden(self):
        # Visual order A ב ג B: the Hebrew run is reversed, Latin stays fixed
        chars = ['A', 'ב', 'ג', 'B']
        self.assertEqual(bidi_reorder(chars, chars), ['A', 'ג', 'ב', 'B'])

    def test_ltr_line_unchanged(self):
        chars = list('plain')
        result = bidi_reorder(chars, chars)
        self.assertEqual(result, chars)
        self.assertIsNot(result, chars)

    def test_structurer_applies_bidi(self):
        raw = [_glyph('A', 72), _glyph('ב', 77), _glyph('ג', 82), _glyph('B', 87)]
        chars = structure_glyphs(raw)
        self.assertEqual(text_of(chars), 'AגבB')


class TestGlyphStructurer(unittest.TestCase):

    def setUp(self):
        self.raw = make_page([
            "The quick brown fox",
            "jumps over it.",
            "",
            "Second para here.",
        ])

    def test_round_trip_text(self):
        chars = structure_glyphs(self.raw)
        self.assertEqual(
            glyphs_to_text(chars),
            "The quick brown fox jumps over it.\n\nSecond para here."
        )

    def test_offsets_follow_order(self):
        chars = structure_glyphs(self.raw)
        self.assertEqual([g.offset for g in chars], list(range(len(chars))))

    def test_line_and_paragraph_flags(self):
        chars = structure_glyphs(self.raw)
        line_ends = [g.char for g in chars if g.line_break_after]
        self.assertEqual(line_ends, ['x', '.', '.'])
        paragraph_ends = [i for i, g in enumerate(chars) if g.paragraph_break_after]
        self.assertEqual(len(paragraph_ends), 2)
        self.assertEqual(paragraph_ends[-1], len(chars) - 1)

    def test_word_breaks(self):
        chars = structure_glyphs(make_line("one two"))
        self.assertTrue(chars[2].space_after)
        self.assertTrue(chars[2].word_break_after)
        self.assertTrue(chars[-1].word_break_after)
        self.assertFalse(chars[0].word_break_after)

    def test_idempotent(self):
        first = structure_glyphs(self.raw)
        second = structure_glyphs(self.raw)
        self.assertEqual([g.to_dict() for g in first], [g.to_dict() for g in second])

    def test_input_not_modified(self):
        structure_glyphs(self.raw)
        self.assertFalse(any(g.line_break_after or g.word_break_after for g in self.raw))

    def test_duplicates_removed(self):
        raw = make_line("ab")
        raw.append(Glyph(char='b', rect=raw[1].rect, font_name='Times', font_size=10.0, baseline=700.0))
        self.assertEqual(text_of(structure_glyphs(raw)), 'ab')

    def test_superscript(self):
        raw = make_line("abc")
        raw.append(Glyph(char='2', rect=(87.0, 706.0, 90.0, 712.0), font_name='Times',
                         font_size=6.0, baseline=706.0))
        chars = structure_glyphs(raw)
        self.assertEqual(text_of(chars), 'abc2')
        self.assertTrue(chars[3].sup)
        self.assertFalse(chars[3].sub)
        self.assertFalse(any(g.sup for g in chars[:3]))

    def test_subscript(self):
        line = make_line("HO")
        line.append(Glyph(char='2', rect=(82.0, 697.0, 85.0, 703.0), font_name='Times',
                          font_size=6.0, baseline=697.0))
        GlyphStructurer()._classify_sup_sub(line)
        self.assertTrue(line[2].sub)
        self.assertFalse(line[2].sup)
        self.assertFalse(any(g.sub or g.sup for g in line[:2]))

    def test_small_glyph_on_center_line(self):
        line = make_line("HO")
        line.append(Glyph(char='o', rect=(82.0, 702.0, 85.0, 708.0), font_name='Times',
                          font_size=6.0, baseline=702.0))
        GlyphStructurer()._classify_sup_sub(line)
        self.assertFalse(line[2].sup or line[2].sub)

    def test_line_end_hyphen_ignorable(self):
        chars = structure_glyphs(make_page(["exam-", "ple text"]))
        hyphen = next(g for g in chars if g.char == '-')
        self.assertTrue(hyphen.line_break_after)
        self.assertTrue(hyphen.ignorable)

    def test_inline_rect_spans_line(self):
        chars = structure_glyphs(make_line("ab"))
        for g in chars:
            self.assertEqual((g.bounds[1], g.bounds[3]), (700.0, 710.0))

    def test_empty_input(self):
        self.assertEqual(GlyphStructurer().structure([]), [])


class TestLineBreaks(unittest.TestCase):

    def setUp(self):
        self.structurer = GlyphStructurer()

    def test_drop_cap_isolated(self):
        cap = Glyph(char='T', rect=(72.0, 664.0, 90.0, 700.0), font_name='Times',
                    font_size=36.0, baseline=664.0)
        chars = [cap] + make_line("he story", x=95.0, y=690.0)
        self.assertEqual(self.structurer._find_line_breaks(chars), [0, 1, 8])

        structured = structure_glyphs(chars)
        self.assertTrue(structured[0].line_break_after)
        self.assertEqual(text_of(structured[1:]), 'hestory')

    def test_large_glyph_inside_line(self):
        # Only a large glyph that starts a line is split off
        cap = Glyph(char='T', rect=(72.0, 664.0, 90.0, 700.0), font_name='Times',
                    font_size=36.0, baseline=664.0)
        chars = make_line("x", x=40.0, y=690.0) + [cap] + make_line("he", x=95.0, y=690.0)
        self.assertEqual(self.structurer._find_line_breaks(chars), [0, 4])

    def test_caret_wrap(self):
        # Baselines 5pt apart still overlap: only the jump back starts a new line
        chars = make_line("abcd") + make_line("ef", y=695.0)
        self.assertEqual(self.structurer._find_line_breaks(chars), [0, 4, 6])

    def test_baseline_shift_without_regress(self):
        chars = make_line("ab") + make_line("cd", x=82.0, y=695.0)
        self.assertEqual(self.structurer._find_line_breaks(chars), [0, 4])

    def test_rotation_change(self):
        chars = make_line("ab")
        chars.append(Glyph(char='c', rect=(82.0, 700.0, 92.0, 705.0), font_name='Times',
                           font_size=10.0, rotation=90, baseline=700.0))
        self.assertEqual(self.structurer._find_line_breaks(chars), [0, 2, 3])

    def test_single_line(self):
        self.assertEqual(self.structurer._find_line_breaks(make_line("one two")), [0, 6])


if __name__ == '__main__':
    unittest.main()
