"""
Glyph Structurer
================
Turns the raw glyph list of one page into reading-order text with
line, word and paragraph boundaries.

Steps:
1. Deduplicate repeated text-layer glyphs by (char, rect)
2. Split into lines (rotation, cross-axis overlap, caret wrap, drop caps)
3. Sort each line along its axis and apply bidi reordering
4. Classify superscripts/subscripts per line
5. Detect word gaps with an adaptive per-line threshold
6. Detect paragraph breaks from line spacing, height and font changes
"""

import dataclasses
import logging
from collections import Counter
from dataclasses import dataclass
from statistics import median
from typing import List, Optional, Sequence, Tuple

from ..types import Glyph, Rect
from .bidi import bidi_reorder, is_rtl

logger = logging.getLogger(__name__)


DASH_CHARS = frozenset([
    '-', '֊', '־', '᐀', '᠆',
    '‐', '‑', '‒', '–', '—', '―',
    '⸗', '⸚', '⸺', '⸻', '〜', '〰',
    '゠', '︱', '︲', '﹘', '﹣', '－',
])

WORD_PUNCTUATION = '?.,;!¡¿。、·(){}[]/$:'


@dataclass
class StructureConfig:
    """Configuration for glyph structuring"""
    baseline_eps: float = 0.01
    caret_regress: float = 10.0        # Backwards jump that signals a wrapped line
    drop_cap_ratio: float = 2.0

    # Word spacing (fractions of the average font size)
    uniform_spacing: float = 0.07
    word_spacing: float = 0.1

    # Paragraph detection
    min_line_spacing: float = -2.0
    max_line_spacing: float = 5.0
    max_line_spacing_change: float = 2.0
    font_change_margin: float = 10.0
    line_height_margin: float = 2.0

    # Superscript / subscript
    normal_height_band: float = 0.15
    small_max_ratio: float = 0.85
    sup_min_offset: float = 0.25
    sub_min_offset: float = 0.20


# =============================================================================
# Per-glyph geometry (rotation aware)
# =============================================================================

def glyph_height(g: Glyph) -> float:
    if g.rotation in (90, 270):
        return g.rect[2] - g.rect[0]
    return g.rect[3] - g.rect[1]


def perp_center(g: Glyph) -> float:
    """Center across the writing direction"""
    if g.rotation in (90, 270):
        return (g.rect[0] + g.rect[2]) / 2
    return (g.rect[1] + g.rect[3]) / 2


def space_between(a: Glyph, b: Glyph) -> float:
    rotation = a.rotation
    if rotation == 90:
        return b.rect[1] - a.rect[3]
    if rotation == 180:
        return a.rect[0] - b.rect[2]
    if rotation == 270:
        return a.rect[1] - b.rect[3]
    return b.rect[0] - a.rect[2]


def overlaps(r1: Rect, r2: Rect, rotation: int) -> bool:
    """Overlap on the axis perpendicular to the writing direction"""
    if rotation in (0, 180):
        return r1[1] <= r2[1] <= r1[3] or r2[1] <= r1[1] <= r2[3]
    return r1[0] <= r2[0] <= r1[2] or r2[0] <= r1[0] <= r2[2]


def _line_axis_key(g: Glyph) -> float:
    cx = g.rect[0] + (g.rect[2] - g.rect[0]) / 2
    cy = g.rect[1] + (g.rect[3] - g.rect[1]) / 2
    if g.rotation == 90:
        return cy
    if g.rotation == 180:
        return -cx
    if g.rotation == 270:
        return -cy
    return cx


def _line_bottom(glyphs: Sequence[Glyph]) -> float:
    values = []
    for g in glyphs:
        if g.rotation == 90:
            values.append(g.rect[2])
        elif g.rotation == 180:
            values.append(g.rect[3])
        elif g.rotation == 270:
            values.append(g.rect[0])
        else:
            values.append(g.rect[1])
    return median(values)


def _line_top(glyphs: Sequence[Glyph]) -> float:
    values = []
    for g in glyphs:
        if g.rotation == 90:
            values.append(g.rect[0])
        elif g.rotation == 180:
            values.append(g.rect[1])
        elif g.rotation == 270:
            values.append(g.rect[2])
        else:
            values.append(g.rect[3])
    return median(values)


def _bounding(glyphs: Sequence[Glyph]) -> Rect:
    return (
        min(g.rect[0] for g in glyphs),
        min(g.rect[1] for g in glyphs),
        max(g.rect[2] for g in glyphs),
        max(g.rect[3] for g in glyphs),
    )


def most_common_font(glyphs: Sequence[Glyph]) -> Optional[str]:
    if not glyphs:
        return None
    return Counter(g.font_name for g in glyphs).most_common(1)[0][0]


# =============================================================================
# Structurer
# =============================================================================

class GlyphStructurer:
    """
    Structure one page of glyphs.

    Input glyphs are never modified: the structurer works on copies, so
    structuring the same list twice gives identical results.
    """

    def __init__(self, config: Optional[StructureConfig] = None):
        self.config = config or StructureConfig()

    def structure(self, glyphs: Sequence[Glyph]) -> List[Glyph]:
        """
        Args:
            glyphs: Raw glyphs of one page in content-stream order

        Returns:
            New glyph list in reading order with flags and offsets set
        """
        chars = self._dedupe(glyphs)
        if not chars:
            return []

        line_breaks = self._find_line_breaks(chars)
        bounds = list(zip(line_breaks[:-1], line_breaks[1:]))

        for start, end in bounds:
            line = sorted(chars[start:end], key=_line_axis_key)
            chars[start:end] = bidi_reorder(line, [g.char for g in line])

        for start, end in bounds:
            self._classify_sup_sub(chars[start:end])

        for start, end in bounds:
            self._mark_words(chars, start, end)

        self._mark_paragraphs(chars, bounds)

        for start, end in bounds:
            self._mark_line(chars[start:end])

        for i, g in enumerate(chars):
            g.offset = i
            if g.line_break_after and g.char in DASH_CHARS:
                g.ignorable = True

        logger.debug(f"Structured {len(chars)} glyphs into {len(bounds)} lines")
        return chars

    # -------------------------------------------------------------------------

    def _dedupe(self, glyphs: Sequence[Glyph]) -> List[Glyph]:
        seen = set()
        result = []
        for g in glyphs:
            fingerprint = (g.char, tuple(g.rect))
            if fingerprint in seen:
                continue
            seen.add(fingerprint)
            result.append(dataclasses.replace(
                g,
                inline_rect=None,
                word_break_after=False,
                line_break_after=False,
                paragraph_break_after=False,
                ignorable=False,
                sup=False,
                sub=False,
                isolated=False,
            ))
        return result

    def _find_line_breaks(self, chars: List[Glyph]) -> List[int]:
        cfg = self.config
        has_rtl = any(is_rtl(g.char) for g in chars)
        breaks = [0]

        for i in range(1, len(chars)):
            a = chars[i - 1]
            b = chars[i]
            baseline_moved = abs(a.baseline - b.baseline) > cfg.baseline_eps

            if has_rtl:
                caret_wrap = baseline_moved
            else:
                caret_wrap = baseline_moved and (
                    b.rotation == 0 and a.rect[0] - cfg.caret_regress > b.rect[0]
                    or b.rotation == 90 and a.rect[1] > b.rect[1]
                    or b.rotation == 180 and a.rect[0] < b.rect[0]
                    or b.rotation == 270 and a.rect[1] < b.rect[1]
                )

            drop_cap = (
                breaks[-1] == i - 1
                and glyph_height(a) > glyph_height(b) * cfg.drop_cap_ratio
            )

            if (caret_wrap
                    or a.rotation != b.rotation
                    or not overlaps(a.rect, b.rect, b.rotation)
                    or drop_cap):
                breaks.append(i)

        breaks.append(len(chars))
        return breaks

    def _classify_sup_sub(self, line: List[Glyph]) -> None:
        cfg = self.config
        heights = [glyph_height(g) for g in line]
        h_med = median(heights)
        if h_med <= 0:
            return

        lo = (1 - cfg.normal_height_band) * h_med
        hi = (1 + cfg.normal_height_band) * h_med
        normal = [g for g, h in zip(line, heights) if lo <= h <= hi]
        pool = normal if len(normal) >= 3 else line
        c_ref = median(perp_center(g) for g in pool)

        for g, h in zip(line, heights):
            if h / h_med > cfg.small_max_ratio:
                continue
            offset = (perp_center(g) - c_ref) / h_med
            g.sup = offset >= cfg.sup_min_offset
            g.sub = offset <= -cfg.sub_min_offset

    def word_spacing_threshold(self, line: Sequence[Glyph]) -> float:
        """
        Adaptive inter-word gap threshold for one line.

        Three regimes: nearly uniform spacing (single word unless explicit
        spaces separate two gap populations), small variation (midpoint of
        min and max gap) and large variation (min gap plus a fraction of
        the font size, or half way to the smallest explicit space).
        """
        cfg = self.config
        avg_font_size = sum(g.font_size for g in line) / len(line)
        min_gap = max_gap = 0.0
        min_adj = min_sp = 1.0
        max_adj = max_sp = 0.0

        for i in range(len(line) - 1):
            a = line[i]
            gap = space_between(a, line[i + 1])
            if a.space_after:
                if min_sp > max_sp:
                    min_sp = max_sp = gap
                elif gap < min_sp:
                    min_sp = gap
                elif gap > max_sp:
                    max_sp = gap
            elif min_adj > max_adj:
                min_adj = max_adj = gap
            elif gap < min_adj:
                min_adj = gap
            elif gap > max_adj:
                max_adj = gap
            if i == 0 or gap < min_gap:
                min_gap = gap
            if gap > max_gap:
                max_gap = gap

        min_gap = max(min_gap, 0.0)
        uniform = cfg.uniform_spacing * avg_font_size
        word = cfg.word_spacing * avg_font_size
        has_both = min_adj <= max_adj and min_sp <= max_sp

        if max_gap - min_gap < uniform:
            if has_both and min_sp - max_adj > 0.01:
                return 0.5 * (max_adj + min_sp)
            return max_gap + 1
        if max_gap - min_gap < word:
            return 0.5 * (min_gap + max_gap)
        if has_both and min_sp - max_adj > uniform:
            return min_gap + min(word, 0.5 * (min_sp - min_gap))
        return min_gap + word

    def _mark_words(self, chars: List[Glyph], start: int, end: int) -> None:
        cfg = self.config
        threshold = self.word_spacing_threshold(chars[start:end])

        for j in range(start + 1, end):
            a = chars[j - 1]
            b = chars[j]
            if is_rtl(a.char) and is_rtl(b.char):
                gap = a.rect[0] - b.rect[2]
            else:
                gap = space_between(a, b)

            if gap > threshold or gap < -a.font_size:
                a.space_after = True
                a.word_break_after = True
            elif (abs(a.baseline - b.baseline) > cfg.baseline_eps
                    or a.char in WORD_PUNCTUATION
                    or b.char in WORD_PUNCTUATION):
                a.word_break_after = True

        chars[end - 1].word_break_after = True

    def _mark_paragraphs(self, chars: List[Glyph], bounds: List[Tuple[int, int]]) -> None:
        cfg = self.config
        lines = [chars[s:e] for s, e in bounds]

        spacings = [
            _line_bottom(lines[i]) - _line_top(lines[i + 1])
            for i in range(len(lines) - 1)
        ]
        heights = [_line_top(line) - _line_bottom(line) for line in lines]

        def gap_valid(gap: Optional[float]) -> bool:
            return gap is not None and cfg.min_line_spacing <= gap <= cfg.max_line_spacing

        for i in range(len(lines) - 1):
            current = spacings[i]
            following = spacings[i + 1] if i + 1 < len(spacings) else None

            allow_gap = False
            if gap_valid(current) and not gap_valid(following):
                allow_gap = True
            elif gap_valid(current) and gap_valid(following):
                if abs(current - following) < cfg.max_line_spacing_change:
                    allow_gap = True
                elif current < following:
                    allow_gap = True

            current_rect = _bounding(lines[i])
            next_rect = _bounding(lines[i + 1])
            font_changed = (
                most_common_font(lines[i]) != most_common_font(lines[i + 1])
                and current_rect[2] < next_rect[2] - cfg.font_change_margin
            )

            if (not allow_gap
                    or not current_rect[1] > next_rect[3]
                    or font_changed
                    or abs(heights[i] - heights[i + 1]) > cfg.line_height_margin):
                lines[i][-1].paragraph_break_after = True

        chars[-1].paragraph_break_after = True

    def _mark_line(self, line: List[Glyph]) -> None:
        line[-1].line_break_after = True
        rect = _bounding(line)
        vertical = line[0].rotation in (90, 270)
        for g in line:
            if vertical:
                g.inline_rect = (rect[0], g.rect[1], rect[2], g.rect[3])
            else:
                g.inline_rect = (g.rect[0], rect[1], g.rect[2], rect[3])


def structure_glyphs(
    glyphs: Sequence[Glyph],
    config: Optional[StructureConfig] = None
) -> List[Glyph]:
    """
    Convenience function for structuring one page.
    """
    return GlyphStructurer(config).structure(glyphs)


def glyphs_to_text(glyphs: Sequence[Glyph]) -> str:
    """
    Render structured glyphs as plain text.

    One space per explicit space or soft line break, a blank line per
    paragraph break. Ignorable glyphs (wrap hyphens) are dropped.
    """
    parts = []
    for g in glyphs:
        if not g.ignorable:
            parts.append(g.char)
        if g.space_after or g.line_break_after and not g.paragraph_break_after:
            parts.append(' ')
        if g.paragraph_break_after:
            parts.append('\n\n')
    return ''.join(parts).strip()
