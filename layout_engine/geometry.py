"""
Geometry Helpers
================
Rect arithmetic shared by all analysis stages.
"""

import math
from typing import List, Sequence, Tuple

from .types import Glyph, Overlay, Position, Rect


def intersect_rects(r1: Rect, r2: Rect) -> bool:
    """True if the rects touch or overlap"""
    return not (
        r2[0] > r1[2]
        or r2[2] < r1[0]
        or r2[1] > r1[3]
        or r2[3] < r1[1]
    )


def rect_center(rect: Rect) -> Tuple[float, float]:
    return (rect[0] + rect[2]) / 2, (rect[1] + rect[3]) / 2


def center_rect(rect: Rect) -> Rect:
    """Zero-area rect at the center of `rect`"""
    x, y = rect_center(rect)
    return (x, y, x, y)


def bounding_rect(glyphs: Sequence[Glyph]) -> Rect:
    return (
        min(g.rect[0] for g in glyphs),
        min(g.rect[1] for g in glyphs),
        max(g.rect[2] for g in glyphs),
        max(g.rect[3] for g in glyphs),
    )


def union_rects(rects: Sequence[Rect]) -> Rect:
    return (
        min(r[0] for r in rects),
        min(r[1] for r in rects),
        max(r[2] for r in rects),
        max(r[3] for r in rects),
    )


def _axis_gaps(a: Rect, b: Rect) -> Tuple[float, float]:
    dx = 0.0
    if a[2] < b[0]:
        dx = b[0] - a[2]
    elif b[2] < a[0]:
        dx = a[0] - b[2]

    dy = 0.0
    if a[3] < b[1]:
        dy = b[1] - a[3]
    elif b[3] < a[1]:
        dy = a[1] - b[3]
    return dx, dy


def closest_distance(a: Rect, b: Rect) -> float:
    """Chebyshev gap between two rects (0 when they overlap)"""
    return max(_axis_gaps(a, b))


def min_axis_distance(a: Rect, b: Rect) -> float:
    """Smaller of the horizontal and vertical gaps"""
    return min(_axis_gaps(a, b))


def glyph_distance(a: Glyph, b: Glyph) -> float:
    """Euclidean gap between two glyph rects"""
    return math.hypot(*_axis_gaps(a.rect, b.rect))


def range_rects(glyphs: Sequence[Glyph], start: int, end: int) -> List[Rect]:
    """One rect per line for glyphs[start..end] (inclusive)"""
    rects = []
    line_start = start
    for i in range(start, end + 1):
        glyph = glyphs[i]
        if glyph.line_break_after or i == end:
            first = glyphs[line_start]
            rects.append((first.rect[0], first.bounds[1], glyph.rect[2], first.bounds[3]))
            line_start = i + 1
    return rects


def line_rects(glyphs: Sequence[Glyph]) -> List[Rect]:
    """Union of inline rects per line"""
    rects = []
    current = None
    for glyph in glyphs:
        r = glyph.bounds
        if current is None:
            current = r
        current = (
            min(current[0], r[0]),
            min(current[1], r[1]),
            max(current[2], r[2]),
            max(current[3], r[3]),
        )
        if glyph.line_break_after:
            rects.append(current)
            current = None
    if current is not None:
        rects.append(current)
    return rects


def position_from_glyphs(glyphs: Sequence[Glyph], page_index: int) -> Position:
    """Position on `page_index`, spilling other glyphs into next_page_rects"""
    here = [g for g in glyphs if g.page_index == page_index]
    rest = [g for g in glyphs if g.page_index != page_index]
    position = Position(page_index=page_index, rects=line_rects(here))
    if rest:
        position.next_page_rects = line_rects(rest)
    return position


def overlays_intersect(a: Overlay, b: Overlay) -> bool:
    if a.position.page_index != b.position.page_index:
        return False
    return any(
        intersect_rects(r1, r2)
        for r1 in a.position.rects
        for r2 in b.position.rects
    )
