"""
List Number Strategy
====================
Numbered bibliographies: "[12] Author ...", "12. Author ...", "(12) ...".

Short numeric tokens at line starts are clustered by the horizontal gap
between the number and the following text. Numbers of one list share the
same gap (or the same start-to-text distance for right-aligned numbers).
"""

from typing import List, Optional, Sequence

from ..types import Glyph
from .common import (
    BreakPoint, ExtractionResult, ReferenceConfig,
    cluster_break_points, in_document_tail, references_from_group, segments_from_clusters,
)

LIST_NUMBER_CHARS = frozenset('0123456789()[].:')


def _is_list_number(word: Sequence[Glyph], max_digits: int) -> bool:
    first = word[0].char
    last = word[-1].char
    if word[-1].line_break_after:
        return False
    if first == '(' and last != ')' or first == '[' and last != ']':
        return False
    if last == ')' and first != '(' or last == ']' and first != '[':
        return False
    if any(g.char not in LIST_NUMBER_CHARS for g in word):
        return False
    digits = sum(1 for g in word if g.char.isdigit())
    return 0 < digits <= max_digits and len(word) <= digits + 2


class ListNumberStrategy:
    """Segment references at list numbers"""

    name = 'list-number'

    def __init__(self, config: Optional[ReferenceConfig] = None):
        self.config = config or ReferenceConfig()

    def break_points(self, chars: Sequence[Glyph], section_offset: int) -> List[BreakPoint]:
        points = []
        word: List[Glyph] = []
        start = section_offset

        for i in range(section_offset, len(chars)):
            g = chars[i]
            word.append(g)
            if not (g.space_after or g.line_break_after or g.paragraph_break_after
                    or i == len(chars) - 1):
                continue

            before = chars[start - 1] if start > 0 else None
            at_line_start = before is None or before.line_break_after or before.paragraph_break_after
            if at_line_start and _is_list_number(word, self.config.max_number_digits):
                digits = ''.join(x.char for x in word if x.char.isdigit())
                point = BreakPoint(
                    offset=start,
                    page_index=g.page_index,
                    text=''.join(x.char for x in word),
                    number=int(digits),
                )
                following = start + len(word)
                if following < len(chars):
                    last_digit = [x for x in word if x.char.isdigit()][-1]
                    point.gap = chars[following].rect[0] - last_digit.rect[2]
                    point.gap2 = chars[following].rect[0] - word[0].rect[0]
                points.append(point)

            word = []
            start = i + 1

        return points

    def extract(self, chars: Sequence[Glyph], section_offset: int) -> Optional[ExtractionResult]:
        cfg = self.config
        points = self.break_points(chars, section_offset)
        if not points:
            return None

        clusters = (
            cluster_break_points(points, lambda bp: bp.gap, cfg.number_gap_eps)
            + cluster_break_points(points, lambda bp: bp.gap2, cfg.number_gap_eps)
        )
        groups = segments_from_clusters(chars, clusters, cfg)
        if not section_offset:
            groups = [g for g in groups if in_document_tail(chars, g[0].offset, cfg)]
        if not groups:
            return None

        group = max(groups, key=len)
        return ExtractionResult(
            references=references_from_group(group, use_index=True),
            offset=group[0].offset,
            strategy=self.name,
        )
