"""
Paragraph Spacing Strategy
==========================
Bibliographies where entries are separated by extra vertical space.
"""

from collections import Counter
from typing import List, Optional, Sequence

from ..types import Glyph
from .common import (
    BreakPoint, ExtractionResult, ReferenceConfig, Segment,
    can_start_with, cluster_break_points, in_document_tail,
    references_from_group, segments_from_clusters, stream_lines,
)


class ParagraphSpacingStrategy:
    """Segment references at gaps between lines"""

    name = 'paragraph-spacing'

    def __init__(self, config: Optional[ReferenceConfig] = None):
        self.config = config or ReferenceConfig()

    def break_points(self, chars: Sequence[Glyph], section_offset: int) -> List[BreakPoint]:
        lines = stream_lines(chars)
        points = []
        for prev, line in zip(lines, lines[1:]):
            if section_offset and prev.offset < section_offset:
                continue
            spacing = prev.rect[1] - line.rect[3]
            if spacing > 0 and can_start_with(line.chars[0]):
                points.append(BreakPoint(
                    offset=line.offset,
                    page_index=line.page_index,
                    text=line.text,
                    spacing=spacing,
                ))
        return points

    @staticmethod
    def _drop_inner_gaps(groups: List[List[Segment]]) -> List[List[Segment]]:
        """Drop segments containing a line gap larger than their own break gap"""
        result = []
        for group in groups:
            kept = []
            for seg in group:
                inner_gap = any(
                    a.line_break_after
                    and not a.rect[3] < b.rect[1]
                    and a.rect[1] - b.rect[3] > seg.spacing
                    for a, b in zip(seg.chars, seg.chars[1:])
                )
                if not inner_gap:
                    kept.append(seg)
            if kept:
                result.append(kept)
        return result

    @staticmethod
    def _longest_continuous(groups: List[List[Segment]]) -> List[List[Segment]]:
        """Longest run of segments that follow each other without a hole"""
        result = []
        for group in groups:
            longest: List[Segment] = []
            current: List[Segment] = []
            for prev, seg in zip([None] + group, group):
                if prev is None or prev.offset + len(prev.chars) != seg.offset:
                    if len(current) > len(longest):
                        longest = current
                    current = [seg]
                else:
                    current.append(seg)
            if len(current) > len(longest):
                longest = current
            if longest:
                result.append(longest)
        return result

    def _dense(self, groups: List[List[Segment]]) -> List[List[Segment]]:
        result = []
        for group in groups:
            counts = Counter(s.page_index for s in group if s.valid)
            if counts and max(counts.values()) >= self.config.min_density:
                result.append(group)
        return result

    def extract(self, chars: Sequence[Glyph], section_offset: int) -> Optional[ExtractionResult]:
        cfg = self.config
        points = self.break_points(chars, section_offset)
        clusters = cluster_break_points(points, lambda bp: bp.spacing, cfg.spacing_eps)

        groups = segments_from_clusters(chars, clusters, cfg)
        groups = self._drop_inner_gaps(groups)
        groups = self._longest_continuous(groups)
        groups = [
            g for g in groups
            if sum(1 for s in g if s.valid) / len(g) >= cfg.spacing_validity
        ]
        groups = self._dense(groups)
        if not section_offset:
            groups = [g for g in groups if in_document_tail(chars, g[0].offset, cfg)]

        # Ambiguous when more than one group survives
        if len(groups) != 1:
            return None

        group = groups[0]
        return ExtractionResult(
            references=references_from_group(group),
            offset=group[0].offset,
            strategy=self.name,
        )
