"""
First Line Indent Strategy
==========================
Bibliographies where the first line of each entry is indented differently
from its continuation lines (hanging or regular indent).

A line whose successor starts at a different x (within a plausible indent
band) marks an entry start. Line spacing around it must stay regular,
otherwise the indent change is a paragraph or block boundary.
"""

from collections import Counter
from typing import List, Optional, Sequence

from ..types import Glyph
from .common import (
    BreakPoint, ExtractionResult, ReferenceConfig, Segment,
    can_start_with, cluster_break_points, in_document_tail,
    references_from_group, segments_from_clusters, stream_lines,
)


def closest_smaller_and_higher(values: Sequence[int], target: int) -> List[int]:
    smaller = None
    higher = None
    for v in values:
        if v < target and (smaller is None or v > smaller):
            smaller = v
        elif v > target and (higher is None or v < higher):
            higher = v
    return [v for v in (smaller, higher) if v is not None]


class FirstLineIndentStrategy:
    """Segment references at indent changes"""

    name = 'first-line-indent'

    def __init__(self, config: Optional[ReferenceConfig] = None):
        self.config = config or ReferenceConfig()

    def break_points(self, chars: Sequence[Glyph], section_offset: int) -> List[BreakPoint]:
        cfg = self.config
        lines = stream_lines(chars)
        points = []

        for i in range(1, len(lines)):
            before = lines[i - 2] if i >= 2 else None
            prev = lines[i - 1]
            line = lines[i]
            following = lines[i + 1] if i + 1 < len(lines) else None

            if section_offset and prev.offset < section_offset:
                continue

            spacing = prev.rect[1] - line.rect[3]
            irregular = False
            if following is not None:
                next_spacing = line.rect[1] - following.rect[3]
                if not (spacing < next_spacing or abs(spacing - next_spacing) < cfg.spacing_eps):
                    irregular = True
            if before is not None:
                before_spacing = before.rect[1] - prev.rect[3]
                if not (spacing < before_spacing or abs(spacing - before_spacing) < cfg.spacing_eps):
                    irregular = True

            delta = line.rect[0] - prev.rect[0]
            if (cfg.min_indent_delta < abs(delta) < cfg.max_indent_delta
                    and can_start_with(prev.chars[0])
                    and not irregular):
                points.append(BreakPoint(
                    offset=prev.offset,
                    page_index=prev.page_index,
                    text=prev.text,
                    delta=delta,
                ))
        return points

    def add_aligned_breaks(
        self,
        chars: Sequence[Glyph],
        clusters: List[List[BreakPoint]],
        section_offset: int
    ) -> None:
        """
        Single-line entries have no indent change of their own; add a break
        at each line start aligned with the nearest existing entry start.
        """
        for cluster in clusters:
            offsets = [bp.offset for bp in cluster]
            start = min(offsets)
            end = max(offsets)
            start_page = chars[start].page_index
            end_page = chars[end].page_index

            if section_offset and section_offset < len(chars) and chars[section_offset].page_index == start_page:
                start = section_offset
            while end < len(chars) - 1 and chars[end].page_index <= end_page:
                end += 1

            known = set(offsets)
            extra = []
            for i in range(max(start, 1), end):
                g = chars[i]
                if not chars[i - 1].line_break_after or not can_start_with(g) or i in known:
                    continue
                for closest in closest_smaller_and_higher(offsets, i):
                    if abs(chars[closest].rect[0] - g.rect[0]) < self.config.align_eps:
                        extra.append(i)
                        break

            for offset in extra:
                cluster.append(BreakPoint(offset=offset, page_index=chars[offset].page_index, text='---'))
            cluster.sort(key=lambda bp: bp.offset)

    def _concentrated(self, groups: List[List[Segment]]) -> List[List[Segment]]:
        result = []
        for group in groups:
            counts = Counter(s.page_index for s in group if s.valid)
            dense = [
                s for s in group
                if max(counts[s.page_index - 1], counts[s.page_index], counts[s.page_index + 1])
                >= self.config.min_density
            ]
            if dense:
                result.append(dense)
        return result

    def extract(self, chars: Sequence[Glyph], section_offset: int) -> Optional[ExtractionResult]:
        cfg = self.config
        points = self.break_points(chars, section_offset)
        clusters = cluster_break_points(points, lambda bp: bp.delta, cfg.indent_eps)
        self.add_aligned_breaks(chars, clusters, section_offset)

        groups = segments_from_clusters(chars, clusters, cfg)
        groups = self._concentrated(groups)
        groups = [
            g for g in groups
            if sum(1 for s in g if s.valid) / len(g) >= cfg.indent_validity
        ]
        if not section_offset:
            groups = [g for g in groups if in_document_tail(chars, g[0].offset, cfg)]
        if not groups:
            return None

        group = max(groups, key=len)
        return ExtractionResult(
            references=references_from_group(group),
            offset=group[0].offset,
            strategy=self.name,
        )
