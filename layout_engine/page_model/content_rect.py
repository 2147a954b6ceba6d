"""
Content Rectangle Detector
==========================
Infers the usable text area of each page by removing boilerplate lines
(running headers, footers, page numbers) that repeat at the same height
on neighbouring pages.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from ..clustering import get_clusters
from ..geometry import intersect_rects, rect_center
from ..types import Glyph, Rect

logger = logging.getLogger(__name__)


@dataclass
class ContentRectConfig:
    """Configuration for content rect inference"""
    neighborhood: int = 2              # Pages on each side compared against
    cluster_eps: float = 0.2           # Vertical center tolerance
    min_cluster_size: int = 2
    max_cluster_size: int = 10
    max_length_ratio: float = 0.2      # Relative length difference for comparison
    max_edit_ratio: float = 0.2        # Normalized edit distance for "same line"
    shrink_eps: float = 0.1
    max_pages: int = 100
    max_size_classes: int = 3


@dataclass(eq=False)
class PageLine:
    """One text line of a page with its bounding rect"""
    page_index: int
    rect: Rect
    text: str
    center_y: float = 0.0
    glyphs: List[Glyph] = field(default_factory=list, repr=False)


def lines_from_glyphs(glyphs: Sequence[Glyph], view: Rect, page_index: int = 0) -> List[PageLine]:
    """Group structured glyphs into lines using line_break_after"""
    lines = []
    current: List[Glyph] = []
    for g in glyphs:
        current.append(g)
        if g.line_break_after:
            lines.append(current)
            current = []

    result = []
    for chunk in lines:
        rect = (
            min(g.rect[0] for g in chunk),
            min(g.rect[1] for g in chunk),
            max(g.rect[2] for g in chunk),
            max(g.rect[3] for g in chunk),
        )
        result.append(PageLine(
            page_index=chunk[0].page_index if chunk else page_index,
            rect=rect,
            text=''.join(g.char for g in chunk),
            center_y=rect_center(rect)[1] - view[1],
            glyphs=chunk,
        ))
    return result


def page_size_classes(views: Sequence[Rect]) -> List[List[int]]:
    """Runs of consecutive pages sharing the same width and height"""
    classes: List[List[int]] = []
    for i, view in enumerate(views):
        size = (view[2] - view[0], view[3] - view[1])
        if classes:
            last = views[classes[-1][-1]]
            if size == (last[2] - last[0], last[3] - last[1]):
                classes[-1].append(i)
                continue
        classes.append([i])
    return classes


class ContentRectDetector:
    """
    Detect per-page content rectangles.

    Lines are clustered by vertical center within a window of pages; a
    line whose text nearly equals a line of another page in the same
    cluster is boilerplate and doesn't count towards the content area.
    """

    def __init__(self, config: Optional[ContentRectConfig] = None):
        self.config = config or ContentRectConfig()

    def detect(
        self,
        views: Sequence[Rect],
        glyph_provider: Callable[[int], List[Glyph]],
        page_labels: Optional[Sequence[str]] = None
    ) -> List[Rect]:
        """
        Args:
            views: Raw view box per page
            glyph_provider: Returns structured glyphs for a page index
            page_labels: Inferred page label per page

        Returns:
            Content rect per page
        """
        cfg = self.config
        num_pages = len(views)
        rects = [tuple(v) for v in views]

        if num_pages > cfg.max_pages:
            logger.info(f"Content rects skipped: {num_pages} pages")
            return rects

        classes = page_size_classes(views)
        if len(classes) > cfg.max_size_classes:
            logger.info(f"Content rects skipped: {len(classes)} page size classes")
            return rects

        page_lines = [
            lines_from_glyphs(glyph_provider(i), views[i], i)
            for i in range(num_pages)
        ]

        for page_index in range(num_pages):
            label = page_labels[page_index] if page_labels and page_index < len(page_labels) else ''
            rects[page_index] = self._page_rect(page_index, page_lines, views[page_index], label)

        return rects

    def _page_rect(
        self,
        page_index: int,
        page_lines: List[List[PageLine]],
        view: Rect,
        label: str
    ) -> Rect:
        cfg = self.config
        start = max(page_index - cfg.neighborhood, 0)
        end = min(page_index + cfg.neighborhood, len(page_lines) - 1)

        combined = [line for i in range(start, end + 1) for line in page_lines[i]]
        repeated = set()

        for cluster in get_clusters(combined, lambda x: x.center_y, cfg.cluster_eps):
            if not cfg.min_cluster_size <= len(cluster) <= cfg.max_cluster_size:
                continue
            for line in cluster:
                if line.page_index != page_index:
                    continue
                for other in cluster:
                    if other.page_index == page_index or id(line) in repeated:
                        continue
                    if self._same_text(line.text, other.text):
                        repeated.add(id(line))

        kept = []
        for line in page_lines[page_index]:
            if id(line) in repeated:
                continue
            if label and (line.text == label or len(label) >= 2 and label in line.text):
                continue
            if not intersect_rects(line.rect, view):
                continue
            kept.append(line)

        if not kept:
            return tuple(view)

        eps = cfg.shrink_eps
        rect = (
            min(x.rect[0] for x in kept) + eps,
            min(x.rect[1] for x in kept) + eps,
            max(x.rect[2] for x in kept) - eps,
            max(x.rect[3] for x in kept) - eps,
        )
        # Clamp to the view box
        return (
            max(rect[0], view[0]),
            max(rect[1], view[1]),
            min(rect[2], view[2]),
            min(rect[3], view[3]),
        )

    def _same_text(self, a: str, b: str) -> bool:
        cfg = self.config
        longest = max(len(a), len(b))
        if not longest or (longest - min(len(a), len(b))) / longest > cfg.max_length_ratio:
            return False
        return Levenshtein.distance(a, b) / len(a) <= cfg.max_edit_ratio


def detect_content_rects(
    views: Sequence[Rect],
    glyph_provider: Callable[[int], List[Glyph]],
    page_labels: Optional[Sequence[str]] = None,
    config: Optional[ContentRectConfig] = None
) -> List[Rect]:
    """
    Convenience function for content rect detection.
    """
    return ContentRectDetector(config).detect(views, glyph_provider, page_labels)
