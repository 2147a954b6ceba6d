"""
Link Overlay Detector
=====================
Combines annotation, matched and parsed link overlays per page.

Sources are merged in priority order; a later source only contributes
overlays that don't intersect an overlay already kept.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..geometry import overlays_intersect
from ..types import Glyph, Overlay
from .annotation import annotation_overlays
from .matched import CrossReferenceMatcher
from .parsed import parsed_overlays

logger = logging.getLogger(__name__)


@dataclass
class LinkConfig:
    """Configuration for link overlay detection"""
    max_pages: int = 50                # Pages scanned for document-level links
    match_window: int = 5              # Pages on each side for cross-references
    label_gap: float = 10.0
    min_label_length: int = 3
    enable_matched: bool = True


def merge_overlays(kept: List[Overlay], extra: Sequence[Overlay]) -> List[Overlay]:
    """Append overlays from `extra` that don't intersect anything in `kept`"""
    result = list(kept)
    for overlay in extra:
        if not any(overlays_intersect(x, overlay) for x in result):
            result.append(overlay)
    return result


class LinkOverlayDetector:
    """
    Detect link overlays through a DocumentContext.

    The context provides structured glyphs, page info (annotations) and
    destination resolution.
    """

    def __init__(self, context, config: Optional[LinkConfig] = None):
        self.context = context
        self.config = config or LinkConfig()
        self.matcher = CrossReferenceMatcher(
            window=self.config.match_window,
            label_gap=self.config.label_gap,
            min_label_length=self.config.min_label_length,
        )

    def _annotation_overlays(self, glyphs: List[Glyph], page_index: int) -> List[Overlay]:
        page = self.context.page(page_index)
        return annotation_overlays(
            glyphs, page_index, page.annotations, self.context.resolve_destination
        )

    def regular_overlays(self, page_index: int, glyphs: Optional[List[Glyph]] = None) -> List[Overlay]:
        """Annotation and parsed overlays of one page (no cross-references)"""
        if glyphs is None:
            glyphs = self.context.glyphs(page_index)
        overlays = self._annotation_overlays(glyphs, page_index)
        return merge_overlays(overlays, parsed_overlays(glyphs, page_index))

    def page_overlays(self, page_index: int) -> List[Overlay]:
        glyphs = self.context.glyphs(page_index)
        overlays = self._annotation_overlays(glyphs, page_index)
        if self.config.enable_matched:
            matched = self.matcher.overlays(
                page_index, self.context.num_pages, self.context.glyphs
            )
            overlays = merge_overlays(overlays, matched)
        return merge_overlays(overlays, parsed_overlays(glyphs, page_index))

    def detect(self) -> Dict[int, List[Overlay]]:
        """Overlays per page index for the first `max_pages` pages"""
        pages: Dict[int, List[Overlay]] = {}
        for i in range(min(self.config.max_pages, self.context.num_pages)):
            overlays = self.page_overlays(i)
            if overlays:
                pages[i] = overlays
        logger.debug(f"Link overlays on {len(pages)} pages")
        return pages
