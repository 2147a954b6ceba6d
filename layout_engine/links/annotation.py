"""
Annotation Link Overlays
========================
Overlays built from the page's link annotations.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from ..geometry import rect_center
from ..types import (
    Annotation, ExternalLinkOverlay, Glyph, InternalLinkOverlay, Overlay,
    Position, SOURCE_ANNOTATION, sort_index,
)

logger = logging.getLogger(__name__)


def destinations_equal(a: Overlay, b: Overlay) -> bool:
    """Same target: equal resolved positions or equal URLs"""
    if isinstance(a, InternalLinkOverlay) and isinstance(b, InternalLinkOverlay):
        return a.destination_position == b.destination_position
    if isinstance(a, ExternalLinkOverlay) and isinstance(b, ExternalLinkOverlay):
        return a.url == b.url
    return False


def covered_range(glyphs: Sequence[Glyph], rect) -> Tuple[Optional[int], Optional[int]]:
    """
    Offsets of the contiguous glyph run whose centers lie inside `rect`.

    (None, None) when nothing is covered or the covered glyphs aren't
    contiguous.
    """
    start = end = None
    for i, g in enumerate(glyphs):
        x, y = rect_center(g.rect)
        if rect[0] <= x <= rect[2] and rect[1] <= y <= rect[3]:
            if start is None:
                start = i
            elif i - end != 1:
                return None, None
            end = i
    return start, end


class AnnotationOverlayBuilder:
    """Turn link annotations into overlays, merging adjacent pieces"""

    def __init__(self, resolve_destination: Callable[[Any], Optional[Position]]):
        self.resolve_destination = resolve_destination

    def build(
        self,
        glyphs: Sequence[Glyph],
        page_index: int,
        annotations: Sequence[Annotation]
    ) -> List[Overlay]:
        pieces = []
        for annotation in annotations:
            if not (annotation.url or annotation.dest) or not annotation.rect:
                continue

            start, end = covered_range(glyphs, annotation.rect)
            position = Position(page_index=page_index, rects=[tuple(annotation.rect)])
            key = sort_index(page_index, start or 0, 0)

            if annotation.url:
                overlay = ExternalLinkOverlay(
                    position=position, sort_index=key,
                    source=SOURCE_ANNOTATION, url=annotation.url,
                )
            else:
                destination = self.resolve_destination(annotation.dest)
                if destination is None:
                    logger.debug(f"Page {page_index}: unresolved link destination {annotation.dest!r}")
                    continue
                overlay = InternalLinkOverlay(
                    position=position, sort_index=key,
                    source=SOURCE_ANNOTATION, destination_position=destination,
                )
            pieces.append((overlay, start, end))

        # Merge annotations split over several lines into one overlay
        merged: List[list] = []
        for overlay, start, end in pieces:
            if merged:
                prev = merged[-1]
                if (prev[2] is not None and start is not None
                        and prev[2] + 1 == start
                        and destinations_equal(prev[0], overlay)):
                    prev[0].position.rects.extend(overlay.position.rects)
                    prev[2] = end
                    continue
            merged.append([overlay, start, end])

        return [m[0] for m in merged]


def annotation_overlays(
    glyphs: Sequence[Glyph],
    page_index: int,
    annotations: Sequence[Annotation],
    resolve_destination: Callable[[Any], Optional[Position]]
) -> List[Overlay]:
    """
    Convenience function for annotation overlays.
    """
    return AnnotationOverlayBuilder(resolve_destination).build(glyphs, page_index, annotations)
