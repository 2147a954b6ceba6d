"""
Document Context
================
Per-analysis access to a DocumentSource.

- Caches the catalog, page info and structured glyphs, so each page is
  fetched and structured at most once per analysis.
- Acts as the failure boundary: page, glyph and destination failures are
  logged and treated as a missing signal. Catalog failures propagate.
- Marks glyphs outside the page content rect as isolated once content
  rects are known.
- Checks a cancellation token whenever it goes to the source for a page.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .geometry import intersect_rects
from .source import DocumentSource
from .structure import GlyphStructurer, StructureConfig
from .types import Catalog, Glyph, PageInfo, Position, Rect

logger = logging.getLogger(__name__)


class AnalysisCancelled(Exception):
    """Raised at a page boundary after the analysis was cancelled"""
    pass


class CancellationToken:
    """Cooperative cancellation flag shared with a running analysis"""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def check(self) -> None:
        if self._cancelled:
            raise AnalysisCancelled("Analysis cancelled")


class DocumentContext:
    """
    Cached, failure-tolerant view of one document.

    Usage:
        context = DocumentContext(source)
        glyphs = context.glyphs(0)
    """

    def __init__(
        self,
        source: DocumentSource,
        structure_config: Optional[StructureConfig] = None,
        cancel_token: Optional[CancellationToken] = None
    ):
        self.source = source
        self.structurer = GlyphStructurer(structure_config)
        self.cancel_token = cancel_token

        self._catalog: Optional[Catalog] = None
        self._pages: Dict[int, PageInfo] = {}
        self._glyphs: Dict[int, List[Glyph]] = {}
        self._content_rects: Optional[List[Rect]] = None
        self._isolated_pages = set()

    def _check_cancelled(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.check()

    # =========================================================================
    # Document-wide
    # =========================================================================

    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = self.source.catalog()
        return self._catalog

    @property
    def num_pages(self) -> int:
        return self.catalog().num_pages

    def views(self) -> List[Rect]:
        return [self.page(i).view for i in range(self.num_pages)]

    # =========================================================================
    # Per page
    # =========================================================================

    def page(self, page_index: int) -> PageInfo:
        """Page info, or a default page when the source fails"""
        page = self._pages.get(page_index)
        if page is not None:
            return page

        self._check_cancelled()
        try:
            page = self.source.get_page(page_index)
        except Exception as e:
            logger.warning(f"Failed to get page {page_index}: {e}")
            page = PageInfo()
        self._pages[page_index] = page
        return page

    def glyphs(self, page_index: int) -> List[Glyph]:
        """Structured glyphs of a page (empty when the source fails)"""
        glyphs = self._glyphs.get(page_index)
        if glyphs is None:
            self._check_cancelled()
            try:
                raw = self.source.get_glyphs(page_index)
            except Exception as e:
                logger.warning(f"Failed to get glyphs of page {page_index}: {e}")
                raw = []
            glyphs = self.structurer.structure(raw)
            for g in glyphs:
                g.page_index = page_index
            self._glyphs[page_index] = glyphs

        if self._content_rects is not None and page_index not in self._isolated_pages:
            self._mark_isolated(page_index, glyphs)
        return glyphs

    def resolve_destination(self, dest: Any) -> Optional[Position]:
        if dest is None:
            return None
        try:
            return self.source.resolve_destination(dest)
        except Exception as e:
            logger.warning(f"Failed to resolve destination {dest!r}: {e}")
            return None

    def internal_links(self, page_index: int) -> List[Tuple[Rect, Position]]:
        """(annotation rect, resolved destination) of the page's internal links"""
        links = []
        for annotation in self.page(page_index).annotations:
            if annotation.url or annotation.dest is None:
                continue
            position = self.resolve_destination(annotation.dest)
            if position is not None:
                links.append((annotation.rect, position))
        return links

    # =========================================================================
    # Content rects
    # =========================================================================

    def set_content_rects(self, rects: Sequence[Rect]) -> None:
        """Glyphs outside their page's rect become isolated"""
        self._content_rects = list(rects)
        self._isolated_pages = set()

    def _mark_isolated(self, page_index: int, glyphs: List[Glyph]) -> None:
        if page_index < len(self._content_rects):
            rect = self._content_rects[page_index]
            for g in glyphs:
                g.isolated = not intersect_rects(rect, g.rect)
        self._isolated_pages.add(page_index)

