"""
Reference Extractor
===================
Runs the three segmentation strategies over the document stream and keeps
the one that yields the most references.

Extraction flow:
1. Locate the references section title (optional)
2. Run list-number, first-line-indent and paragraph-spacing strategies
3. Keep the result with the most references
4. Attach URLs from external-link overlays and style runs
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..geometry import center_rect, intersect_rects
from ..types import ExternalLinkOverlay, Glyph, Overlay, Reference
from .common import ExtractionResult, ReferenceConfig, references_title_offset, text_parts
from .first_line_indent import FirstLineIndentStrategy
from .list_number import ListNumberStrategy
from .paragraph_spacing import ParagraphSpacingStrategy

logger = logging.getLogger(__name__)

LinkProvider = Callable[[int, List[Glyph]], List[Overlay]]


class ReferenceExtractor:
    """
    Extract bibliography entries from the whole-document glyph stream.

    The stream must already exclude isolated (out of content rect) glyphs.
    """

    def __init__(self, config: Optional[ReferenceConfig] = None):
        self.config = config or ReferenceConfig()
        self.strategies = [
            ListNumberStrategy(self.config),
            FirstLineIndentStrategy(self.config),
            ParagraphSpacingStrategy(self.config),
        ]

    def extract(
        self,
        chars: Sequence[Glyph],
        link_provider: Optional[LinkProvider] = None
    ) -> Optional[ExtractionResult]:
        """
        Args:
            chars: Document glyph stream
            link_provider: Returns link overlays for (page index, page glyphs)

        Returns:
            ExtractionResult, or None when no strategy found references
        """
        if not chars:
            return None

        section_offset = references_title_offset(chars, self.config)
        logger.debug(f"References title offset: {section_offset}")

        best: Optional[ExtractionResult] = None
        for strategy in self.strategies:
            result = strategy.extract(chars, section_offset)
            if result is None:
                logger.debug(f"Strategy {strategy.name}: no references")
                continue
            logger.debug(f"Strategy {strategy.name}: {len(result.references)} references")
            if best is None or len(result.references) > len(best.references):
                best = result

        if best is None or not best.references:
            return None

        if link_provider is not None:
            self._add_urls(chars, best.references, link_provider)
        for reference in best.references:
            reference.text_parts = text_parts(reference.chars)

        logger.info(f"Extracted {len(best.references)} references ({best.strategy})")
        return best

    def _add_urls(
        self,
        chars: Sequence[Glyph],
        references: List[Reference],
        link_provider: LinkProvider
    ) -> None:
        """Set glyph.url for reference glyphs covered by external links"""
        by_page: Dict[int, List[Glyph]] = {}
        for g in chars:
            by_page.setdefault(g.page_index, []).append(g)

        pages = [r.position.page_index for r in references]
        for page_index in range(min(pages), max(pages) + 1):
            links = [
                o for o in link_provider(page_index, by_page.get(page_index, []))
                if isinstance(o, ExternalLinkOverlay)
            ]
            for link in links:
                for reference in references:
                    for g in reference.chars:
                        if g.page_index != link.position.page_index:
                            continue
                        if any(intersect_rects(center_rect(g.rect), r) for r in link.position.rects):
                            g.url = link.url


def extract_references(
    chars: Sequence[Glyph],
    link_provider: Optional[LinkProvider] = None,
    config: Optional[ReferenceConfig] = None
) -> Optional[ExtractionResult]:
    """
    Convenience function for reference extraction.
    """
    return ReferenceExtractor(config).extract(chars, link_provider)
