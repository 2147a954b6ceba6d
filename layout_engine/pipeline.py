"""
Layout Pipeline
===============
Single entry point for analysing a document.
Orchestrates: Structure -> PageLabels -> ContentRects -> References ->
Citations -> Links, plus the outline.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .bib import ReferenceConfig, ReferenceExtractor
from .context import CancellationToken, DocumentContext
from .geometry import overlays_intersect
from .links import LinkConfig, LinkOverlayDetector
from .matcher import CitationConfig, CitationMatcher
from .outline import OutlineConfig, OutlineExtractor, OutlineNormalizer
from .page_model import ContentRectConfig, ContentRectDetector, PageLabelConfig, PageLabelInferencer
from .source import DocumentSource
from .structure import StructureConfig
from .types import ExternalLinkOverlay, Glyph, InternalLinkOverlay, OutlineNode, Overlay, Rect

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Complete pipeline configuration"""
    structure: StructureConfig = field(default_factory=StructureConfig)
    content_rect: ContentRectConfig = field(default_factory=ContentRectConfig)
    page_labels: PageLabelConfig = field(default_factory=PageLabelConfig)
    outline: OutlineConfig = field(default_factory=OutlineConfig)
    links: LinkConfig = field(default_factory=LinkConfig)
    references: ReferenceConfig = field(default_factory=ReferenceConfig)
    citations: CitationConfig = field(default_factory=CitationConfig)

    # Feature toggles
    enable_references: bool = True
    enable_links: bool = True

    # Debug
    debug: bool = False

    @classmethod
    def default(cls) -> 'PipelineConfig':
        """Full analysis"""
        return cls()

    @classmethod
    def links_only(cls) -> 'PipelineConfig':
        """Link overlays without reference and citation analysis"""
        return cls(enable_references=False)


@dataclass
class DebugBundle:
    """Debug information from a pipeline run"""
    num_pages: int = 0
    page_labels_sample: List[str] = field(default_factory=list)
    trimmed_content_rects: int = 0

    reference_strategy: str = ''
    references_count: int = 0
    references_offset: int = 0
    citations_count: int = 0
    cited_references_count: int = 0

    link_overlays_count: int = 0
    excluded_links_count: int = 0

    outline_source: str = ''
    outline_items: int = 0

    reject_reasons: Dict[str, int] = field(default_factory=dict)

    def reject(self, reason: str) -> None:
        self.reject_reasons[reason] = self.reject_reasons.get(reason, 0) + 1

    def summary(self) -> str:
        """Generate summary string"""
        lines = [
            "=" * 60,
            "LAYOUT ENGINE DEBUG SUMMARY",
            "=" * 60,
            f"Pages: {self.num_pages}",
            f"Page Labels Sample: {self.page_labels_sample[:10]}",
            f"Trimmed Content Rects: {self.trimmed_content_rects}",
            "",
            f"Reference Strategy: {self.reference_strategy or '-'}",
            f"References: {self.references_count} (offset {self.references_offset})",
            f"Citations: {self.citations_count}",
            f"Cited References: {self.cited_references_count}",
            "",
            f"Link Overlays: {self.link_overlays_count}",
            f"Excluded Internal Links: {self.excluded_links_count}",
            "",
            f"Outline: {self.outline_source or '-'} ({self.outline_items} top-level items)",
            "",
            "Reject Reasons:",
        ]
        for reason, count in sorted(self.reject_reasons.items(), key=lambda x: -x[1])[:10]:
            lines.append(f"  {reason}: {count}")
        lines.append("=" * 60)
        return "\n".join(lines)


class DocumentAnalyzer:
    """
    Main layout analysis entry point for one document.

    Usage:
        analyzer = DocumentAnalyzer(source)
        data = analyzer.get_processed_data()
        outline = analyzer.get_outline()
    """

    def __init__(
        self,
        source: DocumentSource,
        config: Optional[PipelineConfig] = None,
        cancel_token: Optional[CancellationToken] = None
    ):
        self.config = config or PipelineConfig.default()
        self.context = DocumentContext(source, self.config.structure, cancel_token)
        self.debug = DebugBundle()

        self.link_detector = LinkOverlayDetector(self.context, self.config.links)
        self.reference_extractor = ReferenceExtractor(self.config.references)
        self.citation_matcher = CitationMatcher(self.config.citations)

        self._page_labels: Optional[List[str]] = None
        self._content_rects: Optional[List[Rect]] = None

    # =========================================================================
    # Per page
    # =========================================================================

    def page_chars(self, page_index: int) -> List[Glyph]:
        return self.context.glyphs(page_index)

    def get_page_data(self, page_index: int) -> Dict[str, Any]:
        """
        Quick per-page result: structured glyphs and the page's annotation
        and parsed link overlays. No document-wide analysis is run.
        """
        return {
            'partial': True,
            'chars': self.context.glyphs(page_index),
            'overlays': self.link_detector.regular_overlays(page_index),
            'view_box': self.context.page(page_index).view,
        }

    # =========================================================================
    # Document level
    # =========================================================================

    def get_page_labels(self) -> List[str]:
        if self._page_labels is None:
            catalog = self.context.catalog()
            self._page_labels = PageLabelInferencer(self.config.page_labels).infer(
                self.context.views(), self.context.glyphs, catalog.page_labels
            )
        return self._page_labels

    def get_content_rects(self) -> List[Rect]:
        if self._content_rects is None:
            views = self.context.views()
            self._content_rects = ContentRectDetector(self.config.content_rect).detect(
                views, self.context.glyphs, self.get_page_labels()
            )
            self.debug.trimmed_content_rects = sum(
                1 for rect, view in zip(self._content_rects, views) if tuple(rect) != tuple(view)
            )
            self.context.set_content_rects(self._content_rects)
        return self._content_rects

    def get_outline(self) -> List[OutlineNode]:
        """Embedded outline, or one inferred from the font hierarchy"""
        catalog = self.context.catalog()
        nodes = OutlineNormalizer(self.context.resolve_destination).normalize(catalog.outline)
        source = 'embedded'
        if not nodes:
            nodes = OutlineExtractor(self.config.outline).extract(
                self.context.num_pages, self.context.glyphs
            )
            source = 'extracted' if nodes else 'none'
        self.debug.outline_source = source
        self.debug.outline_items = len(nodes)
        logger.debug(f"Outline: {source}, {len(nodes)} top-level items")
        return nodes

    def citation_and_reference_overlays(self) -> List[Overlay]:
        """Citation overlays followed by reference overlays"""
        cfg = self.config
        num_pages = self.context.num_pages
        if num_pages > cfg.references.max_pages:
            logger.info(f"Reference analysis skipped: {num_pages} pages")
            self.debug.reject('too_many_pages')
            return []

        self.get_content_rects()

        # Copies, so reference urls don't leak into the page glyphs
        stream = [
            dataclasses.replace(g)
            for i in range(num_pages)
            for g in self.context.glyphs(i)
            if not g.isolated
        ]

        result = self.reference_extractor.extract(
            stream,
            lambda page_index, glyphs: self.link_detector.regular_overlays(page_index, glyphs),
        )
        if result is None:
            self.debug.reject('no_references')
            return []

        self.debug.reference_strategy = result.strategy
        self.debug.references_count = len(result.references)
        self.debug.references_offset = result.offset

        citations, references = self.citation_matcher.match(
            stream[:result.offset], result.references, self.context.internal_links
        )
        self.debug.citations_count = len(citations)
        self.debug.cited_references_count = len(references)
        return [*citations, *references]

    def get_processed_data(self) -> Dict[str, Any]:
        """
        Full analysis.

        Returns:
            {'page_labels': [...], 'pages': {page_index: {'chars', 'overlays', 'view_box'}}}
            Only pages carrying overlays are listed.
        """
        cfg = self.config
        self.debug.num_pages = self.context.num_pages

        page_labels = self.get_page_labels()
        self.debug.page_labels_sample = page_labels[:10]
        self.get_content_rects()

        reference_overlays: List[Overlay] = []
        if cfg.enable_references:
            reference_overlays = self.citation_and_reference_overlays()

        pages: Dict[int, Dict[str, Any]] = {}

        def page_entry(page_index: int) -> Dict[str, Any]:
            if page_index not in pages:
                pages[page_index] = {'overlays': []}
            return pages[page_index]

        for overlay in reference_overlays:
            page_entry(overlay.position.page_index)['overlays'].append(overlay)

        if cfg.enable_links:
            for page_index, overlays in self.link_detector.detect().items():
                entry = page_entry(page_index)
                for overlay in overlays:
                    if self._covered_by_citation(overlay, reference_overlays):
                        self.debug.excluded_links_count += 1
                        continue
                    entry['overlays'].append(overlay)
                    self.debug.link_overlays_count += 1

        for page_index, entry in pages.items():
            entry['view_box'] = self.context.page(page_index).view
            entry['chars'] = self.context.glyphs(page_index)

        if cfg.debug:
            logger.info("\n" + self.debug.summary())

        return {'page_labels': page_labels, 'pages': dict(sorted(pages.items()))}

    @staticmethod
    def _covered_by_citation(link: Overlay, reference_overlays: List[Overlay]) -> bool:
        """
        An internal link intersecting a citation or reference overlay that
        already points at a reference on the link's destination page.
        """
        if isinstance(link, ExternalLinkOverlay) or not isinstance(link, InternalLinkOverlay):
            return False
        if link.destination_position is None:
            return False
        target_page = link.destination_position.page_index
        return any(
            any(r.position is not None and r.position.page_index == target_page for r in x.references)
            and overlays_intersect(x, link)
            for x in reference_overlays
        )


def run_analysis(
    pdf_path: str,
    config: Optional[PipelineConfig] = None,
    cancel_token: Optional[CancellationToken] = None
) -> Tuple[Dict[str, Any], List[OutlineNode], DebugBundle]:
    """
    Single entry point for analysing a PDF path.

    Returns:
        Tuple of (processed_data, outline, debug_bundle)
    """
    from .backends import PdfplumberDocument

    with PdfplumberDocument.open(pdf_path) as source:
        analyzer = DocumentAnalyzer(source, config, cancel_token)
        processed = analyzer.get_processed_data()
        outline = analyzer.get_outline()
    return processed, outline, analyzer.debug
