"""
PDF Layout Engine
=================
Reading-order structuring and document analysis for PDF text layers.

Architecture:
- structure: glyph structuring (lines, words, paragraphs, bidi)
- page_model: content rects and page labels
- outline: embedded outline normalization and outline inference
- links: annotation, parsed and cross-reference link overlays
- bib: bibliography extraction
- matcher: citation matching
- backends: DocumentSource implementations (pdfplumber)

Usage:
    from layout_engine import run_analysis
    data, outline, debug = run_analysis("paper.pdf")
"""

from .types import (
    Glyph,
    Position,
    Overlay,
    ExternalLinkOverlay,
    InternalLinkOverlay,
    ReferenceOverlay,
    CitationOverlay,
    Reference,
    OutlineNode,
    PageInfo,
    Annotation,
    Catalog,
    OutlineEntry,
    sort_index,
)
from .source import DocumentSource, DocumentSourceError
from .context import DocumentContext, CancellationToken, AnalysisCancelled
from .pipeline import DocumentAnalyzer, PipelineConfig, DebugBundle, run_analysis

__all__ = [
    'Glyph',
    'Position',
    'Overlay',
    'ExternalLinkOverlay',
    'InternalLinkOverlay',
    'ReferenceOverlay',
    'CitationOverlay',
    'Reference',
    'OutlineNode',
    'PageInfo',
    'Annotation',
    'Catalog',
    'OutlineEntry',
    'sort_index',
    'DocumentSource',
    'DocumentSourceError',
    'DocumentContext',
    'CancellationToken',
    'AnalysisCancelled',
    'DocumentAnalyzer',
    'PipelineConfig',
    'DebugBundle',
    'run_analysis',
]

__version__ = '1.0.0'
