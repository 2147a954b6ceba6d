"""
Citation Matcher
================
Chooses numeric or name-year matching and builds the inverse
reference -> citations overlays.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..types import CitationEntry, CitationOverlay, Glyph, Reference, ReferenceOverlay, sort_index
from .name_year import NameYearMatcher
from .number import CitationConfig, InternalLinkProvider, NumberMatcher

logger = logging.getLogger(__name__)


class CitationMatcher:
    """
    Match in-text citations to extracted references.

    Usage:
        matcher = CitationMatcher()
        citations, reference_overlays = matcher.match(chars, references)
    """

    def __init__(self, config: Optional[CitationConfig] = None):
        self.config = config or CitationConfig()
        self.number_matcher = NumberMatcher(self.config)
        self.name_year_matcher = NameYearMatcher(self.config)

    def match(
        self,
        chars: Sequence[Glyph],
        references: Sequence[Reference],
        internal_links: Optional[InternalLinkProvider] = None
    ) -> Tuple[List[CitationOverlay], List[ReferenceOverlay]]:
        """
        Args:
            chars: Document stream before the references section
            references: Extracted references
            internal_links: Internal links of a page, used by numeric matching

        Returns:
            (citation overlays, reference overlays)
        """
        if not references:
            return [], []

        if references[0].index is not None:
            citations = self.number_matcher.match(chars, references, internal_links)
            style = 'number'
        else:
            citations = self.name_year_matcher.match(chars, references)
            style = 'name-year'
        logger.debug(f"Matched {len(citations)} citations ({style})")

        return citations, self.reference_overlays(citations)

    @staticmethod
    def reference_overlays(citations: Sequence[CitationOverlay]) -> List[ReferenceOverlay]:
        """One overlay per cited reference, listing every mention of it"""
        cited: Dict[int, Reference] = {}
        mentions: Dict[int, List[CitationOverlay]] = {}
        for citation in citations:
            for reference in citation.references:
                key = id(reference)
                if key not in cited:
                    cited[key] = reference
                    mentions[key] = []
                mentions[key].append(citation)

        overlays = []
        for key, reference in cited.items():
            first = reference.chars[0]
            overlays.append(ReferenceOverlay(
                position=reference.position,
                sort_index=sort_index(first.page_index, first.offset, 0),
                references=[reference],
                citations=[
                    CitationEntry(word=c.word, offset=c.offset, position=c.position)
                    for c in mentions[key]
                ],
            ))
        return overlays


def match_citations(
    chars: Sequence[Glyph],
    references: Sequence[Reference],
    internal_links: Optional[InternalLinkProvider] = None,
    config: Optional[CitationConfig] = None
) -> Tuple[List[CitationOverlay], List[ReferenceOverlay]]:
    """
    Convenience function for citation matching.
    """
    return CitationMatcher(config).match(chars, references, internal_links)
