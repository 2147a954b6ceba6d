"""
Citation Matching
=================
- number: numeric markers ([1], (2), superscripts) -> indexed references
- name_year: author-year mentions -> unnumbered references
- matcher: style dispatch and reference -> citations overlays
"""

from .number import NumberMatcher, CitationConfig, match_by_number, parse_numbers
from .name_year import NameYearMatcher, match_by_name_year
from .matcher import CitationMatcher, match_citations

__all__ = [
    'NumberMatcher', 'CitationConfig', 'match_by_number', 'parse_numbers',
    'NameYearMatcher', 'match_by_name_year',
    'CitationMatcher', 'match_citations',
]
