"""
Link Overlays
=============
Each module detects links from one signal:
- annotation: link annotations of the page
- parsed: URLs and DOIs written in the text
- matched: cross-references like "Fig. 3" to their captions
- overlays: per-page merge of the three sources
"""

from .annotation import AnnotationOverlayBuilder, annotation_overlays, destinations_equal
from .parsed import parsed_overlays, find_links
from .matched import CrossReferenceMatcher, matched_overlays, canonical_label
from .overlays import LinkOverlayDetector, LinkConfig, merge_overlays

__all__ = [
    'AnnotationOverlayBuilder', 'annotation_overlays', 'destinations_equal',
    'parsed_overlays', 'find_links',
    'CrossReferenceMatcher', 'matched_overlays', 'canonical_label',
    'LinkOverlayDetector', 'LinkConfig', 'merge_overlays',
]
