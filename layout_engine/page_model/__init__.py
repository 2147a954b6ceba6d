"""
Page Model
==========
Page-level inference shared by later stages:
- content_rect: usable text area per page (boilerplate removal)
- page_label: printed page number detection and label prediction
"""

from .content_rect import (
    ContentRectDetector, ContentRectConfig, PageLine,
    detect_content_rects, lines_from_glyphs, page_size_classes,
)
from .page_label import (
    PageLabelInferencer, PageLabelConfig, LabelWord,
    infer_page_labels, predict_page_labels, parse_candidate_number, roman_to_integer,
)

__all__ = [
    'ContentRectDetector', 'ContentRectConfig', 'PageLine',
    'detect_content_rects', 'lines_from_glyphs', 'page_size_classes',
    'PageLabelInferencer', 'PageLabelConfig', 'LabelWord',
    'infer_page_labels', 'predict_page_labels', 'parse_candidate_number', 'roman_to_integer',
]
