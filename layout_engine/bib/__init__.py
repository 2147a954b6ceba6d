"""
Bibliography Extraction
=======================
Segments the references section into entries. Each strategy detects
entry boundaries from one layout signal:
- list_number: numbered lists ([1], 1., (1))
- first_line_indent: hanging or regular first-line indents
- paragraph_spacing: extra vertical space between entries
"""

from .common import ReferenceConfig, ExtractionResult, references_title_offset, text_parts
from .list_number import ListNumberStrategy
from .first_line_indent import FirstLineIndentStrategy
from .paragraph_spacing import ParagraphSpacingStrategy
from .extractor import ReferenceExtractor, extract_references

__all__ = [
    'ReferenceConfig', 'ExtractionResult', 'references_title_offset', 'text_parts',
    'ListNumberStrategy', 'FirstLineIndentStrategy', 'ParagraphSpacingStrategy',
    'ReferenceExtractor', 'extract_references',
]
