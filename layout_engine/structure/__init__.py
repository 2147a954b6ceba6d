"""
Glyph Structuring
=================
- bidi: single-line Unicode bidirectional reordering
- structurer: line/word/paragraph segmentation and sup/sub flags
"""

from .bidi import bidi_reorder, is_rtl, char_type
from .structurer import (
    GlyphStructurer, StructureConfig, structure_glyphs, glyphs_to_text,
)

__all__ = [
    'bidi_reorder', 'is_rtl', 'char_type',
    'GlyphStructurer', 'StructureConfig', 'structure_glyphs', 'glyphs_to_text',
]
