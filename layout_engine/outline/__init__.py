"""
Outline
=======
- reader: normalize an embedded outline (resolve destinations)
- extractor: infer an outline from the font hierarchy
"""

from .reader import OutlineNormalizer, normalize_outline
from .extractor import (
    OutlineExtractor, OutlineConfig, HeadingRange,
    extract_outline, format_outline, parse_number_parts,
)

__all__ = [
    'OutlineNormalizer', 'normalize_outline',
    'OutlineExtractor', 'OutlineConfig', 'HeadingRange',
    'extract_outline', 'format_outline', 'parse_number_parts',
]
