"""
Document Backends
=================
Concrete DocumentSource implementations.
"""

from .pdfplumber_backend import PdfplumberDocument, glyphs_from_chars, glyph_rotation

__all__ = ['PdfplumberDocument', 'glyphs_from_chars', 'glyph_rotation']
