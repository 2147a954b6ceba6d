"""
pdfplumber Backend
==================
DocumentSource implementation on top of pdfplumber (and the pdfminer.six
document it wraps).

Glyph coordinates are PDF user space relative to the page's mediabox
origin, matching pdfminer's layout output. Whitespace characters are not
emitted as glyphs; they set `space_after` on the previous glyph.
"""

import itertools
import logging
import math
from typing import Any, Dict, List, Optional

import pdfplumber
from pdfminer.pdfdocument import PDFNoOutlines, PDFNoPageLabels
from pdfminer.pdftypes import PDFObjRef, resolve1
from pdfminer.psparser import PSLiteral

from ..source import DocumentSource, DocumentSourceError
from ..types import Annotation, Catalog, Glyph, OutlineEntry, PageInfo, Position

logger = logging.getLogger(__name__)

DESTINATION_MODES = ('XYZ', 'Fit', 'FitB', 'FitH', 'FitBH', 'FitV', 'FitBV', 'FitR')


def _name(value: Any) -> Optional[str]:
    """PDF name/string as str"""
    value = resolve1(value)
    if isinstance(value, PSLiteral):
        name = value.name
        return name.decode('latin-1') if isinstance(name, bytes) else str(name)
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    if isinstance(value, str):
        return value
    return None


def _number(value: Any) -> Optional[float]:
    value = resolve1(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def glyph_rotation(matrix) -> int:
    """Text rotation in degrees (0, 90, 180, 270) from a text matrix"""
    if not matrix:
        return 0
    angle = math.degrees(math.atan2(matrix[1], matrix[0]))
    return int(round(angle / 90.0)) * 90 % 360


def glyph_from_char(char: Dict[str, Any], page_index: int) -> Glyph:
    """Convert a pdfplumber char dict into a raw Glyph"""
    matrix = char.get('matrix') or (1, 0, 0, 1, char.get('x0', 0), char.get('y0', 0))
    rotation = glyph_rotation(matrix)
    baseline = matrix[4] if rotation in (90, 270) else matrix[5]
    return Glyph(
        char=char.get('text', ''),
        rect=(
            float(char.get('x0', 0)),
            float(char.get('y0', 0)),
            float(char.get('x1', 0)),
            float(char.get('y1', 0)),
        ),
        font_name=char.get('fontname', '') or '',
        font_size=round(float(char.get('size', 0) or 0), 3),
        rotation=rotation,
        baseline=float(baseline),
        page_index=page_index,
    )


def glyphs_from_chars(chars: List[Dict[str, Any]], page_index: int) -> List[Glyph]:
    glyphs: List[Glyph] = []
    for char in chars:
        text = char.get('text', '')
        if not text:
            continue
        if text.isspace():
            if glyphs:
                glyphs[-1].space_after = True
            continue
        # Ligatures and other multi-character glyphs are split evenly
        if len(text) > 1:
            base = glyph_from_char(char, page_index)
            x0, y0, x1, y1 = base.rect
            step = (x1 - x0) / len(text)
            for i, ch in enumerate(text):
                glyphs.append(Glyph(
                    char=ch,
                    rect=(x0 + i * step, y0, x0 + (i + 1) * step, y1),
                    font_name=base.font_name,
                    font_size=base.font_size,
                    rotation=base.rotation,
                    baseline=base.baseline,
                    page_index=page_index,
                ))
            continue
        glyphs.append(glyph_from_char(char, page_index))
    return glyphs


class PdfplumberDocument(DocumentSource):
    """
    DocumentSource backed by a pdfplumber PDF.

    Usage:
        with PdfplumberDocument.open("paper.pdf") as source:
            analyzer = DocumentAnalyzer(source)
    """

    def __init__(self, pdf: 'pdfplumber.PDF'):
        self.pdf = pdf
        self.doc = pdf.doc
        self._page_ids: Optional[Dict[int, int]] = None

    @classmethod
    def open(cls, path: str) -> 'PdfplumberDocument':
        try:
            pdf = pdfplumber.open(path)
        except Exception as e:
            raise DocumentSourceError(f"Cannot open {path}: {e}") from e
        return cls(pdf)

    def close(self) -> None:
        self.pdf.close()

    # =========================================================================
    # Catalog
    # =========================================================================

    def catalog(self) -> Catalog:
        num_pages = len(self.pdf.pages)
        return Catalog(
            num_pages=num_pages,
            page_labels=self._page_labels(num_pages),
            outline=self._outline(),
        )

    def _page_labels(self, num_pages: int) -> Optional[List[str]]:
        try:
            labels = list(itertools.islice(self.doc.get_page_labels(), num_pages))
        except PDFNoPageLabels:
            return None
        except Exception as e:
            logger.warning(f"Failed to read page labels: {e}")
            return None
        return labels if len(labels) == num_pages else None

    def _outline(self) -> Optional[List[OutlineEntry]]:
        try:
            items = list(self.doc.get_outlines())
        except PDFNoOutlines:
            return None
        except Exception as e:
            logger.warning(f"Failed to read outline: {e}")
            return None

        root = OutlineEntry(title='')
        stack = [(0, root)]
        for level, title, dest, action, _ in items:
            entry = OutlineEntry(title=_name(title) or '', dest=dest)
            action = resolve1(action)
            if dest is None and isinstance(action, dict):
                kind = _name(action.get('S'))
                if kind == 'GoTo':
                    entry.dest = action.get('D')
                elif kind == 'URI':
                    entry.url = _name(action.get('URI'))
            while len(stack) > 1 and stack[-1][0] >= level:
                stack.pop()
            stack[-1][1].children.append(entry)
            stack.append((level, entry))
        return root.children

    # =========================================================================
    # Pages
    # =========================================================================

    def _page(self, page_index: int) -> 'pdfplumber.page.Page':
        if not 0 <= page_index < len(self.pdf.pages):
            raise DocumentSourceError(f"Page index {page_index} out of range")
        return self.pdf.pages[page_index]

    def get_page(self, page_index: int) -> PageInfo:
        page = self._page(page_index)
        height = float(page.height)
        annotations = []
        for annot in page.annots:
            rect = (
                float(annot['x0']),
                height - float(annot['bottom']),
                float(annot['x1']),
                height - float(annot['top']),
            )
            url = annot.get('uri')
            dest = None
            data = annot.get('data') or {}
            if not url:
                dest = data.get('Dest')
                action = resolve1(data.get('A'))
                if dest is None and isinstance(action, dict):
                    kind = _name(action.get('S'))
                    if kind == 'GoTo':
                        dest = action.get('D')
                    elif kind == 'URI':
                        url = _name(action.get('URI'))
            if url or dest is not None:
                annotations.append(Annotation(rect=rect, url=url, dest=dest))
        return PageInfo(view=(0.0, 0.0, float(page.width), height), annotations=annotations)

    def get_glyphs(self, page_index: int) -> List[Glyph]:
        return glyphs_from_chars(self._page(page_index).chars, page_index)

    # =========================================================================
    # Destinations
    # =========================================================================

    def _page_index_of(self, ref: Any) -> Optional[int]:
        if self._page_ids is None:
            self._page_ids = {
                page.page_obj.pageid: i for i, page in enumerate(self.pdf.pages)
            }
        if isinstance(ref, PDFObjRef):
            return self._page_ids.get(ref.objid)
        if isinstance(ref, int) and not isinstance(ref, bool):
            return ref if 0 <= ref < len(self.pdf.pages) else None
        return None

    def _explicit_destination(self, dest: Any) -> Optional[list]:
        dest = resolve1(dest)
        name = _name(dest) if isinstance(dest, (bytes, str, PSLiteral)) else None
        if name is not None:
            try:
                dest = resolve1(self.doc.get_dest(name))
            except Exception as e:
                logger.debug(f"Named destination '{name}' not found: {e}")
                return None
        if isinstance(dest, dict):
            dest = resolve1(dest.get('D'))
        if isinstance(dest, (list, tuple)) and len(dest) >= 2:
            return list(dest)
        return None

    def resolve_destination(self, dest: Any) -> Optional[Position]:
        array = self._explicit_destination(dest)
        if array is None:
            return None

        page_index = self._page_index_of(array[0])
        if page_index is None:
            logger.debug(f"Destination {dest!r} points to an unknown page")
            return None

        mode = _name(array[1])
        if mode not in DESTINATION_MODES:
            return None
        args = [_number(a) for a in array[2:]]

        def arg(i):
            return args[i] if i < len(args) else None

        page = self.pdf.pages[page_index]
        width = float(page.width)
        height = float(page.height)
        origin_x, origin_y = float(page.mediabox[0]), float(page.mediabox[1])

        x = y = None
        if mode == 'XYZ':
            x, y = arg(0), arg(1)
        elif mode in ('FitH', 'FitBH'):
            y = arg(0)
        elif mode in ('FitV', 'FitBV'):
            x = arg(0)
        elif mode == 'FitR':
            x, y = arg(0), arg(3)

        x = 0.0 if x is None else x - origin_x
        y = height if y is None else y - origin_y
        x = min(max(x, 0.0), width)
        y = min(max(y, 0.0), height)
        return Position(page_index=page_index, rects=[(x, y, x, y)])
