"""
Synthetic glyph fixtures shared by the test modules.

Glyphs are laid out on a fixed grid: every character is half the font size
wide and one font size tall, a space advances the cursor by one character
width and marks `space_after` on the previous glyph, like the backend does.
"""

import os
import sys
from typing import Any, Dict, List, Optional, Sequence

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.source import DocumentSource
from layout_engine.structure import structure_glyphs
from layout_engine.types import (
    Annotation, Catalog, DEFAULT_VIEW, Glyph, OutlineEntry, PageInfo, Position, Rect,
)

LEFT = 72.0
TOP = 700.0
LINE_STEP = 12.0


def make_line(
    text: str,
    x: float = LEFT,
    y: float = TOP,
    font_name: str = 'Times',
    font_size: float = 10.0,
    page_index: int = 0
) -> List[Glyph]:
    """Raw glyphs of one line, baseline at `y`"""
    width = font_size / 2
    glyphs: List[Glyph] = []
    cursor = x
    for ch in text:
        if ch == ' ':
            if glyphs:
                glyphs[-1].space_after = True
            cursor += width
            continue
        glyphs.append(Glyph(
            char=ch,
            rect=(cursor, y, cursor + width, y + font_size),
            font_name=font_name,
            font_size=font_size,
            baseline=y,
            page_index=page_index,
        ))
        cursor += width
    return glyphs


def make_page(
    lines: Sequence[str],
    x: float = LEFT,
    top: float = TOP,
    line_step: float = LINE_STEP,
    font_name: str = 'Times',
    font_size: float = 10.0,
    page_index: int = 0
) -> List[Glyph]:
    """
    Raw glyphs of stacked lines. An empty string leaves a blank line,
    which the structurer reads as a paragraph gap.
    """
    glyphs: List[Glyph] = []
    y = top
    for line in lines:
        if line:
            glyphs.extend(make_line(line, x, y, font_name, font_size, page_index))
        y -= line_step
    return glyphs


def structured_page(lines: Sequence[str], **kwargs) -> List[Glyph]:
    page_index = kwargs.get('page_index', 0)
    glyphs = structure_glyphs(make_page(lines, **kwargs))
    for g in glyphs:
        g.page_index = page_index
    return glyphs


def text_of(glyphs: Sequence[Glyph]) -> str:
    return ''.join(g.char for g in glyphs)


class InMemorySource(DocumentSource):
    """DocumentSource over prepared raw glyph pages"""

    def __init__(
        self,
        pages: Sequence[List[Glyph]],
        views: Optional[Sequence[Rect]] = None,
        annotations: Optional[Dict[int, List[Annotation]]] = None,
        page_labels: Optional[List[str]] = None,
        outline: Optional[List[OutlineEntry]] = None,
        destinations: Optional[Dict[Any, Position]] = None,
        failing_pages: Sequence[int] = ()
    ):
        self.pages = list(pages)
        self.views = list(views) if views else [DEFAULT_VIEW] * len(self.pages)
        self.annotations = annotations or {}
        self.page_labels = page_labels
        self.outline = outline
        self.destinations = destinations or {}
        self.failing_pages = set(failing_pages)
        self.glyph_calls: Dict[int, int] = {}

    def catalog(self) -> Catalog:
        return Catalog(num_pages=len(self.pages), page_labels=self.page_labels, outline=self.outline)

    def get_page(self, page_index: int) -> PageInfo:
        if page_index in self.failing_pages:
            raise IOError(f"page {page_index} is broken")
        return PageInfo(
            view=self.views[page_index],
            annotations=list(self.annotations.get(page_index, [])),
        )

    def get_glyphs(self, page_index: int) -> List[Glyph]:
        self.glyph_calls[page_index] = self.glyph_calls.get(page_index, 0) + 1
        if page_index in self.failing_pages:
            raise IOError(f"page {page_index} is broken")
        return list(self.pages[page_index])

    def resolve_destination(self, dest: Any) -> Optional[Position]:
        return self.destinations[dest]
