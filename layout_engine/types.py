"""
Core Data Types
===============
Shared data structures for the layout engine.

Coordinates are PDF user space (origin bottom-left, y grows upward),
rects are (x0, y0, x1, y1).
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Dict, Any, Optional


Rect = Tuple[float, float, float, float]

# Default page view used when a page can't be fetched (US Letter)
DEFAULT_VIEW: Rect = (0.0, 0.0, 612.0, 792.0)


@dataclass(eq=False)
class Glyph:
    """
    One rendered character.

    The first block of fields comes from the backend, the flags below are
    derived by the structurer. `space_after` is both: a backend may set it
    when the content stream had an explicit space, and the structurer sets
    it for detected word gaps.
    """
    char: str
    rect: Rect
    font_name: str = ""
    font_size: float = 0.0
    rotation: int = 0
    baseline: float = 0.0
    page_index: int = 0
    offset: int = 0
    inline_rect: Optional[Rect] = None
    url: Optional[str] = None

    space_after: bool = False
    word_break_after: bool = False
    line_break_after: bool = False
    paragraph_break_after: bool = False
    ignorable: bool = False
    sup: bool = False
    sub: bool = False
    isolated: bool = False

    @property
    def bounds(self) -> Rect:
        """Inline rect when known, otherwise the raw rect"""
        return self.inline_rect if self.inline_rect is not None else self.rect

    def to_dict(self) -> Dict[str, Any]:
        return {
            'c': self.char,
            'rect': list(self.rect),
            'inlineRect': list(self.bounds),
            'fontName': self.font_name,
            'fontSize': self.font_size,
            'rotation': self.rotation,
            'baseline': self.baseline,
            'pageIndex': self.page_index,
            'offset': self.offset,
            'spaceAfter': self.space_after,
            'wordBreakAfter': self.word_break_after,
            'lineBreakAfter': self.line_break_after,
            'paragraphBreakAfter': self.paragraph_break_after,
            'ignorable': self.ignorable,
            'sup': self.sup,
            'sub': self.sub,
            'isolated': self.isolated,
        }


@dataclass
class Position:
    """A located region, optionally continuing on the following page"""
    page_index: int
    rects: List[Rect] = field(default_factory=list)
    next_page_rects: Optional[List[Rect]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            'pageIndex': self.page_index,
            'rects': [list(r) for r in self.rects],
        }
        if self.next_page_rects:
            d['nextPageRects'] = [list(r) for r in self.next_page_rects]
        return d


def sort_index(page_index: int, offset: int, top: float) -> str:
    """
    Build a lexicographically comparable order key.

    Format: PPPPP|OOOOOO|TTTTT (page, offset, floor of vertical top).
    """
    return '|'.join([
        str(page_index)[:5].rjust(5, '0'),
        str(offset)[:6].rjust(6, '0'),
        str(max(int(top // 1), 0))[:5].rjust(5, '0'),
    ])


# =============================================================================
# Overlays
# =============================================================================

SOURCE_ANNOTATION = 'annotation'
SOURCE_PARSED = 'parsed'
SOURCE_MATCHED = 'matched'


@dataclass(eq=False)
class Overlay:
    """Common overlay part: where it is, how it sorts and who produced it"""
    position: Position
    sort_index: str = ''
    source: Optional[str] = None

    type = 'overlay'

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'type': self.type,
            'position': self.position.to_dict(),
            'sortIndex': self.sort_index,
        }
        if self.source:
            d['source'] = self.source
        return d


@dataclass(eq=False)
class ExternalLinkOverlay(Overlay):
    url: str = ''

    type = 'external-link'

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['url'] = self.url
        return d


@dataclass(eq=False)
class InternalLinkOverlay(Overlay):
    destination_position: Optional[Position] = None

    type = 'internal-link'

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['destinationPosition'] = (
            self.destination_position.to_dict() if self.destination_position else None
        )
        return d


@dataclass(eq=False)
class Reference:
    """An extracted bibliography entry"""
    text: str
    chars: List[Glyph] = field(default_factory=list, repr=False)
    position: Optional[Position] = None
    index: Optional[int] = None
    text_parts: List['TextPart'] = field(default_factory=list, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'text': self.text,
            'position': self.position.to_dict() if self.position else None,
            'textParts': [p.to_dict() for p in self.text_parts],
        }
        if self.index is not None:
            d['index'] = self.index
        return d


@dataclass
class CitationEntry:
    """One mention of a reference inside the body text"""
    word: str
    offset: int
    position: Position


@dataclass(eq=False)
class ReferenceOverlay(Overlay):
    references: List[Reference] = field(default_factory=list)
    citations: List[CitationEntry] = field(default_factory=list)

    type = 'reference'

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['references'] = [r.to_dict() for r in self.references]
        d['citations'] = [
            {'word': c.word, 'offset': c.offset, 'position': c.position.to_dict()}
            for c in self.citations
        ]
        return d


@dataclass(eq=False)
class CitationOverlay(Overlay):
    word: str = ''
    references: List[Reference] = field(default_factory=list)
    offset: int = 0

    type = 'citation'

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d['word'] = self.word
        d['references'] = [r.to_dict() for r in self.references]
        return d


@dataclass
class TextPart:
    """Style run inside a reference"""
    text: str
    font_name: str = ''
    font_size: float = 0.0
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {'text': self.text, 'fontName': self.font_name, 'fontSize': self.font_size}
        if self.url:
            d['url'] = self.url
        return d


# =============================================================================
# Outline
# =============================================================================

@dataclass
class OutlineLocation:
    """Either a resolved position or a literal URL"""
    position: Optional[Position] = None
    url: Optional[str] = None


@dataclass
class OutlineNode:
    title: str
    sort_index: Optional[str] = None
    location: OutlineLocation = field(default_factory=OutlineLocation)
    children: List['OutlineNode'] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        location: Dict[str, Any] = {}
        if self.location.position is not None:
            location['position'] = self.location.position.to_dict()
        if self.location.url:
            location['url'] = self.location.url
        return {
            'title': self.title,
            'sortIndex': self.sort_index,
            'location': location,
            'items': [c.to_dict() for c in self.children],
        }


# =============================================================================
# Collaborator records
# =============================================================================

@dataclass
class Annotation:
    """Link annotation as delivered by a backend"""
    rect: Rect
    url: Optional[str] = None
    dest: Any = None


@dataclass
class PageInfo:
    view: Rect = DEFAULT_VIEW
    annotations: List[Annotation] = field(default_factory=list)

    @property
    def width(self) -> float:
        return self.view[2] - self.view[0]

    @property
    def height(self) -> float:
        return self.view[3] - self.view[1]


@dataclass
class OutlineEntry:
    """Embedded outline item before destination resolution"""
    title: str
    dest: Any = None
    url: Optional[str] = None
    children: List['OutlineEntry'] = field(default_factory=list)


@dataclass
class Catalog:
    num_pages: int
    page_labels: Optional[List[str]] = None
    outline: Optional[List[OutlineEntry]] = None
