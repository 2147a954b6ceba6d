"""
Reference Extraction Helpers
============================
Shared pieces of the segmentation strategies: break points, segment
validation, the references-section title lookup and conversion of
segments into Reference objects.
"""

import datetime
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..clustering import get_clusters
from ..geometry import bounding_rect
from ..types import Glyph, Position, Rect, Reference, TextPart

DEFAULT_SECTION_TITLES = ('references', 'bibliography', 'literature', 'bibliographie', 'literatur')

_NUMBER = re.compile(r"\d+")


@dataclass
class ReferenceConfig:
    """Configuration for reference extraction"""
    min_year: int = 1800
    min_length: int = 50               # Exclusive bounds on segment length
    max_length: int = 1000
    max_pages: int = 100

    # Section title lookup
    section_titles: Tuple[str, ...] = DEFAULT_SECTION_TITLES
    max_title_length: int = 30
    min_chars_after_title: int = 300
    title_font_eps: float = 0.1
    min_title_position: float = 0.5

    # Fraction of the document after which a list may start without a title
    tail_position: float = 0.75

    # List numbers
    number_gap_eps: float = 1.0
    max_number_digits: int = 3

    # First-line indent
    min_indent_delta: float = 5.0
    max_indent_delta: float = 50.0
    indent_eps: float = 1.0
    align_eps: float = 1.0
    indent_validity: float = 0.8

    # Paragraph spacing
    spacing_eps: float = 0.5
    spacing_validity: float = 0.7

    # Min valid segments on one page (or its neighbours)
    min_density: int = 5


@dataclass
class BreakPoint:
    """Candidate start of a reference in the glyph stream"""
    offset: int
    page_index: int = 0
    text: str = ''
    spacing: Optional[float] = None
    delta: Optional[float] = None
    gap: Optional[float] = None        # List number end -> next glyph
    gap2: Optional[float] = None       # List number start -> next glyph
    number: Optional[int] = None


@dataclass(eq=False)
class Segment:
    """Glyphs between two consecutive break points"""
    chars: List[Glyph] = field(repr=False)
    offset: int
    page_index: int
    valid: bool = False
    spacing: Optional[float] = None
    delta: Optional[float] = None

    @property
    def text(self) -> str:
        return ''.join(g.char for g in self.chars)


@dataclass
class StreamLine:
    chars: List[Glyph] = field(repr=False)
    offset: int
    rect: Rect
    page_index: int

    @property
    def text(self) -> str:
        return ''.join(g.char for g in self.chars)


@dataclass
class ExtractionResult:
    """Output of one strategy"""
    references: List[Reference]
    offset: int
    strategy: str = ''


# =============================================================================
# Predicates
# =============================================================================

def has_valid_year(chars: Sequence[Glyph], min_year: int = 1800) -> bool:
    text = ''.join(g.char for g in chars)
    current_year = datetime.date.today().year
    return any(min_year <= int(n) <= current_year for n in _NUMBER.findall(text))


def _is_ascii_symbol_or_number(ch: str) -> bool:
    code = ord(ch[0]) if ch else 0
    return code < 65 or 90 < code < 97 or code > 122 and code < 128


def can_start_with(g: Glyph) -> bool:
    """Letter that is upper case when the script has case"""
    return bool(g.char) and not _is_ascii_symbol_or_number(g.char) and g.char == g.char.upper()


def is_valid_segment(chars: Sequence[Glyph], config: ReferenceConfig) -> bool:
    return (
        config.min_length < len(chars) < config.max_length
        and has_valid_year(chars, config.min_year)
        and chars[0].page_index == chars[-1].page_index
    )


def in_document_tail(chars: Sequence[Glyph], offset: int, config: ReferenceConfig) -> bool:
    pages = chars[-1].page_index + 1
    return (chars[offset].page_index + 1) / pages >= config.tail_position


# =============================================================================
# Stream helpers
# =============================================================================

def stream_lines(chars: Sequence[Glyph]) -> List[StreamLine]:
    lines = []
    current: List[Glyph] = []
    start = 0
    for i, g in enumerate(chars):
        current.append(g)
        if g.line_break_after:
            lines.append(StreamLine(current, start, bounding_rect(current), g.page_index))
            current = []
            start = i + 1
    return lines


def _letters_only(text: str) -> str:
    return ''.join(
        ch for ch in text
        if 'A' <= ch <= 'Z' or 'a' <= ch <= 'z' or ord(ch) >= 128
    )


def references_title_offset(chars: Sequence[Glyph], config: Optional[ReferenceConfig] = None) -> int:
    """
    Offset just after the references section title, 0 if not found.

    Only short paragraphs with enough text after them qualify. Matches are
    clustered by font size and a unique match in the largest-font cluster
    located in the second half of the document is accepted.
    """
    config = config or ReferenceConfig()
    if not chars:
        return 0

    matches = []
    start = 0
    for i, g in enumerate(chars):
        if not (g.paragraph_break_after or i == len(chars) - 1):
            continue
        end = i
        para_start = start
        start = i + 1
        if end - para_start > config.max_title_length or len(chars) - end < config.min_chars_after_title:
            continue
        text = _letters_only(''.join(x.char for x in chars[para_start:end + 1]).lower())
        for title in config.section_titles:
            if text.startswith(title):
                matches.append((end, chars[para_start].font_size))
            elif text.endswith(title):
                matches.append((end, chars[end].font_size))

    clusters = get_clusters(matches, lambda m: m[1], config.title_font_eps)
    if not clusters or len(clusters[-1]) != 1:
        return 0

    end = clusters[-1][0][0]
    pages = chars[-1].page_index + 1
    if (chars[end].page_index + 1) / pages >= config.min_title_position:
        return end + 1
    return 0


def split_by_page_continuity(clusters: Sequence[List[BreakPoint]]) -> List[List[BreakPoint]]:
    """Split clusters where consecutive break points skip a page"""
    result = []
    for cluster in clusters:
        current: List[BreakPoint] = []
        for prev, item in zip([None] + list(cluster), cluster):
            if prev is not None and item.page_index - prev.page_index > 1:
                result.append(current)
                current = []
            current.append(item)
        result.append(current)
    return result


def segments_from_clusters(
    chars: Sequence[Glyph],
    clusters: Sequence[List[BreakPoint]],
    config: ReferenceConfig
) -> List[List[Segment]]:
    """
    Cut the stream at each cluster's break points. The last segment of a
    cluster runs to the end of its paragraph.
    """
    groups = []
    for breaks in clusters:
        if not breaks:
            continue
        group = []
        for i, bp in enumerate(breaks):
            if i < len(breaks) - 1:
                seg = chars[bp.offset:breaks[i + 1].offset]
            else:
                end = bp.offset
                for j in range(bp.offset, len(chars)):
                    end = j
                    if chars[j].paragraph_break_after:
                        break
                seg = chars[bp.offset:end + 1]
            if not seg:
                continue
            group.append(Segment(
                chars=list(seg),
                offset=bp.offset,
                page_index=seg[0].page_index,
                valid=is_valid_segment(seg, config),
                spacing=bp.spacing,
                delta=bp.delta,
            ))
        if group:
            groups.append(group)
    return groups


def cluster_break_points(
    break_points: Sequence[BreakPoint],
    key,
    eps: float
) -> List[List[BreakPoint]]:
    """Cluster by `key`, order each cluster by offset, split at page gaps"""
    usable = [bp for bp in break_points if key(bp) is not None]
    clusters = get_clusters(usable, key, eps)
    clusters = [sorted(c, key=lambda bp: bp.offset) for c in clusters]
    return split_by_page_continuity(clusters)


# =============================================================================
# Reference building
# =============================================================================

def text_parts(chars: Sequence[Glyph]) -> List[TextPart]:
    """Runs of glyphs sharing font name, font size and url"""
    parts: List[TextPart] = []
    last_key = None
    for i, g in enumerate(chars):
        if g.ignorable:
            continue
        key = (g.font_name, g.font_size, g.url)
        if not parts or key != last_key:
            parts.append(TextPart(text=g.char, font_name=g.font_name, font_size=g.font_size, url=g.url))
            last_key = key
        else:
            parts[-1].text += g.char
        if g.space_after or g.line_break_after and i != len(chars) - 1:
            parts[-1].text += ' '
    return parts


def reference_text(chars: Sequence[Glyph]) -> str:
    parts = []
    for i, g in enumerate(chars):
        if not g.ignorable:
            parts.append(g.char)
        if g.space_after or g.line_break_after and not g.ignorable and i != len(chars) - 1:
            parts.append(' ')
    return ''.join(parts).strip()


def references_from_group(group: Sequence[Segment], use_index: bool = False) -> List[Reference]:
    references = []
    for segment in group:
        chars = segment.chars
        page_index = chars[0].page_index
        here = [g for g in chars if g.page_index == page_index]
        rest = [g for g in chars if g.page_index != page_index]

        position = Position(page_index=page_index, rects=[bounding_rect(here)])
        if rest:
            position.next_page_rects = [bounding_rect(rest)]

        text = reference_text(chars)
        reference = Reference(text=text, chars=chars, position=position)
        if use_index:
            match = _NUMBER.search(text)
            if match and int(match.group(0)):
                reference.index = int(match.group(0))
        references.append(reference)
    return references
