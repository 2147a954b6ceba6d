"""
Numeric Citation Matcher
========================
Finds numeric in-text citations ("[3]", "[1-4, 7]", "(2)", superscript
"³") and links them to numbered references.

Candidate ranges are digit runs that are superscript, follow '[' or '(',
or carry an internal link. They must sit inside running text and keep
the font size of their first digit. Among style groups (kind, font,
link agreement) only the group citing the most references is kept, so
equation numbers and other stray numbers fall away.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..geometry import center_rect, glyph_distance, intersect_rects, position_from_glyphs
from ..types import CitationOverlay, Glyph, Position, Rect, Reference, sort_index

logger = logging.getLogger(__name__)

SUPERSCRIPT = 'superscript'
BRACKETS = 'brackets'
PARENTHESES = 'parentheses'
OTHER = 'other'

RANGE_CHARS = frozenset('0123456789,-–')
RANGE_DASHES = frozenset('-–')

_PARTS = re.compile(r"\d+|\D+")

# (annotation rect, resolved destination) pairs of one page
InternalLinkProvider = Callable[[int], List[Tuple[Rect, Position]]]


@dataclass
class CitationConfig:
    """Configuration for citation matching"""
    max_range_fill: int = 50           # Cap on numbers produced by "1-N" ranges
    paragraph_gap: float = 15.0        # Max distance to neighbouring text
    font_continuity: float = 1.0       # Max font size change inside a range
    name_gap: int = 10                 # Max text between two names of one mention
    year_gap: int = 30                 # Max text between a name and a year
    max_reference_offset: int = 15     # First matched word must be this close to entry start


@dataclass(eq=False)
class NumberRange:
    type: str
    page_index: int
    chars: List[Glyph] = field(repr=False)
    offset_from: int
    offset_to: int
    destination_pages: List[int] = field(default_factory=list)
    numbers: List[int] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list, repr=False)
    link_agreement: int = 0            # 1 agrees, -1 disagrees, 0 no link

    @property
    def text(self) -> str:
        return ''.join(g.char for g in self.chars)


def looks_raised(g: Glyph) -> bool:
    """Glyph much smaller than its line and sitting in its upper half"""
    if g.sup:
        return True
    line = g.bounds
    return (
        line[3] - line[1] > (g.rect[3] - g.rect[1]) * 1.5
        and (line[1] + line[3]) / 2 < (g.rect[1] + g.rect[3]) / 2
    )


def parse_numbers(text: str, max_fill: int = 50) -> List[int]:
    """
    Numbers cited by a range text, e.g. "[2, 4-6]" -> [2, 4, 5, 6].
    """
    numbers = set()
    last = None
    fill = False
    for part in _PARTS.findall(text):
        if part.isdigit() and int(part):
            number = int(part)
            numbers.add(number)
            if fill and last is not None:
                n = last + 1
                while n < number and len(numbers) < max_fill:
                    numbers.add(n)
                    n += 1
            last = number
            fill = False
        elif any(ch in RANGE_DASHES for ch in part):
            fill = True
    return sorted(numbers)


class NumberMatcher:
    """Match numeric citations to references carrying an index"""

    def __init__(self, config: Optional[CitationConfig] = None):
        self.config = config or CitationConfig()

    def find_ranges(self, chars: Sequence[Glyph]) -> List[NumberRange]:
        ranges = []
        current: Optional[NumberRange] = None

        for i, g in enumerate(chars):
            prev = chars[i - 1] if i > 0 else None

            if current is not None:
                closing = (
                    current.type == BRACKETS and g.char == ']'
                    or current.type == PARENTHESES and g.char == ')'
                )
                if (prev.page_index == g.page_index
                        and (g.char in RANGE_CHARS or closing)
                        and abs(prev.font_size - g.font_size) < self.config.font_continuity):
                    current.chars.append(g)
                    current.offset_to = i
                    if closing:
                        ranges.append(current)
                        current = None
                    continue
                ranges.append(current)
                current = None

            if not '0' <= g.char <= '9':
                continue

            if looks_raised(g):
                current = NumberRange(SUPERSCRIPT, g.page_index, [g], i, i)
                if prev is not None and prev.char in '[(':
                    current.chars.insert(0, prev)
            elif prev is not None and prev.char == '[':
                current = NumberRange(BRACKETS, g.page_index, [prev, g], i, i)
            elif prev is not None and prev.char == '(':
                current = NumberRange(PARENTHESES, g.page_index, [prev, g], i, i)
            else:
                current = NumberRange(OTHER, g.page_index, [g], i, i)

        if current is not None:
            ranges.append(current)
        return ranges

    def _in_paragraph(self, chars: Sequence[Glyph], r: NumberRange) -> bool:
        """Neighbouring text on at least one side is close"""
        if r.offset_from < 2 or r.offset_to + 1 >= len(chars):
            return False
        gap = self.config.paragraph_gap
        return (
            glyph_distance(chars[r.offset_from - 2], chars[r.offset_from - 1]) < gap
            or glyph_distance(chars[r.offset_to + 1], chars[r.offset_to]) < gap
        )

    def match(
        self,
        chars: Sequence[Glyph],
        references: Sequence[Reference],
        internal_links: Optional[InternalLinkProvider] = None
    ) -> List[CitationOverlay]:
        """
        Args:
            chars: Document stream before the references section
            references: Extracted references with `index` set
            internal_links: Internal links of a page

        Returns:
            Citation overlays in document order
        """
        ranges = self.find_ranges(chars)

        if internal_links is not None:
            links_by_page: Dict[int, List[Tuple[Rect, Position]]] = {}
            for page_index in sorted({r.page_index for r in ranges}):
                links_by_page[page_index] = internal_links(page_index)
            for r in ranges:
                for rect, destination in links_by_page.get(r.page_index, []):
                    if any(intersect_rects(center_rect(g.rect), rect) for g in r.chars):
                        if destination.page_index not in r.destination_pages:
                            r.destination_pages.append(destination.page_index)

        ranges = [r for r in ranges if r.type != OTHER or r.destination_pages]
        ranges = [r for r in ranges if self._in_paragraph(chars, r)]

        by_index: Dict[int, Reference] = {}
        for reference in references:
            if reference.index is not None and reference.index not in by_index:
                by_index[reference.index] = reference

        for r in ranges:
            r.numbers = parse_numbers(r.text, self.config.max_range_fill)
            for number in r.numbers:
                reference = by_index.get(number)
                if reference is None:
                    continue
                r.references.append(reference)
                r.link_agreement = 0
                if r.destination_pages:
                    r.link_agreement = 1 if reference.position.page_index in r.destination_pages else -1

        ranges = [r for r in ranges if r.link_agreement != -1 and r.numbers and r.references]

        groups: Dict[str, List[NumberRange]] = {}
        for r in ranges:
            digit = next(g for g in r.chars if '0' <= g.char <= '9')
            key = f"{r.type}-{round(digit.font_size * 10) / 10}-{digit.font_name}-{r.link_agreement}"
            groups.setdefault(key, []).append(r)

        best: List[NumberRange] = []
        best_count = 0
        for key, group in groups.items():
            count = len({id(ref) for r in group for ref in r.references})
            logger.debug(f"Citation style {key}: {len(group)} ranges, {count} references")
            if count > best_count:
                best, best_count = group, count

        overlays = []
        for r in best:
            first = r.chars[0]
            overlays.append(CitationOverlay(
                position=position_from_glyphs(r.chars, first.page_index),
                sort_index=sort_index(first.page_index, first.offset, 0),
                word=r.text,
                references=r.references,
                offset=r.offset_from,
            ))
        return overlays


def match_by_number(
    chars: Sequence[Glyph],
    references: Sequence[Reference],
    internal_links: Optional[InternalLinkProvider] = None,
    config: Optional[CitationConfig] = None
) -> List[CitationOverlay]:
    """
    Convenience function for numeric citation matching.
    """
    return NumberMatcher(config).match(chars, references, internal_links)
