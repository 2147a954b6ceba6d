"""
Matched Cross-Reference Overlays
================================
Links in-text mentions such as "see Fig. 3" to the caption or block
they refer to ("Figure 3: ...", "(3)" next to an equation).

A numeric id token optionally preceded by a capitalized label word is a
*source* when it sits inside running text (attached to the preceding
glyph) and a *destination* when it is detached from it (caption or block
start). A source is linked only when exactly one destination in the page
window shares its (label, id) key.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from ..geometry import bounding_rect, min_axis_distance
from ..types import Glyph, InternalLinkOverlay, Position, SOURCE_MATCHED, sort_index

logger = logging.getLogger(__name__)

# Long and short forms that refer to the same kind of object
LABEL_ALIASES = {
    'fig': 'figure',
    'photo': 'photograph',
    'illus': 'illustration',
    'tbl': 'table',
    'eq': 'equation',
    'ex': 'example',
}

_EDGE_NON_DIGITS = re.compile(r"^\D+|\D+$")


@dataclass
class IdCandidate:
    id: str
    page_index: int
    offset_from: int
    offset_to: int
    parenthesized: bool = False
    label: Optional[str] = None
    is_source: bool = False
    is_destination: bool = False

    @property
    def key(self) -> str:
        return f"{canonical_label(self.label)} {self.id}" if self.label else self.id


def canonical_label(label: str) -> str:
    label = label.lower()
    return LABEL_ALIASES.get(label, label)


def trim_non_letters(s: str) -> str:
    """Strip leading/trailing characters that have no case"""
    start = 0
    end = len(s)
    while start < end and s[start].lower() == s[start].upper():
        start += 1
    while end > start and s[end - 1].lower() == s[end - 1].upper():
        end -= 1
    return s[start:end]


@dataclass
class _Word:
    glyphs: List[Glyph]
    offset_from: int
    offset_to: int

    @property
    def text(self) -> str:
        return ''.join(g.char for g in self.glyphs)


def _words(glyphs: Sequence[Glyph]) -> List[_Word]:
    words = []
    current: List[Glyph] = []
    start = 0
    for i, g in enumerate(glyphs):
        current.append(g)
        if (g.space_after or g.line_break_after or g.paragraph_break_after
                or g.char == ')' or i == len(glyphs) - 1):
            words.append(_Word(current, start, i))
            current = []
            start = i + 1
    return words


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


class CrossReferenceMatcher:
    """Match labelled numeric ids between mentions and their targets"""

    def __init__(self, window: int = 5, label_gap: float = 10.0, min_label_length: int = 3):
        self.window = window
        self.label_gap = label_gap
        self.min_label_length = min_label_length

    def candidates(self, glyphs: Sequence[Glyph], page_index: int) -> List[IdCandidate]:
        result = []
        words = _words(glyphs)
        for i, word in enumerate(words):
            prev = words[i - 1] if i > 0 else None
            first = glyphs[word.offset_from].char
            last = glyphs[word.offset_to].char
            starts_with_number = prev is not None and _is_digit(first)
            parenthesized = (
                first == '(' and last == ')'
                and word.offset_from + 1 < len(glyphs)
                and _is_digit(glyphs[word.offset_from + 1].char)
            )
            if not (starts_with_number or parenthesized):
                continue

            id_ = _EDGE_NON_DIGITS.sub('', word.text)
            if not id_:
                continue

            candidate = IdCandidate(
                id=id_,
                page_index=page_index,
                offset_from=word.offset_from,
                offset_to=word.offset_to,
                parenthesized=first == '(',
            )

            if prev is not None:
                label = trim_non_letters(prev.text)
                if (label
                        and label[0] == label[0].upper()
                        and len(label) >= self.min_label_length
                        and min_axis_distance(prev.glyphs[-1].rect, word.glyphs[0].rect) < self.label_gap):
                    candidate.label = label
                    candidate.offset_from = prev.offset_from

            start = candidate.offset_from
            attached = start == 0 or min_axis_distance(glyphs[start - 1].rect, glyphs[start].rect) < self.label_gap
            if attached:
                if candidate.label:
                    candidate.is_source = True
                    result.append(candidate)
            elif candidate.label or candidate.parenthesized:
                candidate.is_destination = True
                result.append(candidate)
        return result

    def overlays(
        self,
        page_index: int,
        num_pages: int,
        glyph_provider: Callable[[int], List[Glyph]]
    ) -> List[InternalLinkOverlay]:
        """Cross-reference overlays whose sources lie on `page_index`"""
        start = max(page_index - self.window, 0)
        end = min(page_index + self.window, num_pages - 1)

        pages: Dict[int, List[Glyph]] = {}
        candidates: List[IdCandidate] = []
        for i in range(start, end + 1):
            pages[i] = glyph_provider(i)
            candidates.extend(self.candidates(pages[i], i))

        destinations: Dict[str, List[IdCandidate]] = {}
        for c in candidates:
            if c.is_destination:
                destinations.setdefault(c.key, []).append(c)

        overlays = []
        for source in candidates:
            if not source.is_source or source.page_index != page_index:
                continue
            found = destinations.get(source.key)
            if not found or len(found) != 1:
                continue
            target = found[0]
            source_glyphs = pages[source.page_index][source.offset_from:source.offset_to + 1]
            target_glyphs = pages[target.page_index][target.offset_from:target.offset_to + 1]
            overlays.append(InternalLinkOverlay(
                position=Position(page_index=page_index, rects=[bounding_rect(source_glyphs)]),
                sort_index=sort_index(page_index, source.offset_from, 0),
                source=SOURCE_MATCHED,
                destination_position=Position(
                    page_index=target.page_index,
                    rects=[bounding_rect(target_glyphs)],
                ),
            ))
        return overlays


def matched_overlays(
    page_index: int,
    num_pages: int,
    glyph_provider: Callable[[int], List[Glyph]],
    window: int = 5
) -> List[InternalLinkOverlay]:
    """
    Convenience function for cross-reference matching.
    """
    return CrossReferenceMatcher(window=window).overlays(page_index, num_pages, glyph_provider)
