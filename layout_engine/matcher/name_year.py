"""
Name-Year Citation Matcher
==========================
Author-year citations: "Smith and Jones (2001)", "(Brown, 1998)".

Every reference is indexed by the capitalized words and the first year
at its start. Body words found in the index become matches; consecutive
matches of one reference join into a single mention when the text
between them is short and has no ';' or ')'.
"""

import datetime
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from ..geometry import position_from_glyphs
from ..types import CitationOverlay, Glyph, Reference, sort_index
from .number import CitationConfig

NAME = 'name'
YEAR = 'year'

TITLE_OPENERS = ('“', '‘')
JOIN_BLOCKERS = frozenset(';)')


def is_year(word: str, min_year: int = 1800) -> bool:
    return (
        len(word) == 4
        and word.isdigit()
        and min_year <= int(word) <= datetime.date.today().year
    )


def is_name(word: str) -> bool:
    return len(word) >= 2 and word[0] == word[0].upper()


def word_type(word: str) -> Optional[str]:
    if is_year(word):
        return YEAR
    if is_name(word):
        return NAME
    return None


def iter_words(chars: Sequence[Glyph]):
    """(offset, text) per word, split at word breaks"""
    start = 0
    word: List[str] = []
    for i, g in enumerate(chars):
        word.append(g.char)
        if g.word_break_after:
            yield start, ''.join(word)
            word = []
            start = i + 1


@dataclass
class WordMatch:
    type: str
    text: str
    offset: int                # Offset in the document stream
    reference_offset: int      # Offset of the word inside the reference
    match_index: int
    reference: Reference


class NameYearMatcher:
    """Match author-year citations to unnumbered references"""

    def __init__(self, config: Optional[CitationConfig] = None):
        self.config = config or CitationConfig()

    def reference_index(self, references: Sequence[Reference]) -> Dict[str, Dict[int, tuple]]:
        """word -> {id(reference): (reference, offset of word in reference)}"""
        index: Dict[str, Dict[int, tuple]] = {}
        for reference in references:
            adding_names = True
            for offset, text in iter_words(reference.chars):
                kind = word_type(text)
                if text[:1] in TITLE_OPENERS:
                    adding_names = False
                if kind == YEAR or kind == NAME and adding_names:
                    index.setdefault(text, {}).setdefault(id(reference), (reference, offset))
                    # Author names don't follow the year
                    if kind == YEAR:
                        break
        return index

    @staticmethod
    def regular_words(chars: Sequence[Glyph]) -> Set[str]:
        """Lower-case words of the document"""
        words = set()
        for _, text in iter_words(chars):
            if text.lower() != text.upper() and text == text.lower():
                words.add(text)
        return words

    def _can_join(self, chars: Sequence[Glyph], a: WordMatch, b: WordMatch, all_matches: List[WordMatch]) -> bool:
        between = ''.join(g.char for g in chars[a.offset + len(a.text):b.offset])
        if any(ch in JOIN_BLOCKERS for ch in between):
            return False
        if a.type == NAME and b.type == NAME:
            return a.reference_offset < b.reference_offset and len(between) < self.config.name_gap
        inner = all_matches[a.match_index + 1:b.match_index]
        return (
            len(between) < self.config.year_gap
            and (a.match_index + 1 == b.match_index or not any(m.type == NAME for m in inner))
        )

    def match(self, chars: Sequence[Glyph], references: Sequence[Reference]) -> List[CitationOverlay]:
        index = self.reference_index(references)
        regular = self.regular_words(chars)

        # Body words found in the index, in document order
        matches: List[WordMatch] = []
        per_reference: Dict[int, List[WordMatch]] = {}
        order: List[int] = []
        match_index = 0
        for offset, text in iter_words(chars):
            if len(text) < 2 or text[0] != text[0].upper():
                continue
            found = index.get(text)
            if not found or text.lower() in regular:
                continue
            kind = YEAR if is_year(text) else NAME
            first = None
            for key, (reference, ref_offset) in found.items():
                m = WordMatch(kind, text, offset, ref_offset, match_index, reference)
                if first is None:
                    first = m
                if key not in per_reference:
                    per_reference[key] = []
                    order.append(key)
                per_reference[key].append(m)
            matches.append(first)
            match_index += 1

        groups: List[List[WordMatch]] = []
        for key in order:
            ref_matches = per_reference[key]
            current = [ref_matches[0]]
            for prev, m in zip(ref_matches, ref_matches[1:]):
                if self._can_join(chars, prev, m, matches):
                    current.append(m)
                else:
                    groups.append(current)
                    current = [m]
            groups.append(current)

        groups = [
            g for g in groups
            if any(m.type == NAME for m in g)
            and min(m.reference_offset for m in g) < self.config.max_reference_offset
        ]

        # One overlay per matched word, citing every reference it belongs to
        by_offset: Dict[int, List[WordMatch]] = {}
        for group in groups:
            for m in group:
                by_offset.setdefault(m.offset, []).append(m)

        overlays = []
        for offset in sorted(by_offset):
            found = by_offset[offset]
            word = chars[offset:offset + len(found[0].text)]
            refs: List[Reference] = []
            for m in found:
                if all(r is not m.reference for r in refs):
                    refs.append(m.reference)
            first = word[0]
            overlays.append(CitationOverlay(
                position=position_from_glyphs(word, first.page_index),
                sort_index=sort_index(first.page_index, first.offset, 0),
                word=found[0].text,
                references=refs,
                offset=offset,
            ))
        return overlays


def match_by_name_year(
    chars: Sequence[Glyph],
    references: Sequence[Reference],
    config: Optional[CitationConfig] = None
) -> List[CitationOverlay]:
    """
    Convenience function for name-year citation matching.
    """
    return NameYearMatcher(config).match(chars, references)
