"""
Parsed Link Overlays
====================
Finds URLs and DOIs written in the page text.

Text is cut into runs at explicit spaces and font changes. A run may
continue backwards onto the next line (a wrapped URL) only when the
wrap happens at a URL break character such as '/' or '-'.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from urllib.parse import quote

from ..geometry import range_rects
from ..types import ExternalLinkOverlay, Glyph, Position, SOURCE_PARSED, sort_index

URL_BREAK_CHARS = frozenset('/-_.?&=:#;,+~@!')

URL_PATTERN = re.compile(
    r"(https?://|www\.|10\.)[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()@:%_+.~#?&/=]*)"
)
DOI_PATTERN = re.compile(r"10(?:\.[0-9]{4,})?/\S*[^\s.,]")

DOI_RESOLVER = 'https://doi.org/'


@dataclass
class ParsedLink:
    start: int
    end: int                # exclusive
    url: str


def text_runs(glyphs: Sequence[Glyph]) -> List[Tuple[int, int]]:
    """(start, end) inclusive glyph ranges that may hold one link"""
    runs = []
    start = 0
    for i in range(1, len(glyphs)):
        before = glyphs[i - 1]
        g = glyphs[i]
        wrapped = before.rect[0] > g.rect[0] and (
            before.rect[1] - g.rect[3] > (g.rect[3] - g.rect[1]) / 2
            or not (before.char in URL_BREAK_CHARS or g.char in URL_BREAK_CHARS)
        )
        if (before.space_after
                or g.font_size != before.font_size
                or g.font_name != before.font_name
                or wrapped):
            runs.append((start, i - 1))
            start = i
    if glyphs:
        runs.append((start, len(glyphs) - 1))
    return runs


def find_links(glyphs: Sequence[Glyph]) -> List[ParsedLink]:
    links = []
    for start, end in text_runs(glyphs):
        # One character per glyph so match offsets map back to glyphs
        text = ''.join(g.char[:1] or '_' for g in glyphs[start:end + 1])

        match = URL_PATTERN.search(text)
        if match:
            if '@' in match.group(0):
                continue
            url = match.group(0).rstrip('.)')
            if url:
                links.append(ParsedLink(start + match.start(), start + match.start() + len(url), url))
            continue

        match = DOI_PATTERN.search(text)
        if match:
            doi = match.group(0)
            links.append(ParsedLink(
                start + match.start(),
                start + match.end(),
                DOI_RESOLVER + quote(doi, safe="-_.!~*'()"),
            ))
    return links


def parsed_overlays(glyphs: Sequence[Glyph], page_index: Optional[int] = None) -> List[ExternalLinkOverlay]:
    """External-link overlays for URLs and DOIs found in the page text"""
    if not glyphs:
        return []
    if page_index is None:
        page_index = glyphs[0].page_index

    overlays = []
    for link in find_links(glyphs):
        overlays.append(ExternalLinkOverlay(
            position=Position(page_index=page_index, rects=range_rects(glyphs, link.start, link.end - 1)),
            sort_index=sort_index(page_index, link.start, 0),
            source=SOURCE_PARSED,
            url=link.url,
        ))
    return overlays
