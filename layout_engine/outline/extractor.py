"""
Outline Extractor
=================
Builds a table of contents from the font hierarchy when the document has
no embedded outline.

Heading candidates are runs of consecutive lines that share one font and
size, differ from the body font and don't end with a period. Runs are
grouped by font; the level-1 font is the prevalent group containing a
well-known section title such as "References". Deeper levels come from
dotted section numbers ("2.1", "2.1.3") validated against their parents,
or from the next font group down.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..geometry import bounding_rect
from ..types import Glyph, OutlineLocation, OutlineNode, Position, sort_index

logger = logging.getLogger(__name__)

DEFAULT_TITLES = ('references', 'bibliography', 'acknowledgments', 'bibliographie')


@dataclass
class OutlineConfig:
    """Configuration for outline extraction"""
    max_pages: int = 100
    max_heading_length: int = 100
    min_group_size: int = 3
    min_level1_headings: int = 4
    known_titles: Tuple[str, ...] = DEFAULT_TITLES


@dataclass(eq=False)
class HeadingRange:
    """Consecutive same-styled lines forming one heading candidate"""
    page_index: int
    font_id: str
    font_size: float
    start: int
    end: int
    upper_case: bool
    global_offset: int
    glyphs: List[Glyph] = field(default_factory=list, repr=False)
    number_parts: List[int] = field(default_factory=list)
    depth: int = 0

    @property
    def text(self) -> str:
        return ''.join(g.char for g in self.glyphs)


# =============================================================================
# Helpers
# =============================================================================

def heading_text(glyphs: Sequence[Glyph]) -> str:
    parts = []
    for i, g in enumerate(glyphs):
        parts.append(g.char)
        if (g.space_after or g.line_break_after) and i != len(glyphs) - 1:
            parts.append(' ')
    return ''.join(parts)


def all_upper_case(glyphs: Sequence[Glyph]) -> bool:
    return all(g.char == g.char.upper() for g in glyphs)


def parse_number_parts(glyphs: Sequence[Glyph]) -> List[int]:
    """Leading dotted section number, e.g. "2.1 Data" -> [2, 1]"""
    chars = []
    for g in glyphs:
        if not (g.char.isdigit() and g.char.isascii() or g.char == '.'):
            break
        chars.append(g.char)
        if g.space_after:
            break
    return [int(x) for x in ''.join(chars).split('.') if x]


def _font_id(g: Glyph) -> str:
    return f"{g.font_name}-{round(g.font_size * 10) / 10}"


def has_duplicates(ranges: Sequence[HeadingRange]) -> bool:
    texts = [r.text for r in ranges]
    return len(set(texts)) != len(texts)


def _most_common(counter: Counter):
    return counter.most_common(1)[0][0]


# =============================================================================
# Extractor
# =============================================================================

class OutlineExtractor:
    """
    Extract an outline from structured pages.

    Returns an empty list when fewer than `min_level1_headings` level-1
    headings are found.
    """

    def __init__(self, config: Optional[OutlineConfig] = None):
        self.config = config or OutlineConfig()

    def extract(self, num_pages: int, glyph_provider: Callable[[int], List[Glyph]]) -> List[OutlineNode]:
        cfg = self.config
        pages = [glyph_provider(i) for i in range(min(num_pages, cfg.max_pages))]
        if not any(pages):
            return []

        fonts: Counter = Counter()
        rotations: Counter = Counter()
        for glyphs in pages:
            for g in glyphs:
                fonts[g.font_name] += 1
                rotations[g.rotation] += 1
        body_font = _most_common(fonts)
        body_rotation = _most_common(rotations)

        groups = self._font_groups(pages, body_font, body_rotation)
        groups = [
            g for g in groups
            if len(g) >= cfg.min_group_size
            and all(len(r.text) < cfg.max_heading_length for r in g)
        ]

        h1, rest = self._find_level1(groups, num_pages)
        if len(h1) < cfg.min_level1_headings:
            logger.debug(f"Outline extraction: {len(h1)} level-1 headings, not enough")
            return []

        for r in h1:
            r.depth = 0
        items = list(h1)

        h2 = self._items_with_depth(h1, rest, 1)
        if len(h2) >= 2:
            for r in h2:
                r.depth = 1
            items.extend(h2)
            h3 = self._items_with_depth(h2, rest, 2)
            if len(h3) >= 2:
                for r in h3:
                    r.depth = 2
                items.extend(h3)
        elif rest and not has_duplicates(rest[0]):
            for r in rest[0]:
                r.depth = 1
            items.extend(rest[0])

        items.sort(key=lambda r: r.global_offset)
        logger.info(f"Extracted outline with {len(items)} headings")
        return build_tree(items)

    def _font_groups(
        self,
        pages: List[List[Glyph]],
        body_font: str,
        body_rotation: int
    ) -> List[List[HeadingRange]]:
        """Heading ranges grouped by font id, largest font first"""
        groups: Dict[str, List[HeadingRange]] = {}

        def flush(r: HeadingRange) -> None:
            if r.upper_case:
                r.font_id += '-U'
            groups.setdefault(r.font_id, []).append(r)

        global_offset = 0
        for page_index, glyphs in enumerate(pages):
            current: Optional[HeadingRange] = None
            start = 0
            fonts_equal = True

            for i, g in enumerate(glyphs):
                font_id = _font_id(g)
                if i > start and _font_id(glyphs[i - 1]) != font_id:
                    fonts_equal = False

                if g.line_break_after:
                    line = glyphs[start:i + 1]
                    upper = all_upper_case(line)

                    if current is not None:
                        if (fonts_equal and current.font_id == font_id
                                and (not current.upper_case or upper)):
                            current.end = i
                            current.glyphs = glyphs[current.start:i + 1]
                        else:
                            flush(current)
                            current = None

                    if (current is None
                            and fonts_equal
                            and glyphs[i].char != '.'
                            and glyphs[start].font_name != body_font
                            and glyphs[start].rotation == body_rotation):
                        current = HeadingRange(
                            page_index=page_index,
                            font_id=font_id,
                            font_size=round(g.font_size * 10) / 10,
                            start=start,
                            end=i,
                            upper_case=upper,
                            global_offset=global_offset,
                            glyphs=list(line),
                            number_parts=parse_number_parts(line),
                        )

                    fonts_equal = True
                    start = i + 1

                global_offset += 1

            if current is not None:
                flush(current)

        return sorted(groups.values(), key=lambda g: -g[0].font_size)

    def _find_level1(
        self,
        groups: List[List[HeadingRange]],
        num_pages: int
    ) -> Tuple[List[HeadingRange], List[List[HeadingRange]]]:
        """Level-1 group and the smaller-font groups after it"""
        titles = set(self.config.known_titles)
        for i, group in enumerate(groups):
            pages = [r.page_index for r in group]
            if max(pages) - min(pages) < num_pages / 2 or has_duplicates(group):
                continue
            if any(r.text.strip().lower() in titles for r in group):
                return group, groups[i + 1:]
        return [], groups

    def _items_with_depth(
        self,
        parents: List[HeadingRange],
        groups: List[List[HeadingRange]],
        depth: int
    ) -> List[HeadingRange]:
        """
        Largest set of numbered headings at `depth` whose numbering agrees
        with the parent level: when the parent number changes between two
        siblings, the same number of parent headings must lie between them.
        """
        candidates = []
        for group in groups:
            items = [r for r in group if len(r.number_parts) == depth + 1]
            numbers = ['.'.join(str(p) for p in r.number_parts) for r in items]
            if len(set(numbers)) != len(items):
                continue

            valid = True
            for prev, cur in zip(items, items[1:]):
                a = prev.number_parts[depth - 1]
                b = cur.number_parts[depth - 1]
                if a != b:
                    aa = _last_parent_index(parents, prev.global_offset)
                    bb = _last_parent_index(parents, cur.global_offset)
                    if b - a != bb - aa:
                        valid = False
            if valid:
                candidates.append(items)

        if not candidates:
            return []
        return max(candidates, key=len)


def _last_parent_index(parents: List[HeadingRange], offset: int) -> int:
    index = -1
    for i, p in enumerate(parents):
        if p.global_offset < offset:
            index = i
    return index


def build_tree(items: Sequence[HeadingRange]) -> List[OutlineNode]:
    """Assemble depth-tagged headings (document order) into a tree"""
    root = OutlineNode(title='')
    stack = [root]
    for item in items:
        node = OutlineNode(
            title=heading_text(item.glyphs),
            sort_index=sort_index(item.page_index, item.start, 0),
            location=OutlineLocation(position=Position(
                page_index=item.page_index,
                rects=[bounding_rect(item.glyphs)],
            )),
        )
        while len(stack) - 1 > item.depth:
            stack.pop()
        stack[-1].children.append(node)
        stack.append(node)
    return root.children


def extract_outline(
    num_pages: int,
    glyph_provider: Callable[[int], List[Glyph]],
    config: Optional[OutlineConfig] = None
) -> List[OutlineNode]:
    """
    Convenience function for outline extraction.
    """
    return OutlineExtractor(config).extract(num_pages, glyph_provider)


def format_outline(nodes: Sequence[OutlineNode], level: int = 0) -> str:
    """Indented text rendering of an outline tree"""
    lines = []
    for node in nodes:
        lines.append('  ' * level + node.title)
        if node.children:
            lines.append(format_outline(node.children, level + 1))
    return '\n'.join(lines)
