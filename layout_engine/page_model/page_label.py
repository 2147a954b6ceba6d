"""
Page Label Inferencer
=====================
Detects printed page numbers and predicts a label for every page.

Page-number candidates are words whose trailing digits (or the whole word
as a Roman numeral) parse to an integer. Their positions are expressed
relative to the page's text box, so "page N in the bottom right corner"
clusters across pages. Inside a cluster, a run of candidates where the
page index and the integer advance in lockstep is a label sequence.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from ..clustering import get_clusters
from ..geometry import bounding_rect, rect_center
from ..types import Glyph, Rect

logger = logging.getLogger(__name__)

ARABIC = 'arabic'
ROMAN = 'roman'

ROMAN_VALUES = {'I': 1, 'V': 5, 'X': 10, 'L': 50, 'C': 100, 'D': 500, 'M': 1000}


@dataclass
class PageLabelConfig:
    """Configuration for page label inference"""
    neighborhood: int = 2              # Pages on each side of the target page
    eps: float = 5.0                   # Relative position tolerance
    min_sequence: int = 3
    min_cluster_pages: int = 3
    max_cluster_size: int = 25
    max_pages: int = 25                # Pages sampled for extraction


@dataclass(eq=False)
class LabelWord:
    """A word of a page, positioned relative to the page's text box"""
    glyphs: List[Glyph] = field(repr=False)
    offset_from: int
    offset_to: int
    rect: Rect
    page_index: int = 0
    relative_x: float = 0.0
    relative_y: float = 0.0
    type: Optional[str] = None
    integer: Optional[int] = None

    @property
    def text(self) -> str:
        return ''.join(g.char for g in self.glyphs)


# =============================================================================
# Number parsing
# =============================================================================

def roman_to_integer(s: str) -> Optional[int]:
    """Parse a single-case Roman numeral, None if invalid"""
    if not s or (s != s.upper() and s != s.lower()):
        return None
    total = 0
    prev = 0
    for ch in s.upper():
        value = ROMAN_VALUES.get(ch)
        if value is None:
            return None
        if value > prev:
            total += value - 2 * prev
        else:
            total += value
        prev = value
    return total


def extract_last_integer(s: str) -> Optional[int]:
    """Last run of ASCII digits in the string"""
    digits = ''
    for ch in reversed(s):
        if '0' <= ch <= '9':
            digits = ch + digits
        elif digits:
            break
    return int(digits) if digits else None


def parse_candidate_number(s: str) -> Optional[Tuple[str, int]]:
    """(type, integer) for a page-number-like word"""
    integer = extract_last_integer(s)
    if integer:
        return ARABIC, integer
    integer = roman_to_integer(s)
    if integer:
        return ROMAN, integer
    return None


# =============================================================================
# Words
# =============================================================================

def split_words(glyphs: Sequence[Glyph]) -> List[LabelWord]:
    words = []
    current: List[Glyph] = []
    start = 0
    for i, g in enumerate(glyphs):
        if not current:
            start = i
        current.append(g)
        if (g.space_after or g.line_break_after or g.paragraph_break_after
                or i == len(glyphs) - 1):
            words.append(LabelWord(
                glyphs=current,
                offset_from=start,
                offset_to=i,
                rect=bounding_rect(current),
            ))
            current = []
    return words


def page_words(glyphs: Sequence[Glyph], view: Rect, eps: float = 5.0) -> List[LabelWord]:
    """Words with positions relative to the page's text bounding box"""
    if not glyphs:
        return []
    text_rect = bounding_rect(glyphs)
    view_cx, view_cy = rect_center(view)

    words = split_words(glyphs)
    for word in words:
        cx, cy = rect_center(word.rect)
        dx = cx - view_cx
        if abs(dx) < eps:
            word.relative_x = dx
        elif dx < 0:
            word.relative_x = word.rect[0] - text_rect[0]
        else:
            word.relative_x = text_rect[2] - word.rect[2]

        if cy < view_cy:
            word.relative_y = word.rect[1] - text_rect[1]
        else:
            word.relative_y = text_rect[3] - word.rect[3]
    return words


# =============================================================================
# Inference
# =============================================================================

class PageLabelInferencer:
    """
    Infer page labels.

    Per-page extraction samples the first pages of the document, the
    samples are validated and combined with catalog labels by
    predict_page_labels().
    """

    def __init__(self, config: Optional[PageLabelConfig] = None):
        self.config = config or PageLabelConfig()

    def infer(
        self,
        views: Sequence[Rect],
        glyph_provider: Callable[[int], List[Glyph]],
        catalog_labels: Optional[Sequence[str]] = None
    ) -> List[str]:
        """
        Args:
            views: Raw view box per page
            glyph_provider: Returns structured glyphs for a page index
            catalog_labels: Labels declared in the document catalog

        Returns:
            One label per page
        """
        num_pages = len(views)
        extracted = []
        for i in range(min(self.config.max_pages, num_pages)):
            word = self.extract_page_label(i, views, glyph_provider)
            if word:
                extracted.append(word)

        if not validate_extracted_labels(extracted):
            extracted = None
        else:
            logger.debug(f"Extracted page labels: {[(w.page_index, w.text) for w in extracted]}")

        return predict_page_labels(extracted, catalog_labels, num_pages)

    def extract_page_label(
        self,
        page_index: int,
        views: Sequence[Rect],
        glyph_provider: Callable[[int], List[Glyph]]
    ) -> Optional[LabelWord]:
        """Printed label word of one page, None if no sequence covers it"""
        cfg = self.config
        num_pages = len(views)
        start = page_index - cfg.neighborhood
        end = page_index + cfg.neighborhood
        if start < 0:
            end += -start
            start = 0
        end = min(end, num_pages - 1)

        candidates = []
        for i in range(start, end + 1):
            for word in page_words(glyph_provider(i), views[i], cfg.eps):
                parsed = parse_candidate_number(word.text)
                if parsed:
                    word.page_index = i
                    word.type, word.integer = parsed
                    candidates.append(word)

        best: List[LabelWord] = []
        for y_cluster in self._clusters(candidates, lambda w: w.relative_y):
            for cluster in self._clusters(y_cluster, lambda w: w.relative_x):
                if len(cluster) > cfg.max_cluster_size:
                    continue
                sequence = self._label_sequence(cluster)
                if (sequence
                        and len(sequence) > len(best)
                        and _spread(sequence, lambda w: w.relative_y) <= cfg.eps
                        and _spread(sequence, lambda w: w.relative_x) <= cfg.eps):
                    best = sequence

        for word in best:
            if word.page_index == page_index:
                return word
        return None

    def _clusters(self, words: List[LabelWord], key) -> List[List[LabelWord]]:
        """Clusters spanning enough distinct pages"""
        return [
            c for c in get_clusters(words, key, self.config.eps)
            if len({w.page_index for w in c}) >= self.config.min_cluster_pages
        ]

    def _label_sequence(self, words: List[LabelWord]) -> Optional[List[LabelWord]]:
        """Longest greedy run where page index and integer advance together"""
        words = sorted(words, key=lambda w: w.integer)
        sequences = []
        for i, first in enumerate(words):
            sequence = [first]
            for word in words[i + 1:]:
                prev = sequence[-1]
                if (word.page_index > prev.page_index
                        and word.page_index - prev.page_index == word.integer - prev.integer):
                    sequence.append(word)
            if len(sequence) >= self.config.min_sequence:
                sequences.append(sequence)
        if not sequences:
            return None
        return max(sequences, key=len)


def _spread(words: Sequence[LabelWord], key) -> float:
    values = [key(w) for w in words]
    return max(values) - min(values)


def validate_extracted_labels(labels: Sequence[LabelWord]) -> bool:
    """Adjacent samples of the same numeral type must advance in lockstep"""
    if len(labels) < 2:
        return False
    for prev, cur in zip(labels, labels[1:]):
        if (prev.type == cur.type
                and cur.page_index - prev.page_index != cur.integer - prev.integer):
            return False
    return True


def predict_page_labels(
    extracted: Optional[Sequence[LabelWord]],
    catalog_labels: Optional[Sequence[str]],
    num_pages: int
) -> List[str]:
    """
    Combine extracted samples and catalog labels into one label per page.

    Catalog labels win when they cover all pages and either agree with an
    extracted label, or the extraction found no Arabic labels, or found
    Roman ones. Otherwise Arabic samples are projected linearly over the
    document ("-" where the projection drops below 1). Without either
    source, labels are 1-based page numbers.
    """
    has_roman = False
    has_arabic = False
    validated = 0

    if extracted:
        has_roman = any(w.type == ROMAN for w in extracted)
        has_arabic = any(w.type == ARABIC for w in extracted)
        if catalog_labels:
            validated = sum(
                1 for w in extracted
                if w.page_index < len(catalog_labels) and catalog_labels[w.page_index] == w.text
            )

    if (catalog_labels
            and len(catalog_labels) == num_pages
            and (validated or not has_arabic or has_roman)):
        return list(catalog_labels)

    if has_arabic:
        first = next(w for w in extracted if w.type == ARABIC)
        start = first.integer - first.page_index
        return [str(start + i) if start + i >= 1 else '-' for i in range(num_pages)]

    return [str(i + 1) for i in range(num_pages)]


def infer_page_labels(
    views: Sequence[Rect],
    glyph_provider: Callable[[int], List[Glyph]],
    catalog_labels: Optional[Sequence[str]] = None,
    config: Optional[PageLabelConfig] = None
) -> List[str]:
    """
    Convenience function for page label inference.
    """
    return PageLabelInferencer(config).infer(views, glyph_provider, catalog_labels)
