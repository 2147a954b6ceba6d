"""
Single-line Bidi Reordering
===========================
Subset of the Unicode bidirectional algorithm for one line of glyphs:
character typing from fixed tables, weak type rules W1-W7, neutral rules
N1-N2, implicit levels I1-I2 and run reversal L2. No explicit embeddings,
the whole line is one level run.
"""

import logging
from typing import List, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Types for U+0000..U+00FF (UnicodeData.txt)
BASE_TYPES = [
    'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'S', 'B', 'S',
    'WS', 'B', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN',
    'BN', 'BN', 'BN', 'BN', 'B', 'B', 'B', 'S', 'WS', 'ON', 'ON', 'ET',
    'ET', 'ET', 'ON', 'ON', 'ON', 'ON', 'ON', 'ES', 'CS', 'ES', 'CS', 'CS',
    'EN', 'EN', 'EN', 'EN', 'EN', 'EN', 'EN', 'EN', 'EN', 'EN', 'CS', 'ON',
    'ON', 'ON', 'ON', 'ON', 'ON', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'ON', 'ON', 'ON', 'ON', 'ON', 'ON', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'ON', 'ON', 'ON', 'ON',
    'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'B', 'BN', 'BN', 'BN', 'BN', 'BN',
    'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN',
    'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'BN', 'CS', 'ON', 'ET',
    'ET', 'ET', 'ET', 'ON', 'ON', 'ON', 'ON', 'L', 'ON', 'ON', 'BN', 'ON',
    'ON', 'ET', 'ET', 'EN', 'EN', 'ON', 'L', 'ON', 'ON', 'ON', 'EN', 'L',
    'ON', 'ON', 'ON', 'ON', 'ON', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'ON', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L',
    'L', 'L', 'L', 'L', 'L', 'ON', 'L', 'L', 'L', 'L', 'L', 'L', 'L', 'L'
]

# Types for U+0600..U+06FF; U+061D is unassigned
ARABIC_TYPES = [
    'AN', 'AN', 'AN', 'AN', 'AN', 'AN', 'ON', 'ON', 'AL', 'ET', 'ET', 'AL',
    'CS', 'AL', 'ON', 'ON', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM',
    'NSM', 'NSM', 'NSM', 'NSM', 'AL', 'AL', '', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM',
    'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM',
    'NSM', 'NSM', 'NSM', 'NSM', 'AN', 'AN', 'AN', 'AN', 'AN', 'AN', 'AN',
    'AN', 'AN', 'AN', 'ET', 'AN', 'AN', 'AL', 'AL', 'AL', 'NSM', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL',
    'AL', 'AL', 'AL', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'AN',
    'ON', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'NSM', 'AL', 'AL', 'NSM', 'NSM',
    'ON', 'NSM', 'NSM', 'NSM', 'NSM', 'AL', 'AL', 'EN', 'EN', 'EN', 'EN',
    'EN', 'EN', 'EN', 'EN', 'EN', 'EN', 'AL', 'AL', 'AL', 'AL', 'AL', 'AL'
]

STRONG_RTL = ('R', 'AL', 'AN')


def char_type(char: str) -> str:
    """Bidi class of the first code point of `char`"""
    if not char:
        return 'L'
    code = ord(char[0])
    if code <= 0x00FF:
        return BASE_TYPES[code]
    if 0x0590 <= code <= 0x05F4:
        return 'R'
    if 0x0600 <= code <= 0x06FF:
        t = ARABIC_TYPES[code & 0xFF]
        if not t:
            logger.debug(f"Bidi: invalid Unicode character {code:x}")
            return 'L'
        return t
    if 0x0700 <= code <= 0x08AC:
        return 'AL'
    return 'L'


def is_rtl(char: str) -> bool:
    return char_type(char) in STRONG_RTL


def _find_unequal(types: List[str], start: int, value: str) -> int:
    j = start
    while j < len(types) and types[j] == value:
        j += 1
    return j


def _base_level(types: List[str], num_bidi: int) -> int:
    # Mostly-LTR lines stay LTR; otherwise the first strong type decides
    if num_bidi / len(types) < 0.3 and len(types) > 4:
        return 0
    for t in types:
        if t == 'L':
            return 0
        if t in ('R', 'AL'):
            return 1
    return 1


def bidi_reorder(items: Sequence[T], chars: Sequence[str]) -> List[T]:
    """
    Reorder one line of items from visual to logical order.

    Args:
        items: Line items in visual (geometric) order
        chars: Character of each item, same length as items

    Returns:
        New list in logical order. Lines without RTL characters are
        returned unchanged.
    """
    n = len(items)
    result = list(items)
    if n == 0:
        return result

    types = [char_type(c) for c in chars]
    num_bidi = sum(1 for t in types if t in STRONG_RTL)
    if num_bidi == 0:
        return result

    start_level = _base_level(types, num_bidi)
    levels = [start_level] * n

    e = 'R' if start_level & 1 else 'L'
    sor = e
    eor = sor

    # W1. NSM takes the type of the previous character
    last = sor
    for i in range(n):
        if types[i] == 'NSM':
            types[i] = last
        else:
            last = types[i]

    # W2. EN after AL becomes AN
    last = sor
    for i in range(n):
        t = types[i]
        if t == 'EN':
            types[i] = 'AN' if last == 'AL' else 'EN'
        elif t in ('R', 'L', 'AL'):
            last = t

    # W3. AL -> R
    for i in range(n):
        if types[i] == 'AL':
            types[i] = 'R'

    # W4. single separators between numbers
    for i in range(1, n - 1):
        if types[i] == 'ES' and types[i - 1] == 'EN' and types[i + 1] == 'EN':
            types[i] = 'EN'
        if (types[i] == 'CS' and types[i - 1] in ('EN', 'AN')
                and types[i + 1] == types[i - 1]):
            types[i] = types[i - 1]

    # W5. terminators next to EN
    for i in range(n):
        if types[i] != 'EN':
            continue
        j = i - 1
        while j >= 0 and types[j] == 'ET':
            types[j] = 'EN'
            j -= 1
        j = i + 1
        while j < n and types[j] == 'ET':
            types[j] = 'EN'
            j += 1

    # W6. remaining separators and terminators
    for i in range(n):
        if types[i] in ('WS', 'ES', 'ET', 'CS'):
            types[i] = 'ON'

    # W7. EN after L becomes L
    last = sor
    for i in range(n):
        t = types[i]
        if t == 'EN':
            types[i] = 'L' if last == 'L' else 'EN'
        elif t in ('R', 'L'):
            last = t

    # N1. neutrals between same-direction strong types
    i = 0
    while i < n:
        if types[i] != 'ON':
            i += 1
            continue
        end = _find_unequal(types, i + 1, 'ON')
        before = types[i - 1] if i > 0 else sor
        after = types[end] if end < n else eor
        if before != 'L':
            before = 'R'
        if after != 'L':
            after = 'R'
        if before == after:
            for j in range(i, end):
                types[j] = before
        i = end

    # N2. leftovers take the embedding direction
    for i in range(n):
        if types[i] == 'ON':
            types[i] = e

    # I1/I2. implicit levels
    for i in range(n):
        t = types[i]
        if levels[i] & 1 == 0:
            if t == 'R':
                levels[i] += 1
            elif t in ('AN', 'EN'):
                levels[i] += 2
        elif t in ('L', 'AN', 'EN'):
            levels[i] += 1

    # L2. reverse runs from the highest level down to the lowest odd one
    highest = max(levels)
    odd_levels = [lv for lv in levels if lv & 1]
    if not odd_levels:
        return result
    lowest_odd = min(odd_levels)

    for level in range(highest, lowest_odd - 1, -1):
        start = -1
        for i in range(n):
            if levels[i] < level:
                if start >= 0:
                    result[start:i] = result[start:i][::-1]
                    start = -1
            elif start < 0:
                start = i
        if start >= 0:
            result[start:n] = result[start:n][::-1]

    return result
