"""
Outline Normalizer
==================
Converts the document's embedded outline into OutlineNode trees with
resolved positions.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence

from ..types import OutlineEntry, OutlineLocation, OutlineNode, Position, sort_index

logger = logging.getLogger(__name__)


class OutlineNormalizer:
    """
    Resolve embedded outline entries.

    Entries with a destination get a position (dropped silently if the
    destination doesn't resolve), entries with a URI keep it. A single
    top-level node wrapping several children (usually the document title)
    is replaced by its children.
    """

    def __init__(self, resolve_destination: Callable[[Any], Optional[Position]]):
        self.resolve_destination = resolve_destination

    def normalize(self, entries: Optional[Sequence[OutlineEntry]]) -> List[OutlineNode]:
        if not entries:
            return []
        nodes = self._transform(entries)
        if len(nodes) == 1 and len(nodes[0].children) > 1:
            nodes = nodes[0].children
        return nodes

    def _transform(self, entries: Sequence[OutlineEntry]) -> List[OutlineNode]:
        nodes = []
        for entry in entries:
            node = OutlineNode(title=entry.title, children=self._transform(entry.children))
            if entry.dest:
                position = self.resolve_destination(entry.dest)
                if position is not None:
                    node.location = OutlineLocation(position=position)
                    node.sort_index = sort_index(position.page_index, 0, 0)
                else:
                    logger.debug(f"Outline entry '{entry.title}' has unresolvable destination")
            elif entry.url:
                node.location = OutlineLocation(url=entry.url)
            nodes.append(node)
        return nodes


def normalize_outline(
    entries: Optional[Sequence[OutlineEntry]],
    resolve_destination: Callable[[Any], Optional[Position]]
) -> List[OutlineNode]:
    """
    Convenience function for outline normalization.
    """
    return OutlineNormalizer(resolve_destination).normalize(entries)
