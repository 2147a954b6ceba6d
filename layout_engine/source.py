"""
Document Source
===============
The collaborator contract every PDF backend implements. The engine only
talks to documents through these four calls.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from .types import Catalog, Glyph, PageInfo, Position


class DocumentSourceError(Exception):
    """Raised by backends for malformed or unreadable input"""
    pass


class DocumentSource(ABC):
    """
    Access to one open document.

    get_page / get_glyphs / resolve_destination may raise; callers treat a
    failure as a missing signal. catalog() failing aborts the analysis.
    """

    @abstractmethod
    def catalog(self) -> Catalog:
        """Page count, declared page labels and embedded outline"""

    @abstractmethod
    def get_page(self, page_index: int) -> PageInfo:
        """View box and link annotations of a page"""

    @abstractmethod
    def get_glyphs(self, page_index: int) -> List[Glyph]:
        """Raw glyphs of a page in content-stream order"""

    @abstractmethod
    def resolve_destination(self, dest: Any) -> Optional[Position]:
        """Resolve a named or explicit destination, clamped to the page view"""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
