"""Process-scoped cache of built content collections.

The cache is an explicit object handed to the pipeline at startup instead of
module-level state. A collection lives in it until the owner calls
:meth:`ContentCache.invalidate`, which is what a rebuild or a new request cycle
does.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from folio.core.types import DocumentKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ContentCache(Generic[T]):
    """Stores one built value per document kind."""

    def __init__(self) -> None:
        self._entries: dict[DocumentKind, T] = {}
        self._lock = threading.Lock()

    def get(self, kind: DocumentKind) -> T | None:
        with self._lock:
            return self._entries.get(kind)

    def put(self, kind: DocumentKind, value: T) -> None:
        with self._lock:
            self._entries[kind] = value

    def get_or_build(self, kind: DocumentKind, build: Callable[[], T]) -> T:
        """Return the cached value for ``kind``, building and storing it on a miss.

        The lock is held while building so concurrent callers never build the
        same kind twice.
        """
        with self._lock:
            if kind in self._entries:
                logger.debug("Content cache hit for %s", kind.value)
                return self._entries[kind]
            logger.debug("Content cache miss for %s", kind.value)
            value = build()
            self._entries[kind] = value
            return value

    def invalidate(self, kind: DocumentKind | None = None) -> None:
        """Drop one kind, or everything when ``kind`` is None."""
        with self._lock:
            if kind is None:
                self._entries.clear()
            else:
                self._entries.pop(kind, None)

    def __contains__(self, kind: object) -> bool:
        with self._lock:
            return kind in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
