"""
Snapshot caching for the PDFDancer Python client.

A session keeps four views of document state: the whole document, single pages,
and both of those decoded for one reference class. Each view has its own map.
A document fetch seeds the matching page map; page fetches never seed the
document map. Any mutation clears every map at once.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, NamedTuple, Optional, Type

from .models import (
    ObjectRef, DocumentSnapshot, PageSnapshot, TypedDocumentSnapshot, TypedPageSnapshot
)

logger = logging.getLogger(__name__)

ALL_TYPES_KEY = "__ALL__"


def normalize_types(types: Optional[str]) -> str:
    """
    Canonical cache-key form of a comma-separated types filter.

    Pieces are trimmed, upper-cased and sorted; blank input maps to ALL_TYPES_KEY.
    """
    if types is None or not types.strip():
        return ALL_TYPES_KEY
    pieces = sorted(piece.strip().upper() for piece in types.split(",") if piece.strip())
    normalized = ",".join(pieces)
    return normalized or ALL_TYPES_KEY


class PageSnapshotKey(NamedTuple):
    page_index: int
    types_key: str


class DocumentSnapshotKey(NamedTuple):
    element_class: type
    types_key: str


class TypedPageSnapshotKey(NamedTuple):
    page_index: int
    element_class: type
    types_key: str


class SnapshotFetcher(ABC):
    """
    Performs the network round trip behind a snapshot cache miss.
    Implementations receive the caller's types filter unmodified.
    """

    @abstractmethod
    def fetch_document_snapshot(self, types: Optional[str]) -> DocumentSnapshot:
        """Fetch every page of the document."""

    @abstractmethod
    def fetch_page_snapshot(self, page_index: int, types: Optional[str]) -> PageSnapshot:
        """Fetch a single page (0-based index)."""

    @abstractmethod
    def fetch_typed_document_snapshot(self, element_class: Type[ObjectRef],
                                      types: Optional[str]) -> TypedDocumentSnapshot:
        """Fetch every page decoded for ``element_class``."""

    @abstractmethod
    def fetch_typed_page_snapshot(self, page_index: int, element_class: Type[ObjectRef],
                                  types: Optional[str]) -> TypedPageSnapshot:
        """Fetch a single page decoded for ``element_class``."""


class SnapshotCache:
    """
    Per-session cache over the four snapshot views.

    Not thread-safe: confine a session to one thread or guard it externally.
    Fetcher errors propagate unchanged and leave the cache untouched.
    """

    def __init__(self, fetcher: SnapshotFetcher):
        self._fetcher = fetcher
        self._document_snapshots: Dict[str, DocumentSnapshot] = {}
        self._page_snapshots: Dict[PageSnapshotKey, PageSnapshot] = {}
        self._typed_document_snapshots: Dict[DocumentSnapshotKey, TypedDocumentSnapshot] = {}
        self._typed_page_snapshots: Dict[TypedPageSnapshotKey, TypedPageSnapshot] = {}

    def invalidate(self) -> None:
        """
        Clear all snapshot caches.
        Called after mutations (delete, move, modify, add, redact, page changes).
        """
        logger.debug("Invalidating snapshot caches")
        self._document_snapshots.clear()
        self._page_snapshots.clear()
        self._typed_document_snapshots.clear()
        self._typed_page_snapshots.clear()

    def get_document_snapshot(self, types: Optional[str] = None) -> DocumentSnapshot:
        """
        Get the document snapshot for ``types`` from cache or fetch it.
        A fetched snapshot also seeds the page cache for the same filter.
        """
        key = normalize_types(types)
        cached = self._document_snapshots.get(key)
        if cached is not None:
            logger.debug("Document snapshot cache hit for %s", key)
            return cached

        logger.debug("Document snapshot cache miss for %s", key)
        snapshot = self._fetcher.fetch_document_snapshot(types)
        self._document_snapshots[key] = snapshot
        for page_index, page_snapshot in enumerate(snapshot.pages):
            self._page_snapshots[PageSnapshotKey(page_index, key)] = page_snapshot
        logger.debug("Seeded %d page snapshots for %s", len(snapshot.pages), key)
        return snapshot

    def get_page_snapshot(self, page_index: int, types: Optional[str] = None) -> PageSnapshot:
        key = PageSnapshotKey(page_index, normalize_types(types))
        cached = self._page_snapshots.get(key)
        if cached is not None:
            logger.debug("Page snapshot cache hit for %s", key)
            return cached

        logger.debug("Page snapshot cache miss for %s", key)
        snapshot = self._fetcher.fetch_page_snapshot(page_index, types)
        self._page_snapshots[key] = snapshot
        return snapshot

    def get_typed_document_snapshot(self, element_class: Type[ObjectRef],
                                    types: Optional[str] = None) -> TypedDocumentSnapshot:
        types_key = normalize_types(types)
        key = DocumentSnapshotKey(element_class, types_key)
        cached = self._typed_document_snapshots.get(key)
        if cached is not None:
            logger.debug("Typed document snapshot cache hit for %s", key)
            return cached

        logger.debug("Typed document snapshot cache miss for %s", key)
        snapshot = self._fetcher.fetch_typed_document_snapshot(element_class, types)
        self._typed_document_snapshots[key] = snapshot
        for page_index, page_snapshot in enumerate(snapshot.pages):
            self._typed_page_snapshots[TypedPageSnapshotKey(page_index, element_class, types_key)] = page_snapshot
        return snapshot

    def get_typed_page_snapshot(self, page_index: int, element_class: Type[ObjectRef],
                                types: Optional[str] = None) -> TypedPageSnapshot:
        key = TypedPageSnapshotKey(page_index, element_class, normalize_types(types))
        cached = self._typed_page_snapshots.get(key)
        if cached is not None:
            logger.debug("Typed page snapshot cache hit for %s", key)
            return cached

        logger.debug("Typed page snapshot cache miss for %s", key)
        snapshot = self._fetcher.fetch_typed_page_snapshot(page_index, element_class, types)
        self._typed_page_snapshots[key] = snapshot
        return snapshot
