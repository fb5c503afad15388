"""
Tiered text search over the in-memory archive.

Four passes run in order: whole-word title, whole-word alt/transcript,
substring title, substring alt/transcript. Each pass scans ascending ids and
skips ids already placed, so an entry appears once, at its best tier.
"""

from __future__ import annotations

import re
from typing import Callable, List, Set, Tuple

from .archive import Archive
from .record import Entry


# Maximum number of matches for a search request
MAX_MATCHES = 150

SearchResult = Tuple[int, Entry]


class SearchAccumulator:
    def __init__(self, limit: int = MAX_MATCHES):
        self.limit = limit
        self.seen: Set[int] = set()
        self.results: List[SearchResult] = []

    @property
    def full(self) -> bool:
        return len(self.results) >= self.limit

    def filter_entries(self, archive: Archive, predicate: Callable[[Entry], bool]):
        """Add every unseen entry matching predicate until the cap is reached."""
        if self.full:
            return
        for entry_id, entry in archive:
            if entry_id in self.seen or not predicate(entry):
                continue
            self.results.append((entry_id, entry))
            self.seen.add(entry_id)
            if self.full:
                break


def search(archive: Archive, query: str, limit: int = MAX_MATCHES) -> List[SearchResult]:
    """
    Search titles, alt text and transcripts.

    The query is matched literally. An empty query matches every entry in the
    first pass, up to the cap.

    Args:
        archive: Archive to search
        query: Text to look for (case-sensitive)
        limit: Result cap, at most MAX_MATCHES

    Returns:
        (id, entry) pairs in tier order, ascending id within a tier
    """
    acc = SearchAccumulator(min(limit, MAX_MATCHES))
    word = re.compile(r"\b" + re.escape(query) + r"\b")

    # Whole words
    acc.filter_entries(archive, lambda e: word.search(e.title) is not None)
    acc.filter_entries(archive, lambda e: word.search(e.alt) is not None
                       or word.search(e.transcript) is not None)
    # Substrings
    acc.filter_entries(archive, lambda e: query in e.title)
    acc.filter_entries(archive, lambda e: query in e.alt or query in e.transcript)
    return acc.results
