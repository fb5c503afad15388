"""
Exclusive access to a shared archive.

One lock covers every read and every write. Readers never run concurrently
with each other or with an update, so nobody observes a half-swapped archive.
"""

from __future__ import annotations

import random
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .archive import Archive, Navigation
from .search import MAX_MATCHES, SearchResult, search
from .remote_client import RemoteSource
from .updater import ProgressCallback, UpdateReport, run_update, update
from ..utils.file_manager import ArchiveStore


class GuardedArchive:
    """
    Owns an Archive and its storage root behind a single lock.

    The request layer goes through this handle instead of touching the
    Archive directly. Every method holds the lock for its full duration and
    releases it on all exit paths, including exceptions.
    """

    def __init__(self, archive: Archive, root: str, config=None,
                 remote: Optional[RemoteSource] = None):
        self._archive = archive
        self._lock = threading.Lock()
        self.root = root
        self.config = config
        self.remote = remote

    @classmethod
    def load(cls, root: str, config=None, remote: Optional[RemoteSource] = None) -> "GuardedArchive":
        return cls(Archive.load(root), root, config, remote)

    @contextmanager
    def access(self) -> Iterator[Archive]:
        with self._lock:
            yield self._archive

    def locked(self) -> bool:
        return self._lock.locked()

    def search(self, query: str, limit: int = MAX_MATCHES) -> List[SearchResult]:
        with self.access() as archive:
            return search(archive, query, limit)

    def navigate(self, entry_id: int) -> Navigation:
        with self.access() as archive:
            return archive.navigate(entry_id)

    def latest_id(self) -> int:
        with self.access() as archive:
            return archive.latest_id()

    def random_id(self, rng: Optional[random.Random] = None) -> int:
        with self.access() as archive:
            return archive.random_id(rng)

    def update(self, worker_count: int, progress: Optional[ProgressCallback] = None) -> UpdateReport:
        """
        Run the updater against the guarded archive.

        The in-memory archive is left as is; call reload() to pick up the
        newly fetched entries.
        """
        with self.access() as archive:
            if self.remote is not None:
                return update(worker_count, archive, self.remote, ArchiveStore(self.root), progress)
            return run_update(worker_count, archive, self.root, self.config, progress)

    def reload(self) -> Archive:
        """Replace the in-memory archive with a fresh load from disk."""
        with self._lock:
            self._archive = Archive.load(self.root)
            return self._archive
