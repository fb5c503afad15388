"""
In-memory archive of entries.

The archive is a list indexed by entry id where each slot holds an Entry or
None. Internal gaps stand for ids whose metadata is missing or unreadable on
disk; trailing gaps are trimmed at load time.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import DirectoryUnreadable, EntryParseFailed, NotFound
from .record import Entry
from ..utils.file_manager import ArchiveStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Navigation:
    id: int
    entry: Entry
    previous_id: int
    next_id: int
    max_id: int


class Archive:
    def __init__(self, entries: Optional[List[Optional[Entry]]] = None):
        slots = list(entries or [])
        while slots and slots[-1] is None:
            slots.pop()
        self._entries: List[Optional[Entry]] = slots

    @classmethod
    def load(cls, root: str) -> "Archive":
        """
        Load every stored entry under an archive root.

        Unparsable or unreadable metadata files become gaps. A root that
        cannot be enumerated at all yields an empty archive.

        Args:
            root: Archive root directory

        Returns:
            Archive with trailing gaps trimmed
        """
        store = ArchiveStore(root)
        try:
            ids = store.list_entry_ids()
        except OSError as e:
            logger.warning(str(DirectoryUnreadable(str(root), str(e))))
            return cls()

        if not ids:
            logger.info(f"No local entries found in {root}")
            return cls()

        logger.info(f"Loading {len(ids)} local entries from {root}")
        parsed: Dict[int, Entry] = {}
        for entry_id in ids:
            try:
                text = store.read_metadata(entry_id)
                parsed[entry_id] = Entry.from_json(entry_id, text)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable entry {entry_id}: {e}")
            except EntryParseFailed as e:
                logger.warning(f"Skipping entry {entry_id}: {e}")

        # Slots only reach the highest id that actually parsed
        slots: List[Optional[Entry]] = [None] * (max(parsed, default=-1) + 1)
        for entry_id, entry in parsed.items():
            slots[entry_id] = entry

        archive = cls(slots)
        logger.info(f"All local entries loaded ({archive.count_present()} present, "
                    f"{len(archive)} slots)")
        return archive

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[int, Entry]]:
        """Iterate over (id, entry) pairs of present entries, ascending."""
        for entry_id, entry in enumerate(self._entries):
            if entry is not None:
                yield entry_id, entry

    def is_empty(self) -> bool:
        """True when the archive has no slots."""
        return not self._entries

    def get(self, entry_id: int) -> Optional[Entry]:
        """Entry at entry_id, or None for a gap or an id out of range."""
        if 0 <= entry_id < len(self._entries):
            return self._entries[entry_id]
        return None

    def count_present(self) -> int:
        """Number of slots holding an entry."""
        return sum(1 for entry in self._entries if entry is not None)

    def present_ids(self) -> List[int]:
        """Ids holding an entry, ascending."""
        return [entry_id for entry_id, _ in self]

    def missing_ids(self) -> List[int]:
        """Ids of internal gaps."""
        return [i for i, entry in enumerate(self._entries) if entry is None]

    def latest_id(self) -> int:
        """
        Highest id in the archive.

        Raises:
            NotFound: If the archive is empty
        """
        if not self._entries:
            raise NotFound(None)
        return len(self._entries) - 1

    def _clamp(self, entry_id: int) -> int:
        return max(0, min(entry_id, self.latest_id()))

    def next_present(self, entry_id: int) -> int:
        """
        Nearest id at or after entry_id holding an entry.

        Saturates at the last id when no entry lies ahead.
        """
        i = self._clamp(entry_id)
        last = len(self._entries) - 1
        while i < last and self._entries[i] is None:
            i += 1
        return i

    def previous_present(self, entry_id: int) -> int:
        """
        Nearest id at or before entry_id holding an entry.

        Saturates at id 0 when no entry lies behind.
        """
        i = self._clamp(entry_id)
        while i > 0 and self._entries[i] is None:
            i -= 1
        return i

    def navigate(self, entry_id: int) -> Navigation:
        """
        Resolve an entry together with its neighbors.

        Raises:
            NotFound: If entry_id holds no entry; redirect_id points at the
                latest id (or 0 for a negative id)
        """
        entry = self.get(entry_id)
        if entry is None:
            if not self._entries:
                raise NotFound(entry_id)
            redirect = 0 if entry_id < 0 else self.latest_id()
            raise NotFound(entry_id, redirect_id=redirect)
        return Navigation(
            id=entry_id,
            entry=entry,
            previous_id=self.previous_present(entry_id - 1),
            next_id=self.next_present(entry_id + 1),
            max_id=self.latest_id(),
        )

    def random_id(self, rng: Optional[random.Random] = None) -> int:
        """
        Uniformly random id among those holding an entry.

        Raises:
            NotFound: If the archive is empty
        """
        present = self.present_ids()
        if not present:
            raise NotFound(None)
        rng = rng or random
        return rng.choice(present)


def load_archive(root: str) -> Archive:
    return Archive.load(root)


def navigate(archive: Archive, entry_id: int) -> Navigation:
    return archive.navigate(entry_id)
