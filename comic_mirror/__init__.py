"""
comic_mirror: Offline Comic Archive Mirror

Mirrors a remotely hosted, sequentially numbered comic archive onto local
storage, and browses and searches the local copy offline.
"""

__version__ = "1.0.0"
__author__ = "comic_mirror Project"
__description__ = "Offline Comic Archive Mirror"

from .core.archive import Archive, Navigation, load_archive, navigate
from .core.errors import (
    AssetFetchFailed,
    DirectoryUnreadable,
    EntryFetchFailed,
    EntryParseFailed,
    MirrorError,
    NotFound,
    RemoteUnavailable,
)
from .core.guard import GuardedArchive
from .core.record import Entry, derive_asset_file_name
from .core.search import MAX_MATCHES, search
from .core.updater import UpdateReport, run_update, update

__all__ = [
    "Archive",
    "AssetFetchFailed",
    "DirectoryUnreadable",
    "Entry",
    "EntryFetchFailed",
    "EntryParseFailed",
    "GuardedArchive",
    "MAX_MATCHES",
    "MirrorError",
    "Navigation",
    "NotFound",
    "RemoteUnavailable",
    "UpdateReport",
    "derive_asset_file_name",
    "load_archive",
    "navigate",
    "run_update",
    "search",
    "update",
]
