"""
Error taxonomy for the archive mirror.

Only RemoteUnavailable escapes an update run. The per-id and per-file errors
are raised inside a worker or the loader, caught there, and turned into
report entries or absent archive slots.
"""

from typing import Optional


class MirrorError(Exception):
    """Base class for all archive mirror errors."""


class RemoteUnavailable(MirrorError):
    """The remote "latest" descriptor could not be fetched or parsed."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        message = f"Remote source unavailable: {url}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class EntryFetchFailed(MirrorError):
    """Metadata for a single entry could not be downloaded."""

    def __init__(self, entry_id: int, reason: str = ""):
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(f"Failed to fetch entry {entry_id}: {reason}")


class AssetFetchFailed(MirrorError):
    """The asset referenced by an entry could not be downloaded or stored."""

    def __init__(self, entry_id: Optional[int], url: str, reason: str = ""):
        self.entry_id = entry_id
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch asset {url} for entry {entry_id}: {reason}")


class EntryParseFailed(MirrorError):
    """A metadata record was not a valid entry."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not parse entry from {source}: {reason}")


class DirectoryUnreadable(MirrorError):
    """The archive root could not be enumerated."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Archive directory unreadable: {path} ({reason})")


class NotFound(MirrorError):
    """
    An id has no entry in the archive.

    redirect_id is the nearest valid boundary the caller should send the
    user to instead, or None when the archive is empty.
    """

    def __init__(self, entry_id: Optional[int], redirect_id: Optional[int] = None):
        self.entry_id = entry_id
        self.redirect_id = redirect_id
        if entry_id is None:
            message = "Archive is empty"
        else:
            message = f"No entry with id {entry_id}"
        super().__init__(message)
