"""
Archive Storage Utilities

This module owns the flat on-disk layout of an archive root:

    <root>/<id>.json          entry metadata, stored exactly as fetched
    <root>/<asset_file_name>  binary asset content
"""

import os
import re
import logging
from pathlib import Path
from typing import Dict, Any, List


ENTRY_FILE_PATTERN = re.compile(r'^(\d+)\.json$')


class ArchiveStore:
    """
    Reads and writes entry metadata and assets under one archive root.

    Every entry id maps to exactly one metadata file, so concurrent writers
    working on disjoint ids never touch the same path.
    """

    def __init__(self, root: str = "data"):
        """
        Initialize the store.

        Args:
            root: Archive root directory
        """
        self.root = Path(root)
        self.logger = logging.getLogger(__name__)

    def ensure_root(self):
        """Create the archive root (and parents) if it does not exist."""
        self.root.mkdir(mode=0o755, parents=True, exist_ok=True)
        self.logger.debug(f"Archive root ready at: {self.root.absolute()}")

    def metadata_path(self, entry_id: int) -> Path:
        return self.root / f"{entry_id}.json"

    def asset_path(self, asset_file_name: str) -> Path:
        return self.root / asset_file_name

    def list_entry_ids(self) -> List[int]:
        """
        List the ids of all metadata files under the root, ascending.

        Raises:
            OSError: If the root cannot be enumerated
        """
        ids = []
        with os.scandir(self.root) as it:
            for item in it:
                match = ENTRY_FILE_PATTERN.match(item.name)
                if match:
                    ids.append(int(match.group(1)))
        ids.sort()
        return ids

    def read_metadata(self, entry_id: int) -> str:
        """
        Read the stored metadata text for an entry.

        Raises:
            OSError: If the file is missing or unreadable
        """
        with open(self.metadata_path(entry_id), 'r', encoding='utf-8') as f:
            return f.read()

    def save_metadata(self, entry_id: int, text: str) -> Path:
        """
        Save metadata text for an entry without reformatting it.

        Raises:
            OSError: If the file cannot be written
        """
        path = self.metadata_path(entry_id)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
        self.logger.debug(f"Saved metadata ({len(text)} chars): {path.name}")
        return path

    def asset_exists(self, asset_file_name: str) -> bool:
        if not asset_file_name:
            return False
        return self.asset_path(asset_file_name).is_file()

    def save_asset(self, asset_file_name: str, content: bytes) -> Path:
        """
        Save binary asset content.

        Raises:
            OSError: If the file cannot be written
            ValueError: If the sanitized file name is empty
        """
        if not asset_file_name:
            raise ValueError("Empty asset file name")
        path = self.asset_path(asset_file_name)
        with open(path, 'wb') as f:
            f.write(content)
        self.logger.debug(f"Saved asset ({len(content)} bytes): {path.name}")
        return path

    def get_output_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the archive root.

        Returns:
            Dictionary with file counts and sizes
        """
        stats = {
            'root': str(self.root),
            'metadata_files': 0,
            'asset_files': 0,
            'total_metadata_size': 0,
            'total_asset_size': 0,
        }

        if not self.root.is_dir():
            return stats

        try:
            for item in self.root.iterdir():
                if not item.is_file():
                    continue
                size = item.stat().st_size
                if ENTRY_FILE_PATTERN.match(item.name):
                    stats['metadata_files'] += 1
                    stats['total_metadata_size'] += size
                else:
                    stats['asset_files'] += 1
                    stats['total_asset_size'] += size
        except OSError as e:
            self.logger.error(f"Error calculating archive stats: {e}")

        return stats

