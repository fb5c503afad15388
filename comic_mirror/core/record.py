"""
Entry records and asset file naming.

An entry is one comic's metadata exactly as the remote source describes it.
The JSON text it was parsed from is kept alongside the fields so the stored
copy is written back unchanged.
"""

from __future__ import annotations

import json
import string
from dataclasses import dataclass, field
from typing import Any, Dict

from .errors import EntryParseFailed


# Characters allowed in a local asset file name
ASSET_NAME_WHITELIST = frozenset(string.ascii_letters + string.digits + "-_.")

TEXT_FIELDS = ("year", "month", "day", "link", "news", "safe_title", "transcript", "alt", "title")


def derive_asset_file_name(img_url: str) -> str:
    """
    Derive the local file name for an entry's asset.

    Takes the last path segment of the URL and keeps only whitelisted
    characters, in order. Nothing is escaped or substituted, so a segment
    like ``..`` passes through unchanged.

    Args:
        img_url: Absolute image URL from the entry metadata

    Returns:
        Sanitized file name (possibly empty)
    """
    segment = img_url[img_url.rfind('/') + 1:]
    return ''.join(c for c in segment if c in ASSET_NAME_WHITELIST)


def secure_asset_url(img_url: str) -> str:
    """Rewrite an ``http:`` asset URL to ``https:``."""
    if img_url.startswith("http:"):
        return "https:" + img_url[len("http:"):]
    return img_url


@dataclass(frozen=True)
class Entry:
    id: int
    remote_number: int
    title: str
    safe_title: str
    alt: str
    transcript: str
    news: str
    link: str
    year: str
    month: str
    day: str
    img: str
    raw: str = field(default="", repr=False, compare=False)

    @property
    def asset_file_name(self) -> str:
        """Local file name of the image, derived from its URL."""
        return derive_asset_file_name(self.img)

    @classmethod
    def from_dict(cls, entry_id: int, data: Dict[str, Any], raw: str = "") -> "Entry":
        source = f"entry {entry_id}"
        if not isinstance(data, dict):
            raise EntryParseFailed(source, "record is not a JSON object")
        num = data.get("num")
        if isinstance(num, bool) or not isinstance(num, int) or num < 1:
            raise EntryParseFailed(source, f"invalid num: {num!r}")
        img = data.get("img")
        if not isinstance(img, str):
            raise EntryParseFailed(source, "missing img")
        values = {}
        for name in TEXT_FIELDS:
            value = data.get(name, "")
            if not isinstance(value, str):
                raise EntryParseFailed(source, f"field {name} is not a string")
            values[name] = value
        return cls(id=entry_id, remote_number=num, img=img, raw=raw, **values)

    @classmethod
    def from_json(cls, entry_id: int, text: str) -> "Entry":
        """
        Parse an entry from the remote JSON schema.

        Raises:
            EntryParseFailed: If the text is not JSON or lacks required fields
        """
        try:
            data = json.loads(text)
        except ValueError as e:
            raise EntryParseFailed(f"entry {entry_id}", str(e)) from e
        except RecursionError as e:
            raise EntryParseFailed(f"entry {entry_id}", "JSON nested too deeply") from e
        return cls.from_dict(entry_id, data, raw=text)

    def to_dict(self) -> Dict[str, Any]:
        """Return the entry in the remote wire schema."""
        data: Dict[str, Any] = {"num": self.remote_number}
        for name in TEXT_FIELDS:
            data[name] = getattr(self, name)
        data["img"] = self.img
        return data

    def to_json(self) -> str:
        """Text to persist for this entry; the fetched JSON when known."""
        if self.raw:
            return self.raw
        return json.dumps(self.to_dict(), ensure_ascii=False)
