"""
In-process stand-in for the remote archive, shared by the test scripts.

Entries are described by plain dicts in the remote wire schema. Every call is
counted so tests can assert how much network work an update performed.
"""

import json
import threading
from typing import Dict, Iterable, Optional

from comic_mirror.core.errors import AssetFetchFailed, EntryFetchFailed, RemoteUnavailable
from comic_mirror.core.record import Entry, secure_asset_url


def make_record(num: int, title: str = None, alt: str = "", transcript: str = "",
                img: Optional[str] = None) -> Dict:
    return {
        "month": "1",
        "num": num,
        "link": "",
        "year": "2010",
        "news": "",
        "safe_title": title or f"Comic {num}",
        "transcript": transcript,
        "alt": alt,
        "img": img or f"http://imgs.example.com/comics/comic_{num}.png",
        "title": title or f"Comic {num}",
        "day": str(num % 28 + 1),
    }


def make_entry(entry_id: int, **kwargs) -> Entry:
    record = make_record(entry_id + 1, **kwargs)
    return Entry.from_json(entry_id, json.dumps(record))


class FakeRemote:
    def __init__(self, records: Iterable[Dict] = (), latest: Optional[int] = None):
        self.records: Dict[int, Dict] = {r["num"]: r for r in records}
        self.latest = latest if latest is not None else max(self.records, default=0)
        self.unavailable = False
        self.failing_entries = set()
        self.failing_assets = set()
        self.latest_calls = 0
        self.entry_calls = []
        self.asset_urls = []
        self._lock = threading.Lock()

    @property
    def fetch_calls(self) -> int:
        return len(self.entry_calls) + len(self.asset_urls)

    def fetch_latest(self) -> Entry:
        with self._lock:
            self.latest_calls += 1
        if self.unavailable:
            raise RemoteUnavailable("fake://latest", "connection refused")
        record = self.records.get(self.latest) or make_record(self.latest)
        return Entry.from_json(self.latest - 1, json.dumps(record))

    def fetch_entry(self, entry_id: int) -> Entry:
        with self._lock:
            self.entry_calls.append(entry_id)
        number = entry_id + 1
        if entry_id in self.failing_entries or number not in self.records:
            raise EntryFetchFailed(entry_id, "404 Not Found")
        return Entry.from_json(entry_id, json.dumps(self.records[number]))

    def fetch_asset(self, entry: Entry) -> bytes:
        url = secure_asset_url(entry.img)
        with self._lock:
            self.asset_urls.append(url)
        if entry.id in self.failing_assets:
            raise AssetFetchFailed(entry.id, url, "connection reset")
        return f"image-{entry.remote_number}".encode("utf-8")

    def close(self):
        pass
