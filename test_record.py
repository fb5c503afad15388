#!/usr/bin/env python3
"""
Tests for entry parsing and asset file naming.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from comic_mirror.core.errors import EntryParseFailed
from comic_mirror.core.record import Entry, derive_asset_file_name, secure_asset_url
from fake_remote import make_record


def test_asset_name_drops_characters_outside_whitelist():
    assert derive_asset_file_name("https://x.com/a/b/weird name!@#.png") == "weirdname.png"


def test_asset_name_uses_last_segment_only():
    assert derive_asset_file_name("https://imgs.xkcd.com/comics/barrel_cropped_(1).jpg") == "barrel_cropped_1.jpg"
    assert derive_asset_file_name("no-slashes_here.gif") == "no-slashes_here.gif"
    assert derive_asset_file_name("https://x.com/dir/") == ""


def test_asset_name_keeps_dot_sequences():
    assert derive_asset_file_name("https://x.com/a/..") == ".."
    assert derive_asset_file_name("https://x.com/a/..%2Fetc") == "..2Fetc"


def test_secure_asset_url():
    assert secure_asset_url("http://imgs.xkcd.com/comics/a.png") == "https://imgs.xkcd.com/comics/a.png"
    assert secure_asset_url("https://imgs.xkcd.com/comics/a.png") == "https://imgs.xkcd.com/comics/a.png"
    assert secure_asset_url("ftp://host/http:/a.png") == "ftp://host/http:/a.png"


def test_entry_from_json_keeps_raw_text():
    text = '{"num": 42, "title": "Geico", "safe_title": "Geico", "alt": "a",  "img": "https://i/x.png"}'
    entry = Entry.from_json(41, text)
    assert entry.id == 41
    assert entry.remote_number == 42
    assert entry.title == "Geico"
    assert entry.transcript == ""
    assert entry.asset_file_name == "x.png"
    assert entry.to_json() == text


def test_remote_number_is_read_not_computed():
    record = make_record(405)
    entry = Entry.from_json(10, json.dumps(record))
    assert entry.id == 10
    assert entry.remote_number == 405


def test_entry_to_dict_uses_wire_names():
    record = make_record(3, title="Island (sketch)", alt="Hello")
    entry = Entry.from_json(2, json.dumps(record))
    assert entry.to_dict() == record


def test_invalid_records_raise_parse_error():
    bad_inputs = [
        "not json",
        "[1, 2, 3]",
        json.dumps({"title": "no num", "img": "https://i/x.png"}),
        json.dumps({"num": 0, "img": "https://i/x.png"}),
        json.dumps({"num": "7", "img": "https://i/x.png"}),
        json.dumps({"num": 7}),
        json.dumps({"num": 7, "img": "https://i/x.png", "title": 5}),
        "[" * 200000,
    ]
    for text in bad_inputs:
        try:
            Entry.from_json(0, text)
        except EntryParseFailed:
            continue
        raise AssertionError(f"expected parse failure for {text!r}")


if __name__ == "__main__":
    test_asset_name_drops_characters_outside_whitelist()
    test_asset_name_uses_last_segment_only()
    test_asset_name_keeps_dot_sequences()
    test_secure_asset_url()
    test_entry_from_json_keeps_raw_text()
    test_remote_number_is_read_not_computed()
    test_entry_to_dict_uses_wire_names()
    test_invalid_records_raise_parse_error()
    print("✓ record tests passed")
