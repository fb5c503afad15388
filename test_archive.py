#!/usr/bin/env python3
"""
Tests for loading the archive from disk and navigating it.
"""

import json
import random
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from comic_mirror.core.archive import Archive, load_archive, navigate
from comic_mirror.core.errors import NotFound
from fake_remote import make_entry, make_record


def _write_entries(root: Path, ids, corrupt=()):
    for entry_id in ids:
        (root / f"{entry_id}.json").write_text(json.dumps(make_record(entry_id + 1)), encoding="utf-8")
    for entry_id in corrupt:
        (root / f"{entry_id}.json").write_text("{ this is not json", encoding="utf-8")


def _sparse_archive():
    # Slots: 0 1 _ _ 4 _ 6
    slots = [make_entry(0), make_entry(1), None, None, make_entry(4), None, make_entry(6)]
    return Archive(slots)


def test_load_builds_sparse_archive_and_trims_trailing_gaps():
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        _write_entries(root, [0, 1, 3], corrupt=[2, 5])
        (root / "comic_1.png").write_bytes(b"png")
        (root / "notes.txt").write_text("ignored", encoding="utf-8")

        archive = load_archive(tmp)

        assert len(archive) == 4
        assert archive.present_ids() == [0, 1, 3]
        assert archive.get(2) is None
        assert archive.missing_ids() == [2]
        assert archive.get(3).remote_number == 4


def test_load_reads_ids_beyond_file_count():
    with tempfile.TemporaryDirectory() as tmp:
        _write_entries(Path(tmp), [0, 9])
        archive = Archive.load(tmp)
        assert len(archive) == 10
        assert archive.present_ids() == [0, 9]


def test_load_ignores_stray_file_with_huge_id():
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        _write_entries(root, [0, 2])
        (root / "99999999999999.json").write_text("junk", encoding="utf-8")
        archive = Archive.load(tmp)
        assert len(archive) == 3
        assert archive.present_ids() == [0, 2]


def test_load_treats_deeply_nested_file_as_gap():
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        _write_entries(root, [0, 2])
        (root / "1.json").write_text("[" * 200000, encoding="utf-8")
        archive = Archive.load(tmp)
        assert archive.present_ids() == [0, 2]
        assert archive.missing_ids() == [1]


def test_load_missing_directory_is_empty():
    with tempfile.TemporaryDirectory() as tmp:
        archive = Archive.load(str(Path(tmp) / "does-not-exist"))
        assert len(archive) == 0
        assert archive.is_empty()


def test_load_only_corrupt_files_is_empty():
    with tempfile.TemporaryDirectory() as tmp:
        _write_entries(Path(tmp), [], corrupt=[0, 1])
        assert len(Archive.load(tmp)) == 0


def test_get_out_of_range_is_absent():
    archive = _sparse_archive()
    for entry_id in (-100, -1, 7, 8, 10_000):
        assert archive.get(entry_id) is None
    assert archive.get(2) is None
    assert archive.get(4).id == 4


def test_latest_id():
    assert _sparse_archive().latest_id() == 6
    try:
        Archive().latest_id()
    except NotFound as e:
        assert e.redirect_id is None
    else:
        raise AssertionError("expected NotFound for empty archive")


def test_next_and_previous_present_scan_through_gaps():
    archive = _sparse_archive()
    assert archive.next_present(2) == 4
    assert archive.next_present(4) == 4
    assert archive.next_present(5) == 6
    assert archive.previous_present(3) == 1
    assert archive.previous_present(5) == 4
    assert archive.previous_present(0) == 0


def test_next_and_previous_present_saturate_at_bounds():
    archive = Archive([None, make_entry(1), None, make_entry(3), None, None, None])
    # Trailing gaps are trimmed, so the archive ends at id 3
    assert len(archive) == 4
    assert archive.next_present(100) == 3
    assert archive.previous_present(-5) == 0
    assert archive.previous_present(0) == 0

    leading_gap = Archive([None, None, make_entry(2)])
    assert leading_gap.previous_present(1) == 0


def test_neighbor_scans_stay_in_range_and_find_entries():
    rng = random.Random(1234)
    for _ in range(50):
        size = rng.randint(1, 30)
        slots = [make_entry(i) if rng.random() < 0.4 else None for i in range(size)]
        slots[-1] = make_entry(size - 1)
        archive = Archive(slots)
        last = len(archive) - 1
        for start in range(-2, size + 2):
            nxt = archive.next_present(start)
            prv = archive.previous_present(start)
            assert 0 <= nxt <= last
            assert 0 <= prv <= last
            lo = max(0, min(start, last))
            if any(slots[i] is not None for i in range(lo, last + 1)):
                assert archive.get(nxt) is not None
            if any(slots[i] is not None for i in range(0, lo + 1)):
                assert archive.get(prv) is not None


def test_navigate_returns_neighbors():
    archive = _sparse_archive()
    nav = navigate(archive, 4)
    assert nav.id == 4
    assert nav.entry.id == 4
    assert nav.previous_id == 1
    assert nav.next_id == 6
    assert nav.max_id == 6

    first = archive.navigate(0)
    assert first.previous_id == 0
    assert first.next_id == 1

    last = archive.navigate(6)
    assert last.next_id == 6
    assert last.previous_id == 4


def test_navigate_missing_id_redirects():
    archive = _sparse_archive()
    for entry_id, redirect in ((2, 6), (99, 6), (-1, 0)):
        try:
            archive.navigate(entry_id)
        except NotFound as e:
            assert e.entry_id == entry_id
            assert e.redirect_id == redirect
        else:
            raise AssertionError(f"expected NotFound for {entry_id}")


def test_random_id_only_picks_present_entries():
    archive = _sparse_archive()
    rng = random.Random(7)
    seen = {archive.random_id(rng) for _ in range(200)}
    assert seen == {0, 1, 4, 6}
    try:
        Archive().random_id()
    except NotFound:
        pass
    else:
        raise AssertionError("expected NotFound for empty archive")


if __name__ == "__main__":
    test_load_builds_sparse_archive_and_trims_trailing_gaps()
    test_load_reads_ids_beyond_file_count()
    test_load_ignores_stray_file_with_huge_id()
    test_load_treats_deeply_nested_file_as_gap()
    test_load_missing_directory_is_empty()
    test_load_only_corrupt_files_is_empty()
    test_get_out_of_range_is_absent()
    test_latest_id()
    test_next_and_previous_present_scan_through_gaps()
    test_next_and_previous_present_saturate_at_bounds()
    test_neighbor_scans_stay_in_range_and_find_entries()
    test_navigate_returns_neighbors()
    test_navigate_missing_id_redirects()
    test_random_id_only_picks_present_entries()
    print("✓ archive tests passed")
