#!/usr/bin/env python3
"""
Tests for the exclusive-access archive handle.
"""

import sys
import tempfile
import threading
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from comic_mirror.core.archive import Archive
from comic_mirror.core.errors import NotFound, RemoteUnavailable
from comic_mirror.core.guard import GuardedArchive
from fake_remote import FakeRemote, make_entry, make_record


def _guarded(tmp: str, remote=None) -> GuardedArchive:
    archive = Archive([make_entry(0, title="cat"), None, make_entry(2, title="dog")])
    return GuardedArchive(archive, tmp, remote=remote)


def test_reads_go_through_the_lock():
    with tempfile.TemporaryDirectory() as tmp:
        guarded = _guarded(tmp)
        assert [i for i, _ in guarded.search("cat")] == [0]
        assert guarded.navigate(2).previous_id == 0
        assert guarded.latest_id() == 2
        assert 0 <= guarded.random_id() <= 2
        assert not guarded.locked()


def test_lock_released_after_errors():
    with tempfile.TemporaryDirectory() as tmp:
        guarded = _guarded(tmp)
        try:
            guarded.navigate(1)
        except NotFound as e:
            assert e.redirect_id == 2
        assert not guarded.locked()

        try:
            with guarded.access():
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert not guarded.locked()


def test_access_is_exclusive():
    with tempfile.TemporaryDirectory() as tmp:
        guarded = _guarded(tmp)
        entered = threading.Event()
        release = threading.Event()
        results = []

        def holder():
            with guarded.access():
                entered.set()
                release.wait(5)

        def reader():
            results.append(guarded.search("dog"))

        t1 = threading.Thread(target=holder)
        t1.start()
        assert entered.wait(5)
        t2 = threading.Thread(target=reader)
        t2.start()
        t2.join(0.2)
        assert t2.is_alive()
        assert results == []

        release.set()
        t1.join(5)
        t2.join(5)
        assert [i for i, _ in results[0]] == [2]


def test_update_does_not_refresh_memory_until_reload():
    with tempfile.TemporaryDirectory() as tmp:
        remote = FakeRemote([make_record(n) for n in range(1, 6)])
        guarded = GuardedArchive.load(tmp, remote=remote)
        assert guarded.search("") == []

        report = guarded.update(2)
        assert report.ok
        assert report.fetched_entries == 5
        assert not guarded.locked()
        with guarded.access() as archive:
            assert len(archive) == 0

        archive = guarded.reload()
        assert len(archive) == 5
        assert guarded.latest_id() == 4
        assert [i for i, _ in guarded.search("Comic 3")] == [2]


def test_update_failure_releases_lock():
    with tempfile.TemporaryDirectory() as tmp:
        remote = FakeRemote([make_record(1)])
        remote.unavailable = True
        guarded = GuardedArchive.load(tmp, remote=remote)
        try:
            guarded.update(1)
        except RemoteUnavailable:
            pass
        else:
            raise AssertionError("expected RemoteUnavailable")
        assert not guarded.locked()


if __name__ == "__main__":
    test_reads_go_through_the_lock()
    test_lock_released_after_errors()
    test_access_is_exclusive()
    test_update_does_not_refresh_memory_until_reload()
    test_update_failure_releases_lock()
    print("✓ guard tests passed")
