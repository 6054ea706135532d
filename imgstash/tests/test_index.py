#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit tests for the dedup index and its readiness gate.
"""

import os
import threading
from datetime import datetime, timezone

import pytest

from imgstash.errors import IndexNotReadyError, IndexRebuildError
from imgstash.models.record import StoredImageRecord
from imgstash.scanning.detector import FAILED, READY, WARMING, DedupIndex
from imgstash.scanning.discovery import discover_images
from imgstash.scanning.hasher import fingerprint_bytes
from imgstash.tests.fixtures.images import make_gif, make_jpeg, make_png


def _record(fingerprint: str, name: str, phash=None) -> StoredImageRecord:
    return StoredImageRecord(fingerprint, name, datetime.now(timezone.utc), phash)


class TestIndexFixture:
    """Storage directory with a few images, two of them identical."""

    @pytest.fixture
    def storage(self, tmp_path):
        jpeg = make_jpeg(orientation=6)
        (tmp_path / "aaaaaa.jpg").write_bytes(jpeg)
        (tmp_path / "bbbbbb.jpg").write_bytes(jpeg)
        (tmp_path / "cccccc.png").write_bytes(make_png())
        (tmp_path / "dddddd.gif").write_bytes(make_gif())
        return tmp_path


class TestRebuild(TestIndexFixture):
    """Building the index from a storage directory."""

    def test_identical_files_collapse(self, storage):
        index = DedupIndex(compute_phash=False)
        assert index.rebuild(storage) == 3
        assert len(index) == 3

        record = index.lookup(fingerprint_bytes((storage / "aaaaaa.jpg").read_bytes()))
        assert record.stored_name == "aaaaaa.jpg"

    def test_record_time_is_file_mtime(self, storage):
        os.utime(storage / "cccccc.png", (1_600_000_000, 1_600_000_000))
        index = DedupIndex(compute_phash=False)
        index.rebuild(storage)

        record = index.lookup(fingerprint_bytes((storage / "cccccc.png").read_bytes()))
        assert record.created == datetime.fromtimestamp(1_600_000_000, tz=timezone.utc)

    def test_skips_derivatives_backups_and_temp_files(self, storage):
        (storage / "thumbs" / "4").mkdir(parents=True)
        (storage / "thumbs" / "4" / "eeeeee.jpg").write_bytes(make_jpeg(size=(16, 12)))
        (storage / "cccccc.png.bak").write_bytes(b"old")
        (storage / ".tmp-123").write_bytes(make_png(size=(8, 8)))
        (storage / "notes.txt").write_text("not an image")

        names = sorted(p.relative_to(storage).as_posix() for p, _ in discover_images(storage))
        assert names == ["aaaaaa.jpg", "bbbbbb.jpg", "cccccc.png", "dddddd.gif"]

    def test_subdirectories_not_indexed(self, storage):
        nested = make_png(size=(20, 10))
        (storage / "sub").mkdir()
        (storage / "sub" / "abc.png").write_bytes(nested)

        index = DedupIndex(compute_phash=False)
        assert index.rebuild(storage) == 3
        assert index.lookup(fingerprint_bytes(nested)) is None
        assert all("/" not in p.relative_to(storage).as_posix() for p, _ in discover_images(storage))

    def test_rebuild_replaces_contents(self, storage):
        index = DedupIndex(compute_phash=False)
        index.rebuild(storage)
        (storage / "cccccc.png").unlink()
        assert index.rebuild(storage) == 2

    def test_missing_directory_fails(self, tmp_path):
        index = DedupIndex(compute_phash=False, ready_timeout=1)
        with pytest.raises(IndexRebuildError):
            index.rebuild(tmp_path / "missing")
        assert index.state == FAILED
        with pytest.raises(IndexRebuildError):
            index.lookup("00" * 32)

    def test_perceptual_hashes_recorded(self, storage):
        index = DedupIndex()
        index.rebuild(storage)
        record = index.lookup(fingerprint_bytes((storage / "cccccc.png").read_bytes()))
        assert record.phash is not None
        assert len(record.phash) == 16


class TestReadiness(TestIndexFixture):
    """Block-until-ready gate."""

    def test_lookup_times_out_while_warming(self):
        index = DedupIndex(ready_timeout=0.01)
        assert index.state == WARMING
        with pytest.raises(IndexNotReadyError):
            index.lookup("00" * 32)
        with pytest.raises(IndexNotReadyError):
            index.insert("00" * 32, _record("00" * 32, "x.jpg"))

    def test_background_rebuild_opens_gate(self, storage):
        index = DedupIndex(compute_phash=False, ready_timeout=10)
        thread = index.start_rebuild(storage)
        assert index.lookup(fingerprint_bytes(make_gif())) is not None
        thread.join()
        assert index.status() == {"state": READY, "entries": 3, "root": str(storage)}

    def test_background_failure_reaches_waiters(self, tmp_path):
        index = DedupIndex(compute_phash=False, ready_timeout=10)
        index.start_rebuild(tmp_path / "missing").join()
        assert index.status()["state"] == FAILED
        with pytest.raises(IndexRebuildError):
            index.wait_ready()

    def test_second_concurrent_rebuild_rejected(self, storage):
        index = DedupIndex(compute_phash=False)
        started = threading.Event()
        release = threading.Event()

        def slow_scan(directory):
            started.set()
            release.wait(5)
            return {}

        index._scan = slow_scan
        thread = index.start_rebuild(storage)
        started.wait(5)
        with pytest.raises(RuntimeError):
            index.start_rebuild(storage)
        release.set()
        thread.join()
        assert index.state == READY


class TestInsert:
    """The one-fingerprint-one-record invariant."""

    @pytest.fixture
    def index(self, tmp_path):
        index = DedupIndex(compute_phash=False)
        index.rebuild(tmp_path)
        return index

    def test_insert_then_lookup(self, index):
        record = _record("ab" * 32, "aBcDeF.jpg")
        assert index.insert("ab" * 32, record) is record
        assert index.lookup("ab" * 32) is record
        assert index.lookup("cd" * 32) is None

    def test_insert_never_overwrites(self, index):
        first = _record("ab" * 32, "first.jpg")
        index.insert("ab" * 32, first)
        assert index.insert("ab" * 32, _record("ab" * 32, "second.jpg")) is first
        assert index.lookup("ab" * 32).stored_name == "first.jpg"

    def test_concurrent_inserts_agree(self, index):
        winners = []
        lock = threading.Lock()

        def worker(i):
            got = index.insert("ef" * 32, _record("ef" * 32, f"n{i}.jpg"))
            with lock:
                winners.append(got.stored_name)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(winners)) == 1
        assert len(index) == 1

    def test_find_similar(self, index):
        index.insert("01" * 32, _record("01" * 32, "near.jpg", phash="ffffffffffffffff"))
        index.insert("02" * 32, _record("02" * 32, "far.jpg", phash="0000000000000000"))

        assert index.find_similar("fffffffffffffff0", threshold=5).stored_name == "near.jpg"
        assert index.find_similar("00000000ffffffff", threshold=5) is None
        assert index.find_similar(None) is None
