#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for bulk metadata stripping.
"""

import json
import os
import stat

import pytest

from imgstash.commands.strip_exif import cmd_strip_exif, collect_images, sanitize_directory
from imgstash.errors import ReadFailure
from imgstash.metadata.sanitizer import get_orientation, sanitize
from imgstash.tests.fixtures.images import CORRUPT_JPEG, make_gif, make_png, make_tagged_jpeg, open_image


class TestStripExifFixture:
    """A directory tree with tagged, clean, animated and broken images."""

    @pytest.fixture
    def tree(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "photo.jpg").write_bytes(make_tagged_jpeg(orientation=6))
        (tmp_path / "sub" / "scan.PNG").write_bytes(make_png(orientation=3))
        (tmp_path / "sub" / "anim.gif").write_bytes(make_gif())
        (tmp_path / "broken.jpeg").write_bytes(CORRUPT_JPEG)
        (tmp_path / "readme.txt").write_text("ignored")
        return tmp_path


class TestSanitizeDirectory(TestStripExifFixture):

    def test_summary_counts(self, tree):
        summary = sanitize_directory(tree, progress=False)
        assert (summary.processed, summary.skipped, summary.errors) == (2, 1, 1)
        assert summary.failed_paths == [str(tree / "broken.jpeg")]

    def test_files_rewritten_in_place(self, tree):
        sanitize_directory(tree, progress=False)
        photo = (tree / "photo.jpg").read_bytes()
        assert dict(open_image(photo).getexif()) == {0x0112: 6}
        assert get_orientation((tree / "sub" / "scan.PNG").read_bytes()) == 3
        assert (tree / "broken.jpeg").read_bytes() == CORRUPT_JPEG
        assert not list(tree.rglob("*.bak"))

    def test_second_run_changes_nothing(self, tree):
        sanitize_directory(tree, progress=False)
        before = {p: p.read_bytes() for p in tree.rglob("*") if p.is_file()}
        summary = sanitize_directory(tree, progress=False)
        assert (summary.processed, summary.skipped, summary.errors) == (0, 3, 1)
        assert {p: p.read_bytes() for p in tree.rglob("*") if p.is_file()} == before

    def test_dry_run_leaves_files_alone(self, tree):
        original = (tree / "photo.jpg").read_bytes()
        summary = sanitize_directory(tree, dry_run=True, progress=False)
        assert summary.dry_run
        assert summary.processed == 2
        assert (tree / "photo.jpg").read_bytes() == original

    def test_backup_keeps_original(self, tree):
        original = (tree / "photo.jpg").read_bytes()
        sanitize_directory(tree, make_backup=True, progress=False)
        assert (tree / "photo.jpg.bak").read_bytes() == original
        assert (tree / "photo.jpg").read_bytes() == sanitize(original)
        assert not (tree / "sub" / "anim.gif.bak").exists()

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_file_mode_preserved(self, tree):
        os.chmod(tree / "photo.jpg", 0o640)
        sanitize_directory(tree, progress=False)
        assert stat.S_IMODE(os.stat(tree / "photo.jpg").st_mode) == 0o640

    def test_missing_directory_is_fatal(self, tmp_path):
        with pytest.raises(ReadFailure):
            sanitize_directory(tmp_path / "nope", progress=False)

    def test_collect_skips_temp_files(self, tree):
        (tree / ".tmp-abc").write_bytes(b"partial")
        names = sorted(p.name for p in collect_images(tree))
        assert names == ["anim.gif", "broken.jpeg", "photo.jpg", "scan.PNG"]


class TestStripExifCommand(TestStripExifFixture):

    def test_human_summary(self, tree, capsys):
        assert cmd_strip_exif(tree, dry_run=True) == 0
        out = capsys.readouterr().out
        assert "DRY RUN MODE" in out
        assert "Would process: 2 files" in out
        assert "Skipped: 1 files" in out
        assert "Errors: 1" in out

    def test_json_summary(self, tree, capsys):
        assert cmd_strip_exif(tree, as_json=True) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["result"] == "success"
        assert payload["command"] == "strip-exif"
        assert payload["data"]["processed"] == 2
        assert payload["data"]["errors"] == 1
