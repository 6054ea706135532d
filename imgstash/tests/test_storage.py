#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for stored-file naming and atomic writes.
"""

from unittest.mock import patch

import pytest

from imgstash.errors import ImageNotFoundError, InvalidNameError, WriteFailure
from imgstash.storage.files import ImageStorage, random_name, write_atomic
from imgstash.utils.path import is_image_name, validate_image_name


class TestNames:

    def test_random_name_shape(self):
        name = random_name(6, ".png")
        assert len(name) == 10
        assert name[:6].isascii() and name[:6].isalpha()
        assert name.endswith(".png")

    def test_collision_regenerates(self, tmp_path):
        (tmp_path / "aaaaaa.jpg").write_bytes(b"taken")
        storage = ImageStorage(tmp_path)
        with patch("imgstash.storage.files.random_name", side_effect=["aaaaaa.jpg", "bbbbbb.jpg"]):
            assert storage.generate_name(".jpg") == "bbbbbb.jpg"

    @pytest.mark.parametrize("name, ok", [
        ("aBcDeF.jpg", True),
        ("aBcDeF.JPEG", True),
        ("aBcDeF.png.bak", False),
        (".tmp-xyz.jpg", False),
        ("readme.txt", False),
    ])
    def test_is_image_name(self, name, ok):
        assert is_image_name(name) is ok

    def test_validate_resolves_inside_root(self, tmp_path):
        assert validate_image_name("aBcDeF.gif", tmp_path) == (tmp_path / "aBcDeF.gif").resolve()
        with pytest.raises(InvalidNameError):
            validate_image_name("..\\aBcDeF.gif", tmp_path)


class TestAtomicWrite:

    def test_write_and_replace(self, tmp_path):
        target = tmp_path / "x.jpg"
        write_atomic(target, b"one")
        write_atomic(target, b"two")
        assert target.read_bytes() == b"two"
        assert [p.name for p in tmp_path.iterdir()] == ["x.jpg"]

    def test_failure_keeps_old_file_and_cleans_temp(self, tmp_path):
        target = tmp_path / "x.jpg"
        target.write_bytes(b"old")
        with patch("imgstash.storage.files.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(WriteFailure):
                write_atomic(target, b"new")
        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["x.jpg"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(WriteFailure):
            write_atomic(tmp_path / "nope" / "x.jpg", b"data")


class TestImageStorage:

    def test_store_and_read(self, tmp_path):
        storage = ImageStorage(tmp_path / "uploads")
        name = storage.store(b"GIF89a...", ".gif")
        assert storage.exists(name)
        assert storage.read(name) == b"GIF89a..."

    def test_read_missing(self, tmp_path):
        with pytest.raises(ImageNotFoundError):
            ImageStorage(tmp_path).read("zzzzzz.png")
