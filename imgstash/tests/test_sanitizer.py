#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit tests for metadata stripping.
"""

import logging

import pytest

from imgstash.errors import ParseFailure
from imgstash.metadata.exif import build_orientation_exif, decode_orientation
from imgstash.metadata.jpeg import APP0, COM, XMP_HEADERS, parse_jpeg
from imgstash.metadata.png import METADATA_CHUNKS, parse_png
from imgstash.metadata.sanitizer import (
    attach_orientation, fallback_counts, get_orientation, reset_fallback_counts, sanitize,
)
from imgstash.tests.fixtures.images import (
    CORRUPT_JPEG, CORRUPT_PNG, make_gif, make_jpeg, make_png, make_tagged_jpeg, open_image,
)


class TestExif:
    """Minimal orientation EXIF blocks."""

    @pytest.mark.parametrize("orientation", range(1, 9))
    def test_round_trip(self, orientation):
        assert decode_orientation(build_orientation_exif(orientation)) == orientation

    def test_accepts_exif_header(self):
        assert decode_orientation(b"Exif\x00\x00" + build_orientation_exif(3)) == 3

    @pytest.mark.parametrize("block", [b"", b"garbage", b"II*\x00\xff\xff\xff\xff"])
    def test_bad_blocks_default_to_normal(self, block):
        assert decode_orientation(block) == 1

    def test_out_of_range_value_is_normalised(self):
        assert decode_orientation(build_orientation_exif(42)) == 1


class TestJpegSanitize:
    """Segment-based stripping."""

    def test_only_orientation_survives(self):
        src = make_tagged_jpeg(orientation=6)
        out = sanitize(src)

        exif = open_image(out).getexif()
        assert dict(exif) == {0x0112: 6}
        segments = parse_jpeg(out).segments
        assert not any(s.marker == COM for s in segments)
        assert not any(s.payload.startswith(XMP_HEADERS) for s in segments)
        assert sum(1 for s in segments if s.is_exif) == 1

    def test_pixels_unchanged(self):
        src = make_tagged_jpeg(orientation=8)
        out = sanitize(src)
        assert open_image(out).tobytes() == open_image(src).tobytes()
        # entropy-coded data is copied verbatim
        assert src.endswith(out[-200:])

    def test_orientation_preserved(self):
        for orientation in (1, 3, 6, 8):
            assert get_orientation(sanitize(make_jpeg(orientation=orientation))) == orientation

    def test_missing_exif_gets_normal_orientation(self):
        src = make_jpeg(camera=False)
        out = sanitize(src)
        segments = parse_jpeg(out).segments
        exif_at = next(i for i, s in enumerate(segments) if s.is_exif)
        assert all(s.marker == APP0 for s in segments[1:exif_at])
        assert get_orientation(out) == 1

    def test_idempotent(self):
        once = sanitize(make_tagged_jpeg(orientation=6))
        assert sanitize(once) == once

    def test_trailing_bytes_kept(self):
        src = make_jpeg(orientation=3) + b"TRAILER"
        assert sanitize(src).endswith(b"TRAILER")


class TestPngSanitize:
    """Chunk-based stripping."""

    def test_text_chunks_removed(self):
        out = sanitize(make_png(text=True))
        types = [c.type for c in parse_png(out).chunks]
        assert not set(types) & METADATA_CHUNKS
        assert open_image(out).text == {}

    def test_exif_reinserted_only_when_present(self):
        with_exif = parse_png(sanitize(make_png(orientation=6)))
        assert with_exif.exif_chunk() is not None
        assert with_exif.orientation() == 6
        assert decode_orientation(with_exif.exif_chunk().data) == 6

        without = parse_png(sanitize(make_png(orientation=None)))
        assert without.exif_chunk() is None

    def test_chunk_order_and_content_preserved(self):
        src = make_png(mode="RGBA", orientation=3)
        out = sanitize(src)
        kept = [(c.type, c.data) for c in parse_png(src).chunks if c.type not in METADATA_CHUNKS]
        after = [(c.type, c.data) for c in parse_png(out).chunks if c.type != b"eXIf"]
        assert after == kept

    def test_exif_stays_before_image_data(self):
        types = [c.type for c in parse_png(sanitize(make_png(orientation=6))).chunks]
        assert types[0] == b"IHDR"
        assert types.index(b"eXIf") < types.index(b"IDAT")

    def test_pixels_unchanged(self):
        src = make_png(mode="P", orientation=5)
        assert open_image(sanitize(src)).tobytes() == open_image(src).tobytes()

    def test_idempotent(self):
        for src in (make_png(orientation=6), make_png(text=True), make_png(text=False)):
            once = sanitize(src)
            assert sanitize(once) == once


class TestPassthroughAndFailOpen:
    """GIF passthrough and fallback on broken files."""

    def test_gif_untouched(self):
        gif = make_gif()
        assert sanitize(gif) is gif

    def test_unknown_bytes_untouched(self):
        assert sanitize(b"plain text") == b"plain text"

    @pytest.mark.parametrize("data, fmt", [(CORRUPT_JPEG, "jpeg"), (CORRUPT_PNG, "png")])
    def test_corrupt_file_returned_unchanged(self, data, fmt, caplog):
        reset_fallback_counts()
        with caplog.at_level(logging.WARNING, logger="imgstash.metadata.sanitizer"):
            assert sanitize(data) == data

        assert fallback_counts() == {("sanitize", fmt): 1}
        record = caplog.records[-1]
        assert record.event == "sanitize.fallback"
        assert record.format == fmt

    def test_strict_mode_raises(self):
        with pytest.raises(ParseFailure) as exc:
            sanitize(CORRUPT_JPEG, strict=True)
        assert exc.value.format == "jpeg"

    def test_orientation_of_corrupt_file_is_normal(self):
        assert get_orientation(CORRUPT_JPEG) == 1
        assert get_orientation(make_gif()) == 1


class TestAttachOrientation:
    """Re-tagging freshly encoded images."""

    def test_replaces_existing_exif(self):
        out = attach_orientation(make_jpeg(orientation=6), 3)
        assert dict(open_image(out).getexif()) == {0x0112: 3}

    def test_adds_exif_to_png_without_one(self):
        out = attach_orientation(make_png(text=False), 8)
        assert get_orientation(out) == 8
