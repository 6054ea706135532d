#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
JPEG segment parsing and rewriting.

A JPEG is a sequence of marker segments. Everything except the metadata
segments is carried through untouched, including entropy-coded scan data
and any bytes after EOI.
"""

import struct
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import ParseFailure
from .exif import DEFAULT_ORIENTATION, EXIF_HEADER, decode_orientation

FORMAT = "jpeg"

SOI = 0xD8
EOI = 0xD9
SOS = 0xDA
APP0 = 0xE0
APP1 = 0xE1
APP13 = 0xED
COM = 0xFE

# Markers without a length field
STANDALONE = {0x01, SOI, EOI} | set(range(0xD0, 0xD8))

XMP_HEADERS = (b"http://ns.adobe.com/xap/1.0/\x00", b"http://ns.adobe.com/xmp/extension/\x00")

MAX_PAYLOAD = 0xFFFF - 2


@dataclass
class Segment:
    marker: int
    payload: bytes = b""
    scan: bytes = b""  # entropy-coded data following an SOS header

    @property
    def is_exif(self) -> bool:
        return self.marker == APP1 and self.payload.startswith(EXIF_HEADER)

    @property
    def is_metadata(self) -> bool:
        if self.is_exif or self.marker in (APP13, COM):
            return True
        return self.marker == APP1 and self.payload.startswith(XMP_HEADERS)

    def to_bytes(self) -> bytes:
        if self.marker in STANDALONE:
            return bytes((0xFF, self.marker))
        return (bytes((0xFF, self.marker)) + struct.pack(">H", len(self.payload) + 2)
                + self.payload + self.scan)


@dataclass
class SegmentList:
    segments: List[Segment] = field(default_factory=list)
    trailer: bytes = b""

    def exif_segment(self) -> Optional[Segment]:
        for seg in self.segments:
            if seg.is_exif:
                return seg
        return None

    def orientation(self) -> int:
        seg = self.exif_segment()
        if seg is None:
            return DEFAULT_ORIENTATION
        return decode_orientation(seg.payload[len(EXIF_HEADER):])

    def strip_metadata(self) -> int:
        """
        Drop EXIF, XMP, IPTC and comment segments.

        Returns:
            Index at which a replacement EXIF segment belongs: where the
            first EXIF segment sat, else after SOI and any APP0 segments.
        """
        kept: List[Segment] = []
        position = None
        for seg in self.segments:
            if seg.is_metadata:
                if seg.is_exif and position is None:
                    position = len(kept)
                continue
            kept.append(seg)
        self.segments = kept

        if position is None:
            position = 1
            while position < len(kept) and kept[position].marker == APP0:
                position += 1
        return position

    def insert_exif(self, tiff: bytes, position: int) -> None:
        payload = EXIF_HEADER + tiff
        if len(payload) > MAX_PAYLOAD:
            raise ParseFailure(FORMAT, "EXIF segment too large")
        self.segments.insert(position, Segment(APP1, payload))

    def to_bytes(self) -> bytes:
        return b"".join(seg.to_bytes() for seg in self.segments) + self.trailer


def parse_jpeg(data: bytes) -> SegmentList:
    """Split JPEG bytes into segments; raises ParseFailure on bad structure."""
    n = len(data)
    if n < 4 or data[0] != 0xFF or data[1] != SOI:
        raise ParseFailure(FORMAT, "missing SOI marker")

    segments = [Segment(SOI)]
    pos = 2
    while True:
        if pos >= n:
            raise ParseFailure(FORMAT, "truncated before EOI")
        if data[pos] != 0xFF:
            raise ParseFailure(FORMAT, f"expected marker at offset {pos}")
        while pos < n and data[pos] == 0xFF:
            pos += 1
        if pos >= n:
            raise ParseFailure(FORMAT, "truncated marker")
        marker = data[pos]
        pos += 1

        if marker == EOI:
            segments.append(Segment(EOI))
            return SegmentList(segments, data[pos:])
        if marker in STANDALONE:
            segments.append(Segment(marker))
            continue

        if pos + 2 > n:
            raise ParseFailure(FORMAT, f"truncated length for marker 0x{marker:02X}")
        (length,) = struct.unpack(">H", data[pos:pos + 2])
        if length < 2 or pos + length > n:
            raise ParseFailure(FORMAT, f"bad length {length} for marker 0x{marker:02X}")
        seg = Segment(marker, data[pos + 2:pos + length])
        pos += length

        if marker == SOS:
            end = _scan_end(data, pos)
            seg.scan = data[pos:end]
            pos = end
        segments.append(seg)


def _scan_end(data: bytes, pos: int) -> int:
    """Offset of the first real marker after entropy-coded data."""
    n = len(data)
    while True:
        i = data.find(b"\xff", pos)
        if i < 0 or i + 1 >= n:
            raise ParseFailure(FORMAT, "unterminated scan data")
        nxt = data[i + 1]
        # stuffed zero, restart marker or fill byte
        if nxt == 0x00 or 0xD0 <= nxt <= 0xD7 or nxt == 0xFF:
            pos = i + 1
            continue
        return i
