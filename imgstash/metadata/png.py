#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PNG chunk parsing and rewriting.
"""

import struct
import zlib
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import ParseFailure
from .exif import DEFAULT_ORIENTATION, decode_orientation

FORMAT = "png"

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

IHDR = b"IHDR"
IDAT = b"IDAT"
IEND = b"IEND"
EXIF = b"eXIf"

# Chunks that can carry camera, location or free-text metadata
METADATA_CHUNKS = {EXIF, b"tEXt", b"iTXt", b"zTXt"}


@dataclass
class Chunk:
    type: bytes
    data: bytes
    crc: bytes

    @classmethod
    def make(cls, ctype: bytes, data: bytes) -> "Chunk":
        crc = struct.pack(">I", zlib.crc32(ctype + data) & 0xFFFFFFFF)
        return cls(ctype, data, crc)

    def to_bytes(self) -> bytes:
        return struct.pack(">I", len(self.data)) + self.type + self.data + self.crc


@dataclass
class ChunkList:
    chunks: List[Chunk] = field(default_factory=list)
    trailer: bytes = b""

    def exif_chunk(self) -> Optional[Chunk]:
        for chunk in self.chunks:
            if chunk.type == EXIF:
                return chunk
        return None

    def orientation(self) -> int:
        chunk = self.exif_chunk()
        if chunk is None:
            return DEFAULT_ORIENTATION
        return decode_orientation(chunk.data)

    def strip_metadata(self) -> Optional[int]:
        """
        Drop every metadata chunk, keeping all others in order.

        Returns:
            Index where the first eXIf chunk sat among the kept chunks, or
            None if the image had no eXIf chunk.
        """
        kept: List[Chunk] = []
        position = None
        for chunk in self.chunks:
            if chunk.type in METADATA_CHUNKS:
                if chunk.type == EXIF and position is None:
                    position = len(kept)
                continue
            kept.append(chunk)
        self.chunks = kept
        return position

    def insert_exif(self, tiff: bytes, position: int) -> None:
        """Insert an eXIf chunk, kept after IHDR and before the first IDAT."""
        first_idat = next((i for i, c in enumerate(self.chunks) if c.type == IDAT), len(self.chunks))
        position = max(1, min(position, first_idat))
        self.chunks.insert(position, Chunk.make(EXIF, tiff))

    def to_bytes(self) -> bytes:
        return PNG_SIGNATURE + b"".join(c.to_bytes() for c in self.chunks) + self.trailer


def parse_png(data: bytes) -> ChunkList:
    """Split PNG bytes into chunks; raises ParseFailure on bad structure."""
    if not data.startswith(PNG_SIGNATURE):
        raise ParseFailure(FORMAT, "missing PNG signature")

    n = len(data)
    pos = len(PNG_SIGNATURE)
    chunks: List[Chunk] = []
    while True:
        if pos + 8 > n:
            raise ParseFailure(FORMAT, "truncated before IEND")
        length, ctype = struct.unpack(">I4s", data[pos:pos + 8])
        if not ctype.isalpha():
            raise ParseFailure(FORMAT, f"invalid chunk type {ctype!r} at offset {pos}")
        end = pos + 8 + length + 4
        if end > n:
            raise ParseFailure(FORMAT, f"truncated {ctype.decode('ascii')} chunk")
        chunks.append(Chunk(ctype, data[pos + 8:end - 4], data[end - 4:end]))
        pos = end
        if ctype == IEND:
            break

    if chunks[0].type != IHDR:
        raise ParseFailure(FORMAT, "first chunk is not IHDR")
    return ChunkList(chunks, data[pos:])
