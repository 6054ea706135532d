#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Content type detection for the image store.

The type is decided from magic numbers in the first bytes of the payload,
never from a client supplied filename or Content-Type header.
"""

import io
from typing import BinaryIO, Optional, Tuple

from ..config import SNIFF_BYTES, SUPPORTED_TYPES
from ..errors import ReadFailure, UnsupportedTypeError
from ..utils.path import normalize_ext

JPEG_MAGIC = b"\xff\xd8\xff"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
GIF_MAGICS = (b"GIF87a", b"GIF89a")


def detect_extension(prefix: bytes) -> Optional[str]:
    """Return the canonical extension for a byte prefix, or None."""
    if prefix.startswith(JPEG_MAGIC):
        return ".jpg"
    if prefix.startswith(PNG_MAGIC):
        return ".png"
    if prefix.startswith(GIF_MAGICS):
        return ".gif"
    return None


def get_content_type(name: str) -> str:
    """MIME type for a stored name, by extension."""
    dot = name.rfind(".")
    if dot < 0:
        return "application/octet-stream"
    return SUPPORTED_TYPES.get(normalize_ext(name[dot:]), "application/octet-stream")


class ReplayStream(io.RawIOBase):
    """Re-presents an already consumed prefix ahead of the rest of a stream."""

    def __init__(self, prefix: bytes, rest: BinaryIO):
        self._prefix = prefix
        self._pos = 0
        self._rest = rest

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        if self._pos < len(self._prefix):
            n = min(len(b), len(self._prefix) - self._pos)
            b[:n] = self._prefix[self._pos:self._pos + n]
            self._pos += n
            return n
        data = self._rest.read(len(b))
        if not data:
            return 0
        n = len(data)
        b[:n] = data
        return n


def sniff(stream: BinaryIO, size: int = SNIFF_BYTES) -> Tuple[str, BinaryIO]:
    """
    Peek at the head of a stream and detect its image type.

    Args:
        stream: Readable binary stream positioned at the start of the payload.
        size: Number of bytes to inspect.

    Returns:
        (extension, stream) where stream yields the full payload from byte 0.
        Seekable sources are rewound and returned as-is; others are wrapped
        so the consumed prefix is replayed.

    Raises:
        UnsupportedTypeError: No known signature matched.
        ReadFailure: The source could not be read.
    """
    try:
        prefix = _read_up_to(stream, size)
    except OSError as e:
        raise ReadFailure(f"error reading stream head: {e}") from e

    ext = detect_extension(prefix)
    if ext is None:
        raise UnsupportedTypeError(_describe(prefix))

    if _is_seekable(stream):
        stream.seek(-len(prefix), io.SEEK_CUR)
        return ext, stream
    return ext, io.BufferedReader(ReplayStream(prefix, stream))


def _read_up_to(stream: BinaryIO, size: int) -> bytes:
    """Read until size bytes or EOF; a short read is not EOF for sockets."""
    chunks = []
    remaining = size
    while remaining > 0:
        data = stream.read(remaining)
        if not data:
            break
        chunks.append(data)
        remaining -= len(data)
    return b"".join(chunks)


def _is_seekable(stream: BinaryIO) -> bool:
    try:
        return stream.seekable()
    except (AttributeError, ValueError):
        return False


def _describe(prefix: bytes) -> str:
    if not prefix:
        return "empty"
    return "bytes " + prefix[:8].hex()
