#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Content fingerprinting for the image store.
"""

import hashlib
from pathlib import Path
from typing import BinaryIO

from ..config import HASH_CHUNK_SIZE
from ..errors import ReadFailure


def compute_fingerprint(stream: BinaryIO) -> str:
    """
    Drain a stream into a SHA-256 hex digest.

    Seekable streams are rewound to the start afterwards so they can be read
    again; for anything else the caller must re-acquire the payload.
    """
    h = hashlib.sha256()
    try:
        for chunk in iter(lambda: stream.read(HASH_CHUNK_SIZE), b""):
            h.update(chunk)
        seekable = getattr(stream, "seekable", None)
        if seekable is not None and seekable():
            stream.seek(0)
    except OSError as e:
        raise ReadFailure(f"error hashing stream: {e}") from e
    return h.hexdigest()


def fingerprint_bytes(data: bytes) -> str:
    """SHA-256 hex digest of an in-memory payload."""
    return hashlib.sha256(data).hexdigest()


def fingerprint_file(path: Path) -> str:
    """Compute full SHA-256 of a file on disk."""
    try:
        with Path(path).open('rb') as f:
            return compute_fingerprint(f)
    except OSError as e:
        raise ReadFailure(f"error reading {path}: {e}") from e
