#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Format-aware metadata stripping for the image store.

JPEG and PNG lose all embedded metadata except one EXIF Orientation tag,
so viewers keep rendering them the right way up. Pixel data is copied
through unchanged. GIF is stored as received: re-encoding risks breaking
animation.

Parsing fails open. A file the parser cannot handle is returned unchanged,
and every such fallback is logged and counted so a parser regression shows
up in the logs and in fallback_counts().
"""

import logging
import threading
from collections import Counter
from typing import Callable, Dict, Optional, Tuple

from ..config import SANITIZED_EXT, SNIFF_BYTES
from ..errors import ParseFailure
from ..scanning.sniffer import detect_extension
from .exif import DEFAULT_ORIENTATION, build_orientation_exif
from .jpeg import parse_jpeg
from .png import parse_png

logger = logging.getLogger(__name__)

_fallbacks: Counter = Counter()
_fallbacks_lock = threading.Lock()


def _retag_jpeg(data: bytes, orientation: Optional[int] = None) -> bytes:
    segments = parse_jpeg(data)
    if orientation is None:
        orientation = segments.orientation()
    position = segments.strip_metadata()
    segments.insert_exif(build_orientation_exif(orientation), position)
    return segments.to_bytes()


def _retag_png(data: bytes, orientation: Optional[int] = None) -> bytes:
    chunks = parse_png(data)
    force = orientation is not None
    if orientation is None:
        orientation = chunks.orientation()
    position = chunks.strip_metadata()
    if position is not None or force:
        chunks.insert_exif(build_orientation_exif(orientation), 1 if position is None else position)
    return chunks.to_bytes()


_RETAGGERS: Dict[str, Callable[..., bytes]] = {
    ".jpg": _retag_jpeg,
    ".png": _retag_png,
}


def sanitize(data: bytes, strict: bool = False) -> bytes:
    """
    Strip metadata from an image, keeping only its orientation.

    Args:
        data: Complete image bytes.
        strict: Re-raise ParseFailure instead of falling back to the input.

    Returns:
        Sanitized bytes; the input itself for GIF, unknown types and (unless
        strict) anything that fails to parse.
    """
    ext = detect_extension(data[:SNIFF_BYTES])
    if ext not in SANITIZED_EXT:
        return data
    try:
        return _RETAGGERS[ext](data)
    except ParseFailure as e:
        if strict:
            raise
        _record_fallback("sanitize", e)
        return data


def attach_orientation(data: bytes, orientation: int, strict: bool = False) -> bytes:
    """Replace any EXIF in a JPEG/PNG with a lone Orientation tag."""
    ext = detect_extension(data[:SNIFF_BYTES])
    if ext not in SANITIZED_EXT:
        return data
    try:
        return _RETAGGERS[ext](data, orientation)
    except ParseFailure as e:
        if strict:
            raise
        _record_fallback("attach_orientation", e)
        return data


def get_orientation(data: bytes) -> int:
    """Orientation (1-8) of a JPEG/PNG; 1 when absent or unreadable."""
    ext = detect_extension(data[:SNIFF_BYTES])
    try:
        if ext == ".jpg":
            return parse_jpeg(data).orientation()
        if ext == ".png":
            return parse_png(data).orientation()
    except ParseFailure as e:
        logger.debug("Orientation defaulted: %s", e)
    return DEFAULT_ORIENTATION


def _record_fallback(operation: str, error: ParseFailure) -> None:
    with _fallbacks_lock:
        _fallbacks[(operation, error.format)] += 1
    logger.warning(
        "%s fell back to original bytes: %s", operation, error,
        extra={"event": f"{operation}.fallback", "format": error.format, "reason": error.reason},
    )


def fallback_counts() -> Dict[Tuple[str, str], int]:
    """Fail-open events so far, keyed by (operation, format)."""
    with _fallbacks_lock:
        return dict(_fallbacks)


def reset_fallback_counts() -> None:
    with _fallbacks_lock:
        _fallbacks.clear()
