#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Minimal EXIF handling: read and write a lone Orientation tag.
"""

import logging

from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

EXIF_HEADER = b"Exif\x00\x00"
ORIENTATION_TAG = int(ExifTags.Base.Orientation)
DEFAULT_ORIENTATION = 1
VALID_ORIENTATIONS = range(1, 9)


def decode_orientation(block: bytes) -> int:
    """
    Orientation value from an EXIF block (TIFF data, with or without the
    'Exif\\0\\0' header). Returns 1 on absence or any decode error.
    """
    if not block:
        return DEFAULT_ORIENTATION
    try:
        exif = Image.Exif()
        exif.load(block)
        value = exif.get(ORIENTATION_TAG)
    except Exception as e:
        logger.debug("Unreadable EXIF block (%d bytes): %s", len(block), e)
        return DEFAULT_ORIENTATION

    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    if isinstance(value, int) and value in VALID_ORIENTATIONS:
        return int(value)
    return DEFAULT_ORIENTATION


def build_orientation_exif(orientation: int) -> bytes:
    """TIFF block (no 'Exif' header) holding only IFD0 Orientation."""
    if orientation not in VALID_ORIENTATIONS:
        orientation = DEFAULT_ORIENTATION
    exif = Image.Exif()
    exif[ORIENTATION_TAG] = orientation
    data = exif.tobytes()
    if data.startswith(EXIF_HEADER):
        data = data[len(EXIF_HEADER):]
    return data
