#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Perceptual feature extraction for near-duplicate reporting.
"""

import io
import logging
import warnings
from pathlib import Path
from typing import Optional, Tuple, Union

import imagehash
from PIL import Image

from ..config import DEFAULT_MAX_PHASH_PIXELS

logger = logging.getLogger(__name__)
logging.getLogger("PIL.TiffImagePlugin").setLevel(logging.WARNING)

# Suppress PIL warnings
warnings.filterwarnings("ignore", category=UserWarning,
                        message=".*Palette images with Transparency expressed in bytes.*")


def _cap_to_pixels(size: Tuple[int, int], max_pixels: int) -> Tuple[int, int]:
    w, h = size
    if not w or not h:
        return (w or 0, h or 0)
    if w * h <= max_pixels:
        return (w, h)
    r = (max_pixels / (w * h)) ** 0.5
    return (max(1, int(w * r)), max(1, int(h * r)))


def perceptual_hash(source: Union[bytes, Path],
                    max_pixels: int = DEFAULT_MAX_PHASH_PIXELS) -> Optional[str]:
    """
    pHash of an image as a 16-digit hex string, or None when undecodable.

    Only used to report visually similar content; identity is always the
    byte fingerprint.
    """
    fp = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        with Image.open(fp) as im:
            im.draft("RGB", _cap_to_pixels(im.size, max_pixels))
            im.thumbnail(_cap_to_pixels(im.size, max_pixels))
            return format(int(str(imagehash.phash(im)), 16), "016x")
    except Exception as e:
        logger.debug("pHash skipped: %s", e)
        return None


def phash_distance(a: str, b: str) -> int:
    """Hamming distance between two hex pHashes."""
    return imagehash.hex_to_hash(a) - imagehash.hex_to_hash(b)
