#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Derivative (thumbnail) generation.

A derivative is the stored original shrunk by an integer factor N with
nearest-neighbour sampling: destination pixel (x, y) is source pixel
(x*N, y*N), and the result is floor(w/N) x floor(h/N). Pixels are not
rotated; instead the original's EXIF orientation is re-attached so viewers
display the thumbnail the same way they display the original.
"""

import io
import logging
from typing import Tuple

from PIL import Image

from ..config import SANITIZED_EXT, SNIFF_BYTES, SUPPORTED_TYPES, THUMB_JPEG_QUALITY
from ..errors import DecodeFailure, UnsupportedTypeError
from ..metadata.exif import DEFAULT_ORIENTATION
from ..metadata.sanitizer import attach_orientation, get_orientation
from ..scanning.sniffer import detect_extension

logger = logging.getLogger(__name__)

# Modes the JPEG encoder accepts as-is
JPEG_MODES = {"L", "RGB", "CMYK"}


def reduced_size(size: Tuple[int, int], factor: int) -> Tuple[int, int]:
    """floor(w/N) x floor(h/N); ValueError if either side would be zero."""
    if factor < 1:
        raise ValueError(f"shrink factor must be >= 1, got {factor}")
    w, h = size[0] // factor, size[1] // factor
    if w == 0 or h == 0:
        raise ValueError(f"image {size[0]}x{size[1]} too small for factor {factor}")
    return w, h


def nearest_shrink(im: Image.Image, factor: int) -> Image.Image:
    """Shrink by factor, sampling the top-left pixel of every NxN block."""
    size = reduced_size(im.size, factor)
    if factor == 1:
        return im.copy()
    if im.mode.startswith("I;16"):
        im = im.convert("I")
    # Pillow samples at output pixel centres: shift by half a block so
    # (x + 0.5) * N + offset lands inside source pixel x * N.
    offset = 0.5 - factor / 2
    return im.transform(
        size,
        Image.Transform.AFFINE,
        (factor, 0, offset, 0, factor, offset),
        resample=Image.Resampling.NEAREST,
    )


def _encode(im: Image.Image, ext: str) -> bytes:
    out = io.BytesIO()
    if ext == ".jpg":
        if im.mode not in JPEG_MODES:
            im = im.convert("RGB")
        params = {"quality": THUMB_JPEG_QUALITY}
        if im.info.get("icc_profile"):
            params["icc_profile"] = im.info["icc_profile"]
        im.save(out, format="JPEG", **params)
    else:
        im.save(out, format="PNG")
    return out.getvalue()


def shrink_image(data: bytes, factor: int) -> Tuple[bytes, str]:
    """
    Produce a derivative of an encoded JPEG or PNG.

    Args:
        data: Encoded source image.
        factor: Integer shrink factor N >= 1.

    Returns:
        (encoded derivative, MIME type); the container matches the source.

    Raises:
        UnsupportedTypeError: Source is GIF or not an image.
        DecodeFailure: Pixel data could not be decoded.
        ValueError: Bad factor, or the result would have a zero dimension.
    """
    if factor < 1:
        raise ValueError(f"shrink factor must be >= 1, got {factor}")
    ext = detect_extension(data[:SNIFF_BYTES])
    if ext not in SANITIZED_EXT:
        raise UnsupportedTypeError(ext.lstrip(".") if ext else "unknown")

    try:
        im = Image.open(io.BytesIO(data))
        im.load()
    except (OSError, EOFError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeFailure(f"cannot decode image: {e}") from e
    with im:
        thumb = nearest_shrink(im, factor)

    encoded = _encode(thumb, ext)

    orientation = get_orientation(data)
    if ext == ".jpg" or orientation != DEFAULT_ORIENTATION:
        encoded = attach_orientation(encoded, orientation)
    logger.debug("Derivative %dx%d (factor %d, orientation %d)",
                 thumb.size[0], thumb.size[1], factor, orientation)
    return encoded, SUPPORTED_TYPES[ext]
