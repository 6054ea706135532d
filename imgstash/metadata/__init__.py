"""Metadata parsing and stripping for the image store."""

from .sanitizer import sanitize, attach_orientation, get_orientation, fallback_counts, reset_fallback_counts
from .exif import decode_orientation, build_orientation_exif
from .jpeg import parse_jpeg, SegmentList, Segment
from .png import parse_png, ChunkList, Chunk

__all__ = [
    'sanitize',
    'attach_orientation',
    'get_orientation',
    'fallback_counts',
    'reset_fallback_counts',
    'decode_orientation',
    'build_orientation_exif',
    'parse_jpeg',
    'SegmentList',
    'Segment',
    'parse_png',
    'ChunkList',
    'Chunk',
]
