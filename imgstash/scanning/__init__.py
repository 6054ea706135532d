"""Sniffing, hashing and indexing modules for the image store."""

from .sniffer import sniff, detect_extension, get_content_type, ReplayStream
from .hasher import compute_fingerprint, fingerprint_bytes, fingerprint_file
from .discovery import StorageWalker, discover_images
from .detector import DedupIndex

__all__ = [
    'sniff',
    'detect_extension',
    'get_content_type',
    'ReplayStream',
    'compute_fingerprint',
    'fingerprint_bytes',
    'fingerprint_file',
    'StorageWalker',
    'discover_images',
    'DedupIndex',
]
