#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Global configuration and constants for the image store.
"""

import os
from typing import Dict, Set

# Supported containers: canonical extension -> MIME type
SUPPORTED_TYPES: Dict[str, str] = {
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}
EXTENSION_ALIASES: Dict[str, str] = {".jpeg": ".jpg"}
IMAGE_EXT: Set[str] = set(SUPPORTED_TYPES) | set(EXTENSION_ALIASES)

# Formats that carry strippable metadata; everything else is stored verbatim
SANITIZED_EXT: Set[str] = {".jpg", ".png"}

# Storage layout
DEFAULT_UPLOAD_PATH = "./uploads/"
THUMBS_DIRNAME = "thumbs"
BACKUP_SUFFIX = ".bak"
TEMP_PREFIX = ".tmp-"

# Ingestion
SNIFF_BYTES = 512
HASH_CHUNK_SIZE = 1024 * 1024  # 1MB
NAME_LENGTH = 6
SPOOL_MAX_MEMORY = 10 * 1024 * 1024  # 10MB in memory before spilling to disk
DEDUP_ON_SANITIZED = True

# Derivatives
DEFAULT_THUMB_FACTOR = 4
THUMB_JPEG_QUALITY = 85

# Near-duplicate reporting
DEFAULT_PHASH_THRESHOLD = 5
DEFAULT_MAX_PHASH_PIXELS = 24_000_000

# Startup index rebuild
DEFAULT_READY_TIMEOUT_SECONDS = 30.0

# URL ingestion
FETCH_TIMEOUT_SECONDS = 15.0
FETCH_CHUNK_SIZE = 64 * 1024
FETCH_MAX_BYTES = 50 * 1024 * 1024  # 50MB

# Global variables that can be modified by environment or CLI
UPLOAD_PATH = os.getenv("IMGSTASH_UPLOAD_PATH", DEFAULT_UPLOAD_PATH)
READY_TIMEOUT_SECONDS = float(os.getenv("IMGSTASH_READY_TIMEOUT_SECONDS", str(DEFAULT_READY_TIMEOUT_SECONDS)))
