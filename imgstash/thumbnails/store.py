#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Derivative cache: <storage>/thumbs/<factor>/<name>.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from ..config import DEFAULT_THUMB_FACTOR, SANITIZED_EXT, THUMBS_DIRNAME
from ..errors import ImageStoreError, UnsupportedTypeError
from ..scanning.sniffer import get_content_type
from ..storage.files import ImageStorage, write_atomic
from ..utils.path import ensure_dir, normalize_ext
from .generator import shrink_image

logger = logging.getLogger(__name__)


class DerivativeStore:
    """Get-or-make access to shrunken copies of stored originals."""

    def __init__(self, storage: ImageStorage, default_factor: int = DEFAULT_THUMB_FACTOR):
        self.storage = storage
        self.default_factor = default_factor
        self.root = storage.root / THUMBS_DIRNAME

    def cache_path(self, identifier: str, factor: int) -> Path:
        return self.root / str(factor) / identifier

    def get_or_make(self, identifier: str, factor: Optional[int] = None) -> Tuple[bytes, str]:
        """
        Return the derivative of a stored image, generating it on first use.

        The identifier is validated before any filesystem access.

        Returns:
            (bytes, MIME type)

        Raises:
            InvalidNameError, ImageNotFoundError, UnsupportedTypeError,
            DecodeFailure, WriteFailure, ValueError
        """
        if factor is None:
            factor = self.default_factor
        if factor < 1:
            raise ValueError(f"shrink factor must be >= 1, got {factor}")

        source = self.storage.path_for(identifier)
        ext = normalize_ext(source.suffix)
        if ext not in SANITIZED_EXT:
            raise UnsupportedTypeError(ext.lstrip("."))

        cached = self.cache_path(identifier, factor)
        try:
            data = cached.read_bytes()
            logger.debug("Derivative cache hit: %s", cached)
            return data, get_content_type(identifier)
        except FileNotFoundError:
            pass

        thumb, content_type = shrink_image(self.storage.read(identifier), factor)
        ensure_dir(cached.parent)
        write_atomic(cached, thumb)
        logger.debug("Derivative written: %s", cached)
        return thumb, content_type

    def generate_all(self, factor: Optional[int] = None) -> Dict[str, int]:
        """
        Eagerly build every missing derivative for the given factor.

        Per-file failures are logged and counted, never raised.
        """
        if factor is None:
            factor = self.default_factor
        counts = {"generated": 0, "cached": 0, "skipped": 0, "errors": 0}
        for path in sorted(self.storage.root.iterdir()):
            if not path.is_file() or path.name.startswith("."):
                continue
            if normalize_ext(path.suffix) not in SANITIZED_EXT:
                counts["skipped"] += 1
                continue
            if self.cache_path(path.name, factor).exists():
                counts["cached"] += 1
                continue
            try:
                self.get_or_make(path.name, factor)
                counts["generated"] += 1
            except (ImageStoreError, ValueError) as e:
                logger.warning("Failed to create thumbnail for %s: %s", path.name, e)
                counts["errors"] += 1
        logger.info("Derivatives for factor %d: %s", factor, counts)
        return counts
