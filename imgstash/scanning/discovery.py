#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Storage directory discovery for the image store.
Lists the stored images in the (flat) upload directory.
"""

import logging
import os
from pathlib import Path
from typing import Iterator, List, Tuple

from ..utils.path import is_image_name

logger = logging.getLogger(__name__)


class StorageWalker:
    """Listing of a flat storage directory yielding stored image files."""

    def walk(self, root: Path) -> Iterator[Tuple[Path, os.stat_result]]:
        """
        Yield (path, stat) for every regular image file directly in root.

        Stored names are flat, so subdirectories (the derivative cache and
        anything else placed there) are never descended into. Errors are not
        swallowed: a directory that cannot be listed aborts the walk, since
        an index built from a partial listing is unusable.
        """
        yield from self._scan_directory(Path(root))

    def list_files(self, root: Path) -> List[Tuple[Path, os.stat_result]]:
        return list(self.walk(root))

    def _scan_directory(self, path: Path) -> Iterator[Tuple[Path, os.stat_result]]:
        with os.scandir(path) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if entry.is_dir(follow_symlinks=False):
                    logger.debug("Skipping directory %s", entry.path)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                if not is_image_name(entry.name):
                    logger.debug("Skipping non-image %s", entry.path)
                    continue
                yield Path(entry.path), entry.stat(follow_symlinks=False)


def discover_images(root: Path) -> List[Tuple[Path, os.stat_result]]:
    """Convenience function for a default storage walk."""
    return StorageWalker().list_files(root)
