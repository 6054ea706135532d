#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Filesystem storage for original images.
"""

import logging
import os
import secrets
import string
import tempfile
from pathlib import Path
from typing import Optional

from ..config import NAME_LENGTH, TEMP_PREFIX
from ..errors import ImageNotFoundError, ReadFailure, WriteFailure
from ..utils.path import ensure_dir, validate_image_name

logger = logging.getLogger(__name__)

NAME_ALPHABET = string.ascii_letters
DEFAULT_FILE_MODE = 0o644


def write_atomic(path: Path, data: bytes, mode: Optional[int] = None) -> None:
    """
    Write data to path via a temp file in the same directory and a rename,
    so readers see either the old file or the complete new one.
    """
    path = Path(path)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=TEMP_PREFIX)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, DEFAULT_FILE_MODE if mode is None else mode)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
        raise WriteFailure(f"error writing {path}: {e}") from e


def random_name(length: int, extension: str) -> str:
    """Random ASCII-letter name plus extension, e.g. 'aBcDeF.jpg'."""
    return "".join(secrets.choice(NAME_ALPHABET) for _ in range(length)) + extension


class ImageStorage:
    """Stored originals, one file per identifier, in a flat directory."""

    def __init__(self, root: Path, name_length: int = NAME_LENGTH):
        self.root = Path(root)
        self.name_length = name_length
        ensure_dir(self.root)

    def path_for(self, name: str) -> Path:
        return validate_image_name(name, self.root)

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def generate_name(self, extension: str) -> str:
        while True:
            name = random_name(self.name_length, extension)
            if not (self.root / name).exists():
                return name
            logger.debug("Name collision on %s, retrying", name)

    def store(self, data: bytes, extension: str) -> str:
        """Persist data under a fresh identifier and return it."""
        name = self.generate_name(extension)
        write_atomic(self.root / name, data)
        logger.debug("Stored %d bytes as %s", len(data), name)
        return name

    def read(self, name: str) -> bytes:
        path = self.path_for(name)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ImageNotFoundError(name) from e
        except OSError as e:
            raise ReadFailure(f"error reading {path}: {e}") from e

    def remove(self, name: str) -> None:
        try:
            self.path_for(name).unlink()
        except FileNotFoundError:
            pass
