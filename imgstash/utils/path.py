#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Path utility functions for the image store.
"""

from pathlib import Path

from ..config import EXTENSION_ALIASES, IMAGE_EXT
from ..errors import InvalidNameError


def ensure_dir(p: Path) -> None:
    """Ensure directory exists, creating it if necessary."""
    p.mkdir(parents=True, exist_ok=True)


def normalize_ext(ext: str) -> str:
    """Lower-case an extension and fold aliases (.jpeg -> .jpg)."""
    ext = ext.lower()
    return EXTENSION_ALIASES.get(ext, ext)


def is_image_name(name: str) -> bool:
    """True for visible files carrying a supported image extension."""
    if name.startswith("."):
        return False
    return Path(name).suffix.lower() in IMAGE_EXT


def validate_image_name(name: str, root: Path) -> Path:
    """Resolve an identifier inside root, rejecting traversal and odd names."""
    if not name or name in (".", "..") or name.startswith("."):
        raise InvalidNameError("invalid file name")
    if "/" in name or "\\" in name:
        raise InvalidNameError("invalid file name")

    root = Path(root).resolve()
    candidate = (root / name).resolve()
    if candidate.parent != root:
        raise InvalidNameError("invalid file path")

    if Path(name).suffix.lower() not in IMAGE_EXT:
        raise InvalidNameError("unsupported file type")
    return candidate
