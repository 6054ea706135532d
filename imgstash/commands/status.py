#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Index and orientation inspection commands.
"""

import logging
from pathlib import Path
from typing import List

from ..jsonio import success
from ..metadata.sanitizer import get_orientation
from ..scanning.detector import DedupIndex

logger = logging.getLogger(__name__)


def cmd_index(index: DedupIndex, storage: Path, as_json: bool = False):
    """Rebuild the dedup index from storage and report its status."""
    index.rebuild(storage)
    status = index.status()
    if as_json:
        return success("index", status)
    print(f"Index {status['state']}: {status['entries']} image hashes in memory ({status['root']})")
    return 0


def cmd_orientation(files: List[Path], as_json: bool = False):
    """Print the EXIF orientation (1-8) of each file."""
    values = {}
    for path in files:
        values[str(path)] = get_orientation(Path(path).read_bytes())

    if as_json:
        return success("orientation", values)
    for name, value in values.items():
        print(f"{name}: {value}")
    return 0
