#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures for stored images and ingestion results.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class StoredImageRecord:
    """Immutable index entry for one stored file."""
    fingerprint: str
    stored_name: str
    created: datetime  # file mtime on rebuild, now() on upload

    # Optional perceptual hash, only used for near-duplicate reporting
    phash: Optional[str] = None


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a single ingestion."""
    identifier: str
    was_newly_stored: bool
    fingerprint: str
    similar_to: Optional[str] = None

    @property
    def extension(self) -> str:
        return self.identifier[self.identifier.rfind("."):]
