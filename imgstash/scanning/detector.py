#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Duplicate detection for the image store.

DedupIndex is the single authority for "have we already stored this
content". It is filled once by scanning the storage directory and then
grows by one insert per newly stored file. Readiness policy is
block-until-ready: lookups and inserts wait for the startup scan, so the
at-most-one-copy guarantee also holds during warm-up.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from ..config import DEFAULT_MAX_PHASH_PIXELS, DEFAULT_PHASH_THRESHOLD
from ..errors import IndexNotReadyError, IndexRebuildError, ReadFailure
from ..models.record import StoredImageRecord
from ..utils.time import from_timestamp
from . import extractor
from .discovery import StorageWalker
from .hasher import fingerprint_file

logger = logging.getLogger(__name__)

WARMING = "warming"
READY = "ready"
FAILED = "failed"


class DedupIndex:
    """Fingerprint -> StoredImageRecord map guarded by a single lock."""

    def __init__(self, ready_timeout: Optional[float] = None, compute_phash: bool = True,
                 max_phash_pixels: int = DEFAULT_MAX_PHASH_PIXELS):
        self.ready_timeout = ready_timeout
        self.compute_phash = compute_phash
        self.max_phash_pixels = max_phash_pixels
        self.root: Optional[Path] = None

        self._lock = threading.Lock()
        self._records: Dict[str, StoredImageRecord] = {}
        self._ready = threading.Event()
        self._error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    # -- rebuild ----------------------------------------------------------

    def rebuild(self, directory: Path) -> int:
        """
        Scan every stored image under directory and replace the index.

        Identical files collapse to one entry (the first in name order).
        This is the only place that opens the readiness gate; a failure
        leaves the gate open in the failed state so waiters see the error
        instead of blocking forever.

        Returns:
            Number of distinct fingerprints indexed.

        Raises:
            IndexRebuildError: The directory could not be walked or read.
        """
        directory = Path(directory)
        logger.info("Building image hash index from %s...", directory)
        try:
            records = self._scan(directory)
        except (OSError, ReadFailure) as e:
            with self._lock:
                self._error = e
            self._ready.set()
            logger.error("Index rebuild failed for %s: %s", directory, e)
            raise IndexRebuildError(f"error walking the path {directory}: {e}") from e

        with self._lock:
            self._records = records
            self._error = None
            self.root = directory
        self._ready.set()
        logger.info("Index ready: %d image hashes in memory", len(records))
        return len(records)

    def start_rebuild(self, directory: Path) -> threading.Thread:
        """Run rebuild() on a daemon thread; callers gate on wait_ready()."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise RuntimeError("index rebuild already running")
            self._ready.clear()
            self._thread = threading.Thread(
                target=self._run_rebuild, args=(Path(directory),),
                name="dedup-index-rebuild", daemon=True,
            )
            self._thread.start()
            return self._thread

    def _run_rebuild(self, directory: Path) -> None:
        try:
            self.rebuild(directory)
        except IndexRebuildError:
            # Already recorded for waiters by rebuild()
            pass

    def _scan(self, directory: Path) -> Dict[str, StoredImageRecord]:
        records: Dict[str, StoredImageRecord] = {}
        for path, st in StorageWalker().walk(directory):
            fingerprint = fingerprint_file(path)
            name = path.name
            if fingerprint in records:
                logger.debug("Duplicate content %s matches %s", name, records[fingerprint].stored_name)
                continue
            phash = extractor.perceptual_hash(path, self.max_phash_pixels) if self.compute_phash else None
            records[fingerprint] = StoredImageRecord(
                fingerprint=fingerprint,
                stored_name=name,
                created=from_timestamp(st.st_mtime),
                phash=phash,
            )
        return records

    # -- readiness --------------------------------------------------------

    def wait_ready(self, timeout: Optional[float] = None) -> None:
        """Block until the startup scan finished; raise if it failed or timed out."""
        if timeout is None:
            timeout = self.ready_timeout
        if not self._ready.wait(timeout):
            raise IndexNotReadyError("image index is still warming up")
        if self._error is not None:
            raise IndexRebuildError(f"image index unavailable: {self._error}") from self._error

    @property
    def state(self) -> str:
        if not self._ready.is_set():
            return WARMING
        return FAILED if self._error is not None else READY

    def status(self) -> Dict[str, object]:
        """Liveness/readiness snapshot."""
        with self._lock:
            return {
                "state": self.state,
                "entries": len(self._records),
                "root": str(self.root) if self.root else None,
            }

    # -- lookup / insert --------------------------------------------------

    def lookup(self, fingerprint: str) -> Optional[StoredImageRecord]:
        """Return the record for a fingerprint, if any."""
        self.wait_ready()
        with self._lock:
            return self._records.get(fingerprint)

    def insert(self, fingerprint: str, record: StoredImageRecord) -> StoredImageRecord:
        """
        Add a mapping for newly ingested content.

        Existing keys are never overwritten: if another ingestion won the
        race, its record is returned and the caller should use it.
        """
        self.wait_ready()
        with self._lock:
            existing = self._records.get(fingerprint)
            if existing is not None:
                if existing.stored_name != record.stored_name:
                    logger.warning("Fingerprint %s already maps to %s, keeping it over %s",
                                   fingerprint, existing.stored_name, record.stored_name)
                return existing
            self._records[fingerprint] = record
            return record

    def find_similar(self, phash: Optional[str],
                     threshold: int = DEFAULT_PHASH_THRESHOLD) -> Optional[StoredImageRecord]:
        """Closest record whose pHash is within threshold, if any."""
        if not phash:
            return None
        with self._lock:
            candidates = [r for r in self._records.values() if r.phash]

        best = None
        best_distance = threshold + 1
        for record in candidates:
            try:
                distance = extractor.phash_distance(phash, record.phash)
            except ValueError:
                continue
            if distance <= threshold and distance < best_distance:
                best, best_distance = record, distance
                if distance == 0:
                    break
        return best

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
