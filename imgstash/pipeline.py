#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Ingestion pipeline for the image store.

sniff -> spool -> hash -> dedup lookup -> sanitize -> store -> index.

Dedup key policy: the raw upload fingerprint is always indexed. With
DEDUP_ON_SANITIZED on, the fingerprint of the sanitized bytes is looked up
too and indexed for every new file, so a restart (which rebuilds the index
from the stored, sanitized files) recognises the same content as before.
"""

import logging
import shutil
import tempfile
import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Optional, Tuple

from .config import (
    DEDUP_ON_SANITIZED, DEFAULT_PHASH_THRESHOLD, HASH_CHUNK_SIZE,
    READY_TIMEOUT_SECONDS, SANITIZED_EXT, SPOOL_MAX_MEMORY,
)
from .errors import ReadFailure
from .fetch import fetch_to_spool
from .metadata.sanitizer import sanitize
from .models.record import IngestResult, StoredImageRecord
from .scanning import extractor
from .scanning.detector import DedupIndex
from .scanning.hasher import compute_fingerprint, fingerprint_bytes
from .scanning.sniffer import sniff
from .storage.files import ImageStorage
from .thumbnails.store import DerivativeStore
from .utils.time import utc_now

logger = logging.getLogger(__name__)


class KeyedLocks:
    """One lock per key, created on demand and dropped when unused."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._users: Dict[str, int] = defaultdict(int)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]


class Ingestor:
    """Stores uploaded images at most once and serves their derivatives."""

    def __init__(self, storage_root: Path, index: Optional[DedupIndex] = None,
                 dedup_on_sanitized: bool = DEDUP_ON_SANITIZED,
                 phash_threshold: int = DEFAULT_PHASH_THRESHOLD):
        self.storage = ImageStorage(Path(storage_root))
        self.index = index if index is not None else DedupIndex(ready_timeout=READY_TIMEOUT_SECONDS)
        self.derivatives = DerivativeStore(self.storage)
        self.dedup_on_sanitized = dedup_on_sanitized
        self.phash_threshold = phash_threshold
        self._locks = KeyedLocks()

    def start(self) -> threading.Thread:
        """Kick off the background index rebuild; ingestion waits for it."""
        return self.index.start_rebuild(self.storage.root)

    def status(self) -> Dict[str, object]:
        return self.index.status()

    def ingest(self, stream: BinaryIO) -> IngestResult:
        """
        Store a byte stream unless identical content is already stored.

        The upload is spooled so hashing and the index lookup never hold it
        in memory. A hash miss reads the whole payload into memory, since the
        sanitizer and the encoder work on complete bytes.

        Returns:
            IngestResult; repeated identical content yields the same
            identifier with was_newly_stored False.

        Raises:
            UnsupportedTypeError, ReadFailure, WriteFailure,
            IndexNotReadyError, IndexRebuildError
        """
        ext, stream = sniff(stream)
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY) as spool:
            try:
                shutil.copyfileobj(stream, spool, HASH_CHUNK_SIZE)
            except OSError as e:
                raise ReadFailure(f"error reading upload: {e}") from e
            spool.seek(0)
            fingerprint = compute_fingerprint(spool)

            with self._locks.hold(fingerprint):
                existing = self.index.lookup(fingerprint)
                if existing is not None:
                    logger.debug("Hash hit %s -> %s", fingerprint, existing.stored_name)
                    return IngestResult(existing.stored_name, False, fingerprint)
                logger.debug("Hash miss %s", fingerprint)
                return self._store(spool.read(), ext, fingerprint)

    def ingest_url(self, url: str) -> IngestResult:
        """Fetch a remote image and ingest it."""
        with fetch_to_spool(url) as spool:
            return self.ingest(spool)

    def get_or_make_derivative(self, identifier: str, factor: Optional[int] = None) -> Tuple[bytes, str]:
        return self.derivatives.get_or_make(identifier, factor)

    def _store(self, data: bytes, ext: str, fingerprint: str) -> IngestResult:
        stored = sanitize(data) if ext in SANITIZED_EXT else data
        stored_fp = fingerprint if stored is data else fingerprint_bytes(stored)

        if self.dedup_on_sanitized and stored_fp != fingerprint:
            existing = self.index.lookup(stored_fp)
            if existing is not None:
                logger.debug("Sanitized hash hit %s -> %s", stored_fp, existing.stored_name)
                self.index.insert(fingerprint, replace(existing, fingerprint=fingerprint))
                return IngestResult(existing.stored_name, False, fingerprint)

        phash = extractor.perceptual_hash(stored) if self.index.compute_phash else None
        similar = self.index.find_similar(phash, self.phash_threshold)

        name = self.storage.store(stored, ext)
        key = stored_fp if self.dedup_on_sanitized else fingerprint
        record = StoredImageRecord(fingerprint=key, stored_name=name, created=utc_now(), phash=phash)
        winner = self.index.insert(key, record)
        if winner.stored_name != name:
            # Lost a race against an upload with the same sanitized content
            self.storage.remove(name)
            self.index.insert(fingerprint, replace(winner, fingerprint=fingerprint))
            return IngestResult(winner.stored_name, False, fingerprint)
        if key != fingerprint:
            self.index.insert(fingerprint, replace(record, fingerprint=fingerprint))

        logger.info("Stored %s (%d bytes)", name, len(stored))
        return IngestResult(name, True, fingerprint, similar.stored_name if similar else None)
