#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bulk metadata stripping for an existing storage directory.

Every JPEG/PNG under the directory is sanitized in place. GIFs are counted
as skipped, unchanged files too. Per-file failures are counted and reported
but never abort the run; a directory that cannot be walked does.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import List

from tqdm import tqdm

from ..config import BACKUP_SUFFIX, IMAGE_EXT, TEMP_PREFIX
from ..errors import ParseFailure, ReadFailure, WriteFailure
from ..jsonio import success
from ..metadata.sanitizer import sanitize
from ..models.summary import SanitizeSummary
from ..storage.files import write_atomic

logger = logging.getLogger(__name__)


def _raise(err: OSError) -> None:
    raise err


def collect_images(root: Path) -> List[Path]:
    """All supported image files under root, in walk order."""
    found: List[Path] = []
    try:
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
            for name in sorted(filenames):
                if name.startswith(TEMP_PREFIX):
                    continue
                if os.path.splitext(name)[1].lower() in IMAGE_EXT:
                    found.append(Path(dirpath) / name)
    except OSError as e:
        raise ReadFailure(f"error walking directory: {e}") from e
    return found


def sanitize_directory(root: Path, dry_run: bool = False, make_backup: bool = False,
                       progress: bool = True) -> SanitizeSummary:
    """
    Strip metadata from every image under root, in place.

    Args:
        root: Directory to walk.
        dry_run: Only report what would change.
        make_backup: Copy each file to <name>.bak before rewriting it.
        progress: Show a tqdm progress bar.

    Returns:
        SanitizeSummary with processed/skipped/errors counts.

    Raises:
        ReadFailure: The directory could not be walked.
    """
    summary = SanitizeSummary(dry_run=dry_run)
    files = collect_images(Path(root))

    for path in tqdm(files, desc="Stripping metadata", unit="file", disable=not progress):
        if path.suffix.lower() == ".gif":
            summary.skipped += 1
            logger.debug("Skipping GIF: %s", path)
            continue

        try:
            data = path.read_bytes()
            stripped = sanitize(data, strict=True)
        except OSError as e:
            _count_error(summary, path, f"Error reading {path}: {e}", progress)
            continue
        except ParseFailure as e:
            _count_error(summary, path, f"Error processing {path}: {e}", progress)
            continue

        if stripped == data:
            summary.skipped += 1
            logger.debug("No change: %s", path)
            continue

        if dry_run:
            summary.processed += 1
            _say(f"Would process: {path} (size: {len(data)} -> {len(stripped)} bytes)", progress)
            continue

        try:
            mode = path.stat().st_mode & 0o7777
            if make_backup:
                backup = path.with_name(path.name + BACKUP_SUFFIX)
                shutil.copy2(path, backup)
                logger.debug("Created backup: %s", backup)
            write_atomic(path, stripped, mode=mode)
        except (OSError, WriteFailure) as e:
            _count_error(summary, path, f"Error writing {path}: {e}", progress)
            continue

        summary.processed += 1
        _say(f"Processed: {path} (size: {len(data)} -> {len(stripped)} bytes)", progress)

    return summary


def _say(message: str, progress: bool) -> None:
    if progress:
        tqdm.write(message)
    else:
        logger.info(message)


def _count_error(summary: SanitizeSummary, path: Path, message: str, progress: bool) -> None:
    summary.errors += 1
    summary.failed_paths.append(str(path))
    if progress:
        tqdm.write(message)
    else:
        logger.error(message)


def cmd_strip_exif(root: Path, dry_run: bool = False, make_backup: bool = False, as_json: bool = False):
    """strip-exif command: sanitize a directory and print a summary."""
    if not as_json:
        print(f"Stripping EXIF from images in: {root}")
        if dry_run:
            print("DRY RUN MODE: No files will be modified")
        if make_backup:
            print("BACKUP MODE: Creating .bak files before modification")
        print()

    summary = sanitize_directory(root, dry_run, make_backup, progress=not as_json)

    if as_json:
        return success("strip-exif", summary.to_dict())

    print("\nSummary:")
    if dry_run:
        print(f"  Would process: {summary.processed} files")
    else:
        print(f"  Processed: {summary.processed} files")
    print(f"  Skipped: {summary.skipped} files")
    if summary.errors:
        print(f"  Errors: {summary.errors}")
    return 0
