#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main CLI entry point for the image store.
"""

import argparse
import sys
import logging
from pathlib import Path

from . import config
from .commands import (
    cmd_index, cmd_ingest, cmd_orientation, cmd_strip_exif, cmd_thumb, cmd_thumbs,
)
from .jsonio import enable_json_logging, error
from .pipeline import Ingestor
from .scanning.detector import DedupIndex


def setup_logging(verbose: bool):
    """Configure logging for the CLI tool."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.debug("Verbose logging enabled (DEBUG level).")


def create_parser():
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="imgstash",
        description="Content-addressed image store with metadata stripping",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Store images, identical content is stored once
  %(prog)s --storage ./uploads ingest photo.jpg copy-of-photo.jpg
  %(prog)s ingest --url https://example.com/cat.png

  # Strip metadata from everything already stored
  %(prog)s strip-exif --path ./uploads --dry-run
  %(prog)s strip-exif --path ./uploads --backup

  # Thumbnails
  %(prog)s thumb aBcDeF.jpg --factor 4 --out thumb.jpg
  %(prog)s thumbs --factor 4 --json
        """
    )

    # Global options
    parser.add_argument("--storage", default=config.UPLOAD_PATH,
                        help=f"Storage directory (default: {config.UPLOAD_PATH})")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose (DEBUG) output")
    parser.add_argument("--json", action="store_true",
                        help="Output results as JSON instead of human-readable text")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")

    ingest_parser = subparsers.add_parser("ingest", help="Store images, skipping known content")
    ingest_parser.add_argument("files", nargs="*", type=Path, help="Image files to ingest")
    ingest_parser.add_argument("--url", help="Fetch and ingest a remote image")

    strip_parser = subparsers.add_parser("strip-exif", help="Strip metadata from a directory in place")
    strip_parser.add_argument("--path", help="Directory to process (default: --storage)")
    strip_parser.add_argument("--dry-run", action="store_true",
                              help="Show what would be processed without making changes")
    strip_parser.add_argument("--backup", action="store_true",
                              help="Create .bak files before modifying")

    thumb_parser = subparsers.add_parser("thumb", help="Get or make one thumbnail")
    thumb_parser.add_argument("name", help="Stored image identifier")
    thumb_parser.add_argument("--factor", type=int, default=config.DEFAULT_THUMB_FACTOR,
                              help=f"Shrink factor (default: {config.DEFAULT_THUMB_FACTOR})")
    thumb_parser.add_argument("--out", type=Path, help="Also write the thumbnail here")

    thumbs_parser = subparsers.add_parser("thumbs", help="Generate all missing thumbnails")
    thumbs_parser.add_argument("--factor", type=int, default=config.DEFAULT_THUMB_FACTOR,
                               help=f"Shrink factor (default: {config.DEFAULT_THUMB_FACTOR})")

    subparsers.add_parser("index", help="Rebuild the hash index and show its status")

    orientation_parser = subparsers.add_parser("orientation", help="Print EXIF orientation of files")
    orientation_parser.add_argument("files", nargs="+", type=Path, help="Image files")

    return parser


def run(args) -> int:
    """Dispatch a parsed command line."""
    storage = Path(args.storage)
    as_json = args.json

    if args.command == "strip-exif":
        root = Path(args.path) if args.path else storage
        logging.info("Stripping metadata under %s (dry_run=%s, backup=%s)", root, args.dry_run, args.backup)
        return cmd_strip_exif(root, args.dry_run, args.backup, as_json)

    if args.command == "orientation":
        return cmd_orientation(args.files, as_json)

    if args.command == "index":
        return cmd_index(DedupIndex(), storage, as_json)

    ingestor = Ingestor(storage)
    logging.debug("Using storage: %s", ingestor.storage.root)

    if args.command == "ingest":
        if not args.files and not args.url:
            raise ValueError("nothing to ingest: give files or --url")
        return cmd_ingest(ingestor, args.files, args.url, as_json)

    if args.command == "thumb":
        return cmd_thumb(ingestor.derivatives, args.name, args.factor, args.out, as_json)

    if args.command == "thumbs":
        return cmd_thumbs(ingestor.derivatives, args.factor, as_json)

    raise ValueError(f"unknown command {args.command}")


def main(argv=None):
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.json:
        # For JSON output, send logs to stderr and suppress info noise
        enable_json_logging()
    else:
        setup_logging(args.verbose)

    logging.debug("Parsed arguments: %s", args)

    try:
        return run(args)
    except KeyboardInterrupt:
        if args.json:
            return error(args.command, "Operation interrupted by user", code=130)
        logging.warning("Operation interrupted by user.")
        return 130
    except Exception as e:
        if args.json:
            debug_info = {"exception_type": type(e).__name__} if args.verbose else None
            return error(args.command, str(e), debug=debug_info, code=1)
        logging.error("Error occurred: %s", e, exc_info=args.verbose)
        return 1


if __name__ == "__main__":
    sys.exit(main())
