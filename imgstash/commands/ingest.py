#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Ingest command: store local files or a remote URL.
"""

import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from ..errors import FetchError, ReadFailure, UnsupportedTypeError
from ..jsonio import success
from ..pipeline import Ingestor

logger = logging.getLogger(__name__)


def cmd_ingest(ingestor: Ingestor, files: List[Path], url: Optional[str] = None, as_json: bool = False):
    """
    Ingest each file (and the URL, if given) and print the identifiers.

    Type and read errors are reported per input; index and write errors
    abort the command.
    """
    ingestor.start()
    results = []
    failures = []

    sources = [(str(p), p) for p in files]
    if url:
        sources.append((url, None))

    for label, path in sources:
        try:
            if path is None:
                result = ingestor.ingest_url(label)
            else:
                with open(path, "rb") as f:
                    result = ingestor.ingest(f)
        except OSError as e:
            logger.error("Cannot open %s: %s", label, e)
            failures.append({"source": label, "error": str(e)})
            continue
        except (FetchError, ReadFailure, UnsupportedTypeError) as e:
            logger.error("Rejected %s: %s", label, e)
            failures.append({"source": label, "error": str(e)})
            continue

        results.append({"source": label, **asdict(result)})
        if not as_json:
            state = "stored" if result.was_newly_stored else "duplicate"
            line = f"{label} -> {result.identifier} ({state})"
            if result.similar_to:
                line += f", looks like {result.similar_to}"
            print(line)

    if as_json:
        return success("ingest", results, meta={"failed": failures} if failures else None,
                       code=1 if failures else 0)
    return 1 if failures else 0
