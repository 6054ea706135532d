#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Derivative commands: one thumbnail on demand, or all of them eagerly.
"""

import logging
from pathlib import Path
from typing import Optional

from ..jsonio import success
from ..storage.files import write_atomic
from ..thumbnails.store import DerivativeStore

logger = logging.getLogger(__name__)


def cmd_thumb(derivatives: DerivativeStore, name: str, factor: Optional[int] = None,
              out: Optional[Path] = None, as_json: bool = False):
    """Get or make the derivative of one stored image."""
    data, content_type = derivatives.get_or_make(name, factor)
    factor = factor or derivatives.default_factor
    target = Path(out) if out else derivatives.cache_path(name, factor)
    if out:
        write_atomic(target, data)

    if as_json:
        return success("thumb", {
            "name": name,
            "factor": factor,
            "content_type": content_type,
            "bytes": len(data),
            "path": str(target),
        })
    print(f"{name} -> {target} ({content_type}, {len(data)} bytes)")
    return 0


def cmd_thumbs(derivatives: DerivativeStore, factor: Optional[int] = None, as_json: bool = False):
    """Build every missing derivative."""
    counts = derivatives.generate_all(factor)
    if as_json:
        return success("thumbs", counts)
    print(f"Generated: {counts['generated']}  Cached: {counts['cached']}  "
          f"Skipped: {counts['skipped']}  Errors: {counts['errors']}")
    return 1 if counts["errors"] else 0
