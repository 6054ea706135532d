#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures for bulk sanitation runs.
"""

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List


@dataclass
class SanitizeSummary:
    """Counters for a bulk sanitation run."""
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    dry_run: bool = False
    failed_paths: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for serialization."""
        return asdict(self)
