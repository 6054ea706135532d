#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Time utility functions for the image store.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def utc_now_str() -> str:
    """Return current UTC time in ISO-8601 format with 'Z'."""
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def from_timestamp(ts: float) -> datetime:
    """Convert a filesystem mtime to an aware UTC datetime."""
    return datetime.fromtimestamp(ts, tz=timezone.utc)
