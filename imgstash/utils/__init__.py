"""Utility functions for the image store."""

from .time import utc_now, utc_now_str, from_timestamp
from .path import ensure_dir, normalize_ext, is_image_name, validate_image_name

__all__ = ['utc_now', 'utc_now_str', 'from_timestamp', 'ensure_dir',
           'normalize_ext', 'is_image_name', 'validate_image_name']
