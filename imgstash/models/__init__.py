"""Data models for the image store."""

from .record import StoredImageRecord, IngestResult
from .summary import SanitizeSummary

__all__ = ['StoredImageRecord', 'IngestResult', 'SanitizeSummary']
