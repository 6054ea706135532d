#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Error taxonomy for the image store.

Ingestion raises UnsupportedTypeError, ReadFailure, WriteFailure and
IndexNotReadyError. Derivatives raise InvalidNameError, UnsupportedTypeError,
DecodeFailure and WriteFailure. ParseFailure only escapes the sanitizer in
strict mode.
"""


class ImageStoreError(Exception):
    """Base class for all image store errors."""


class UnsupportedTypeError(ImageStoreError):
    """Byte prefix did not match a supported image signature."""

    def __init__(self, detected: str = "unknown"):
        self.detected = detected
        super().__init__(f"unsupported type: {detected}")


class ReadFailure(ImageStoreError):
    """I/O error while draining a source stream."""


class ParseFailure(ImageStoreError):
    """Container structure could not be parsed."""

    def __init__(self, fmt: str, reason: str):
        self.format = fmt
        self.reason = reason
        super().__init__(f"{fmt}: {reason}")


class DecodeFailure(ImageStoreError):
    """Pixel data could not be decoded."""


class WriteFailure(ImageStoreError):
    """Persisting bytes to storage failed."""


class IndexNotReadyError(ImageStoreError):
    """The dedup index is still warming up."""


class IndexRebuildError(ImageStoreError):
    """Scanning the storage directory failed."""


class InvalidNameError(ImageStoreError):
    """Identifier is empty, hidden, escapes storage or has a bad extension."""


class FetchError(ImageStoreError):
    """Remote image could not be fetched."""


class ImageNotFoundError(ImageStoreError):
    """No stored file with that identifier."""
