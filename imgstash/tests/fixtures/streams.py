#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Stream doubles for the image store tests.
"""

import io


class OneWayStream:
    """Readable stream without seek support, returning short reads."""

    def __init__(self, data: bytes, chunk: int = 7):
        self._buf = io.BytesIO(data)
        self._chunk = chunk

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self._buf.read()
        return self._buf.read(min(size, self._chunk))
