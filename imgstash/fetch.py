#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Remote image fetching for URL ingestion.

Only plain http(s) URLs that resolve to public addresses are fetched, so a
caller cannot point the service at itself or at the internal network.
"""

import ipaddress
import logging
import socket
import tempfile
from typing import BinaryIO, Iterable
from urllib.parse import urlsplit

import requests

from .config import FETCH_CHUNK_SIZE, FETCH_MAX_BYTES, FETCH_TIMEOUT_SECONDS, SPOOL_MAX_MEMORY
from .errors import FetchError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https"}
BLOCKED_HOSTS = {"localhost", "localhost.localdomain", "127.0.0.1", "::1", "0.0.0.0", "0", "[::1]"}

PRIVATE_NETWORKS = [
    ipaddress.ip_network(cidr) for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "224.0.0.0/24",  # link-local multicast
        "fc00::/7",
        "ff02::/16",
    )
]


def is_private_address(address: str) -> bool:
    """True for loopback, link-local, unspecified and private-range addresses."""
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    if ip.version == 6 and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    if ip.is_loopback or ip.is_link_local or ip.is_unspecified:
        return True
    return any(ip in net for net in PRIVATE_NETWORKS if net.version == ip.version)


def _resolve(hostname: str) -> Iterable[str]:
    try:
        infos = socket.getaddrinfo(hostname, None)
    except (socket.gaierror, UnicodeError) as e:
        raise FetchError("could not resolve hostname") from e
    return {info[4][0] for info in infos}


def validate_url(url: str) -> None:
    """Raise FetchError unless url is safe to fetch."""
    if not url:
        raise FetchError("URL is required")
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as e:
        raise FetchError("invalid URL") from e

    if parts.scheme not in ALLOWED_SCHEMES:
        raise FetchError("only HTTP and HTTPS URLs are allowed")
    if not hostname:
        raise FetchError("invalid URL: missing hostname")
    if hostname.lower() in BLOCKED_HOSTS:
        raise FetchError("local URLs are not allowed")

    for address in _resolve(hostname):
        if is_private_address(address):
            logger.debug("Rejected %s: resolves to %s", url, address)
            raise FetchError("private IP addresses are not allowed")


def fetch_to_spool(url: str, timeout: float = FETCH_TIMEOUT_SECONDS,
                   max_bytes: int = FETCH_MAX_BYTES) -> BinaryIO:
    """
    Download url into a spooled temp file positioned at byte 0.

    Redirects are not followed, since the target would bypass validation.
    Bodies larger than max_bytes are rejected with FetchError.
    The caller owns (and must close) the returned file.
    """
    validate_url(url)
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY)
    size = 0
    try:
        with requests.get(url, stream=True, timeout=timeout, allow_redirects=False) as response:
            if response.status_code != 200:
                raise FetchError(f"failed to download image: HTTP {response.status_code}")
            for chunk in response.iter_content(chunk_size=FETCH_CHUNK_SIZE):
                size += spool.write(chunk)
                if size > max_bytes:
                    raise FetchError(f"image exceeds the {max_bytes} byte download limit")
    except requests.RequestException as e:
        spool.close()
        raise FetchError(f"failed to download image: {e}") from e
    except FetchError:
        spool.close()
        raise
    spool.seek(0)
    logger.debug("Fetched %s (%d bytes)", url, size)
    return spool
