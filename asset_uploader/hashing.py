"""Content hashing helpers.

MD5 is used for cache busting only. The hex digest of a single part upload
is also the S3 ``ETag`` so the same value doubles as the fingerprint for
conditional uploads.
"""

from __future__ import annotations

import hashlib
from typing import BinaryIO

from .errors import AssetIOError

HASH_ALGORITHM = "md5"
CHUNK_SIZE = 64 * 1024


def hash_from_file(file_path: str) -> str:
    """Return the hex digest of ``file_path`` read in chunks."""
    try:
        with open(file_path, "rb") as f:
            return hash_from_stream(f)
    except OSError as exc:
        if isinstance(exc, AssetIOError):
            raise
        raise AssetIOError(f"unable to hash {file_path}: {exc}") from exc


def hash_from_stream(stream: BinaryIO) -> str:
    """Return the hex digest of everything left in ``stream``."""
    digest = hashlib.new(HASH_ALGORITHM)
    try:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    except OSError as exc:
        raise AssetIOError(f"unable to read stream: {exc}") from exc
    return digest.hexdigest()


def hash_from_bytes(data: bytes) -> str:
    return hashlib.new(HASH_ALGORITHM, data).hexdigest()


def hash_from_string(text: str) -> str:
    # surrogateescape keeps undecodable bytes from the source file intact
    return hash_from_bytes(text.encode("utf-8", "surrogateescape"))
