"""Helpers for reading asset text and producing compressed bodies."""

from __future__ import annotations

import gzip

from .errors import AssetIOError
from .files import is_gzipped

TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"
GZIP_LEVEL = 9


def read_bytes(file_path: str) -> bytes:
    try:
        with open(file_path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise AssetIOError(f"unable to read {file_path}: {exc}") from exc


def file_to_string(file_path: str) -> str:
    """Return the text of ``file_path``, decompressing ``.gz`` files first."""
    data = read_bytes(file_path)
    if is_gzipped(file_path):
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as exc:
            raise AssetIOError(f"unable to decompress {file_path}: {exc}") from exc
    return data.decode(TEXT_ENCODING, TEXT_ERRORS)


def string_to_bytes(text: str) -> bytes:
    return text.encode(TEXT_ENCODING, TEXT_ERRORS)


def compress(data: bytes) -> bytes:
    """Gzip ``data`` deterministically.

    ``mtime`` is pinned so the same input always yields the same bytes and
    therefore the same fingerprint.
    """

    return gzip.compress(data, compresslevel=GZIP_LEVEL, mtime=0)
