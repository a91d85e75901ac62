"""Content classification and upload headers for asset files."""

from __future__ import annotations

import mimetypes
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

EXTENSION_GZ_REGEXP = re.compile(r"\.gz$")
EXTENSION_JS_REGEXP = re.compile(r"\.js(\.gz)?$")
EXTENSION_CSS_REGEXP = re.compile(r"\.css(\.gz)?$")
EXTENSION_SOURCEMAP_REGEXP = re.compile(r"\.(js|css)\.map$")

CONTENT_TYPE_BINARY = "application/octet-stream"
CONTENT_TYPE_CSS = "text/css"
CONTENT_TYPE_JS = "application/javascript"
CONTENT_TYPE_JSON = "application/json"

DEFAULT_HEADERS: dict[str, Any] = {"ACL": "public-read"}
DEFAULT_GZIP_HEADERS: dict[str, Any] = {
    "ContentEncoding": "gzip",
    "CacheControl": "max-age=1314000",
}


class ContentKind(str, Enum):
    JAVASCRIPT = "javascript"
    CSS = "css"
    JSON = "json"
    BINARY = "binary"
    OTHER = "other"


@dataclass(frozen=True)
class Classification:
    kind: ContentKind
    content_type: str
    is_gzipped: bool


def is_gzipped(file_path: str) -> bool:
    return bool(EXTENSION_GZ_REGEXP.search(file_path))


def classify(file_path: str) -> Classification:
    """Classify ``file_path`` by its name.

    The first matching rule wins: ``.js``/``.js.gz``, ``.css``/``.css.gz``,
    then ``*.js.map``/``*.css.map`` sourcemaps. Everything else falls back to
    the ``mimetypes`` table and finally to an opaque binary type. The gzip
    flag is independent of the kind.
    """

    gzipped = is_gzipped(file_path)
    if EXTENSION_JS_REGEXP.search(file_path):
        return Classification(ContentKind.JAVASCRIPT, CONTENT_TYPE_JS, gzipped)
    if EXTENSION_CSS_REGEXP.search(file_path):
        return Classification(ContentKind.CSS, CONTENT_TYPE_CSS, gzipped)
    if EXTENSION_SOURCEMAP_REGEXP.search(file_path):
        return Classification(ContentKind.JSON, CONTENT_TYPE_JSON, gzipped)
    # ``guess_type`` would report ``foo.svg.gz`` as svg with a gzip encoding;
    # the encoding is carried by the gzip flag instead.
    content_type, _encoding = mimetypes.guess_type(file_path, strict=False)
    if content_type is None:
        return Classification(ContentKind.BINARY, CONTENT_TYPE_BINARY, gzipped)
    return Classification(ContentKind.OTHER, content_type, gzipped)


def upload_headers(
    key: str,
    custom_headers: Mapping[str, Any] | None = None,
    gzip_headers: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return ``put_object`` keyword headers for an object stored at ``key``.

    Later sources win: :data:`DEFAULT_HEADERS`, ``custom_headers``, the gzip
    headers (``.gz`` keys only) and finally the classified ``ContentType``,
    which callers can never override.
    """

    classification = classify(key)
    headers: dict[str, Any] = dict(DEFAULT_HEADERS)
    headers.update(custom_headers or {})
    if classification.is_gzipped:
        headers.update(DEFAULT_GZIP_HEADERS if gzip_headers is None else gzip_headers)
    headers["ContentType"] = classification.content_type
    return headers
