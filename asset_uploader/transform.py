"""Rewrite references between assets to their hashed names.

Stylesheets may point at other assets with ``url(/path)`` and both
stylesheets and scripts may carry a trailing ``sourceMappingURL`` comment.
Once the digest is complete these references are swapped for the hashed
keys so that a hashed stylesheet never loads an unhashed image.

Rules are kept in :data:`REWRITE_RULES` as ``(pattern, resolver)`` pairs per
content kind. Only the first capture group of a match is replaced; a
resolver returning ``None`` leaves the match untouched.
"""

from __future__ import annotations

import io
import posixpath
import re
from dataclasses import dataclass
from typing import BinaryIO, Callable, Mapping, Optional, Pattern

from . import hashing, streams
from .files import ContentKind, classify

CSS_URL_REGEXP = re.compile(r"url\(/([^)]+)\)")
CSS_SOURCEMAP_REGEXP = re.compile(r"/\*# sourceMappingURL=\s*([^*\s]+)\s*\*/\s*\Z")
JS_SOURCEMAP_REGEXP = re.compile(r"//# sourceMappingURL=(\S+)\s*\Z")


@dataclass(frozen=True)
class RewriteContext:
    relative_file_name: str
    digest: Mapping[str, str]

    @property
    def relative_dir(self) -> str:
        return posixpath.dirname(self.relative_file_name)


Resolver = Callable[[str, RewriteContext], Optional[str]]


@dataclass(frozen=True)
class RewriteResult:
    """Outcome of :func:`replace_hashed_filenames`.

    ``data`` holds the final bytes to upload when ``changed`` is true,
    already re-compressed for ``.gz`` sources, and ``hash`` is the digest of
    exactly those bytes.
    """

    file_path: str
    changed: bool
    data: Optional[bytes] = None
    hash: Optional[str] = None

    def open(self) -> BinaryIO:
        if self.changed and self.data is not None:
            return io.BytesIO(self.data)
        return open(self.file_path, "rb")

    def read(self) -> bytes:
        if self.changed and self.data is not None:
            return self.data
        return streams.read_bytes(self.file_path)


def resolve_absolute_url(url: str, context: RewriteContext) -> Optional[str]:
    return context.digest.get(url)


def resolve_sourcemap(file_name: str, context: RewriteContext) -> Optional[str]:
    """Look up a sourcemap relative to the current file.

    The replacement is the basename of the hashed key because the map lives
    next to the file that references it.
    """

    matched = posixpath.normpath(posixpath.join(context.relative_dir, file_name))
    hashed = context.digest.get(matched)
    if hashed:
        return posixpath.basename(hashed)
    return None


REWRITE_RULES: dict[ContentKind, list[tuple[Pattern[str], Resolver]]] = {
    ContentKind.CSS: [
        (CSS_URL_REGEXP, resolve_absolute_url),
        (CSS_SOURCEMAP_REGEXP, resolve_sourcemap),
    ],
    ContentKind.JAVASCRIPT: [
        (JS_SOURCEMAP_REGEXP, resolve_sourcemap),
    ],
}


def apply_rules(
    text: str,
    rules: list[tuple[Pattern[str], Resolver]],
    context: RewriteContext,
) -> str:
    for pattern, resolver in rules:
        def _replace(match: re.Match, resolver: Resolver = resolver) -> str:
            replacement = resolver(match.group(1), context)
            if replacement is None:
                return match.group(0)
            start = match.start(1) - match.start(0)
            end = match.end(1) - match.start(0)
            whole = match.group(0)
            return whole[:start] + replacement + whole[end:]

        text = pattern.sub(_replace, text)
    return text


def replace_hashed_filenames(
    file_path: str,
    relative_file_name: str,
    digest: Mapping[str, str],
) -> RewriteResult:
    """Rewrite references in ``file_path`` using ``digest``.

    Files without rewrite rules are returned untouched without being read.
    When the rewritten text equals the original the original file is handed
    back with ``changed=False`` so callers can reuse the already known hash.
    """

    classification = classify(file_path)
    rules = REWRITE_RULES.get(classification.kind)
    if not rules:
        return RewriteResult(file_path, changed=False)

    original = streams.file_to_string(file_path)
    transformed = apply_rules(
        original, rules, RewriteContext(relative_file_name, digest)
    )
    if transformed == original:
        return RewriteResult(file_path, changed=False)

    data = streams.string_to_bytes(transformed)
    if classification.is_gzipped:
        data = streams.compress(data)
        return RewriteResult(file_path, True, data, hashing.hash_from_bytes(data))
    return RewriteResult(file_path, True, data, hashing.hash_from_string(transformed))
