"""Build the mapping of original asset names to hashed destination keys."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Pattern, Set

from . import hashing

logger = logging.getLogger(__name__)

# ``-`` or ``.`` followed by a hex hash right before the final one or two
# extensions, e.g. ``app-3f2a9c1b.js`` or ``vendor.3f2a9c1b.min.js``.
DEFAULT_HASHED_FILE_REGEXP = re.compile(r"[-.][0-9a-f]{8,}(?=(?:\.\w+)?\.\w+$)")
DEFAULT_GZIP_HASHED_REGEXP = re.compile(r"\.(js|css|map|json|svg|html|txt)$")
EXTENSION_REGEXP = re.compile(r"((?:\.\w+)?\.\w+)$")

Digest = Dict[str, str]


@dataclass(frozen=True)
class DigestEntry:
    file_path: str
    relative_name: str
    destination_key: str
    hashed_key: str
    hash: str
    pre_hashed: bool = False


def insert_hash_before_extension(key: str, file_hash: str) -> str:
    """Splice ``-<hash>`` in front of the trailing one or two extensions.

    >>> insert_hash_before_extension("app.min.js", "abc123")
    'app-abc123.min.js'
    >>> insert_hash_before_extension("LICENSE", "abc123")
    'LICENSE-abc123'
    """

    match = EXTENSION_REGEXP.search(key)
    if not match:
        return f"{key}-{file_hash}"
    return f"{key[:match.start()]}-{file_hash}{match.group(1)}"


def relative_file_name(base_path: str, file_path: str) -> str:
    return os.path.relpath(file_path, base_path).replace(os.sep, "/")


def destination_key(prefix: str, relative_name: str) -> str:
    prefix = prefix.strip("/")
    return f"{prefix}/{relative_name}" if prefix else relative_name


class DigestBuilder:
    """Hash every discovered file and record its destination keys.

    ``hashed_pattern`` marks files that an upstream build already
    content-hashed; they keep their own key. ``unhashed_pattern`` strips that
    hash back out to build the pseudo-unhashed alias when
    ``include_pseudo_unhashed`` is set. ``gzip_pattern`` is matched against
    the original destination key and appends ``.gz`` to the hashed key.
    """

    def __init__(
        self,
        base_path: str,
        prefix: str = "",
        hashed_pattern: Optional[Pattern[str]] = None,
        unhashed_pattern: Optional[Pattern[str]] = None,
        include_pseudo_unhashed: bool = False,
        gzip_pattern: Optional[Pattern[str]] = None,
    ) -> None:
        self.base_path = os.path.abspath(base_path)
        self.prefix = prefix
        self.hashed_pattern = hashed_pattern
        self.unhashed_pattern = unhashed_pattern or hashed_pattern
        self.include_pseudo_unhashed = include_pseudo_unhashed
        self.gzip_pattern = gzip_pattern
        self.digest: Digest = {}
        self.entries: Dict[str, DigestEntry] = {}
        self._aliases: Dict[str, str] = {}
        self._real_names: Set[str] = set()

    def is_pre_hashed(self, relative_name: str) -> bool:
        return bool(self.hashed_pattern and self.hashed_pattern.search(relative_name))

    def add(self, file_path: str) -> DigestEntry:
        relative_name = relative_file_name(self.base_path, file_path)
        key = destination_key(self.prefix, relative_name)
        file_hash = hashing.hash_from_file(file_path)

        # a discovered file always owns its own name, aliases never shadow it
        if self._aliases.pop(relative_name, None) is not None:
            logger.warning(
                "Dropping pseudo-unhashed alias %s: a file with that name exists",
                relative_name,
            )
        self._real_names.add(relative_name)

        if self.is_pre_hashed(relative_name):
            entry = DigestEntry(file_path, relative_name, key, key, file_hash, True)
            self.digest[relative_name] = key
            if self.include_pseudo_unhashed and self.unhashed_pattern:
                self._add_alias(relative_name, key)
        else:
            hashed_key = insert_hash_before_extension(key, file_hash)
            if self.gzip_pattern and self.gzip_pattern.search(key):
                hashed_key += ".gz"
            entry = DigestEntry(file_path, relative_name, key, hashed_key, file_hash)
            self.digest[relative_name] = hashed_key

        logger.debug("digest %s -> %s", relative_name, entry.hashed_key)
        self.entries[file_path] = entry
        return entry

    def _add_alias(self, relative_name: str, key: str) -> None:
        alias = self.unhashed_pattern.sub("", relative_name, count=1)
        if alias == relative_name:
            return
        if alias in self._real_names:
            logger.warning(
                "Dropping pseudo-unhashed alias %s for %s: a file with that name exists",
                alias,
                relative_name,
            )
            return
        self._aliases[alias] = key
        self.digest[alias] = key

    def build(self, file_paths: Iterable[str]) -> Digest:
        """Add ``file_paths`` in order; any unreadable file aborts the build."""
        for file_path in file_paths:
            self.add(file_path)
        return self.digest

    def reset(self) -> None:
        self.digest = {}
        self.entries = {}
        self._aliases = {}
        self._real_names = set()
