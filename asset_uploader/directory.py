"""Recursive file listing with path based ignore filters."""

from __future__ import annotations

import os
import re
from typing import Iterable, List, Pattern, Union

IgnorePattern = Union[str, Pattern[str]]


def _compile(filters: Iterable[IgnorePattern]) -> List[Pattern[str]]:
    return [f if isinstance(f, re.Pattern) else re.compile(f) for f in filters]


def get_file_names(base_path: str, filters: Iterable[IgnorePattern] = ()) -> List[str]:
    """Return absolute paths of all files below ``base_path``.

    Each filter is searched against the path relative to ``base_path``
    (forward slashes on every platform). A matching directory is pruned and
    never descended into; a matching file is omitted. Results are in
    discovery order: entries of a directory sorted by name, depth first.
    """

    root = os.path.abspath(base_path)
    patterns = _compile(filters)

    def is_filtered(full_path: str) -> bool:
        relative = os.path.relpath(full_path, root).replace(os.sep, "/")
        return any(p.search(relative) for p in patterns)

    def recurse(dir_path: str) -> List[str]:
        found: List[str] = []
        with os.scandir(dir_path) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                full_path = os.path.join(dir_path, entry.name)
                if is_filtered(full_path):
                    continue
                # directory symlinks are not followed, which also rules out loops
                if entry.is_dir(follow_symlinks=False):
                    found.extend(recurse(full_path))
                elif entry.is_file():
                    found.append(full_path)
        return found

    return recurse(root)
