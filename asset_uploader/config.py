"""Uploader configuration.

:class:`SyncConfig` is an immutable value object handed to the orchestrator.
It can be built directly or from ``ASSET_UPLOADER__*`` environment variables
via :meth:`SyncConfig.from_env`, following the ``section.name`` ->
``SECTION__NAME`` convention used by the storage settings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Pattern, Tuple, Union

from .digest import DEFAULT_GZIP_HASHED_REGEXP, DEFAULT_HASHED_FILE_REGEXP
from .errors import ConfigurationError
from .storage import _env

DEFAULT_MANIFEST_KEY = "asset-map.json"
DEFAULT_MAX_WORKERS = 8

PatternOption = Union[bool, str, Pattern[str], None]

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_pattern(name: str) -> PatternOption:
    """Boolean strings select the default pattern, anything else is a regex."""
    value = _env(name)
    if value is None or value == "":
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return value


def _compile(option: PatternOption, default: Pattern[str], name: str) -> Optional[Pattern[str]]:
    if option is None or option is False:
        return None
    if option is True:
        return default
    if isinstance(option, re.Pattern):
        return option
    try:
        return re.compile(option)
    except re.error as exc:
        raise ConfigurationError(f"{name} is not a valid pattern: {exc}") from exc


@dataclass(frozen=True)
class SyncConfig:
    """Options for a single :class:`~asset_uploader.uploader.S3Sync`.

    ``files_hashed`` enables pass-through of files an upstream build already
    hashed; ``True`` selects :data:`DEFAULT_HASHED_FILE_REGEXP`.
    ``unhashed_pattern`` strips the hash back out for pseudo-unhashed aliases
    and defaults to the detection pattern. ``gzip_hashed`` compresses hashed
    variants of matching keys on the fly; ``True`` selects
    :data:`DEFAULT_GZIP_HASHED_REGEXP`.
    """

    base_path: str
    ignore_paths: Tuple[Union[str, Pattern[str]], ...] = ()
    prefix: str = ""
    manifest_key: str = DEFAULT_MANIFEST_KEY
    no_upload: bool = False
    no_upload_manifest: bool = False
    no_upload_originals: bool = False
    no_upload_hashed: bool = False
    headers: Mapping[str, Any] = field(default_factory=dict)
    gzip_headers: Optional[Mapping[str, Any]] = None
    files_hashed: PatternOption = None
    unhashed_pattern: PatternOption = None
    include_pseudo_unhashed: bool = False
    gzip_hashed: PatternOption = None
    max_workers: int = DEFAULT_MAX_WORKERS

    def __post_init__(self) -> None:
        if not self.base_path:
            raise ConfigurationError("base_path is required")
        if not self.manifest_key:
            raise ConfigurationError("manifest_key must not be empty")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        # normalise lists passed by callers into a hashable tuple
        object.__setattr__(self, "ignore_paths", tuple(self.ignore_paths))
        for pattern in self.ignore_paths:
            _compile(pattern, DEFAULT_HASHED_FILE_REGEXP, "ignore_paths")
        # surface invalid patterns now rather than mid-run
        _ = (self.hashed_pattern, self.strip_pattern, self.gzip_pattern)

    # -- derived patterns ------------------------------------------------
    @property
    def hashed_pattern(self) -> Optional[Pattern[str]]:
        return _compile(self.files_hashed, DEFAULT_HASHED_FILE_REGEXP, "files_hashed")

    @property
    def strip_pattern(self) -> Optional[Pattern[str]]:
        pattern = _compile(self.unhashed_pattern, DEFAULT_HASHED_FILE_REGEXP, "unhashed_pattern")
        return pattern or self.hashed_pattern

    @property
    def gzip_pattern(self) -> Optional[Pattern[str]]:
        return _compile(self.gzip_hashed, DEFAULT_GZIP_HASHED_REGEXP, "gzip_hashed")

    # -- skip predicates -------------------------------------------------
    def should_upload_original(self, pre_hashed: bool) -> bool:
        """Pre-hashed files are always stored under their own name."""
        if self.no_upload:
            return False
        return pre_hashed or not self.no_upload_originals

    def should_upload_hashed(self, original_key: str, hashed_key: str | None) -> bool:
        if self.no_upload or self.no_upload_hashed or hashed_key is None:
            return False
        return hashed_key != original_key

    def should_upload_manifest(self) -> bool:
        return not (self.no_upload or self.no_upload_manifest)

    @classmethod
    def from_env(cls, **overrides: Any) -> "SyncConfig":
        """Build a config from ``ASSET_UPLOADER__*`` variables.

        ``IGNORE_PATHS`` is a comma separated list of patterns and
        ``CACHE_CONTROL`` sets the ``CacheControl`` header of every upload.
        """

        ignore = _env("asset_uploader.ignore_paths", "") or ""
        headers: dict[str, Any] = {}
        cache_control = _env("asset_uploader.cache_control")
        if cache_control:
            headers["CacheControl"] = cache_control
        acl = _env("asset_uploader.acl")
        if acl:
            headers["ACL"] = acl
        try:
            max_workers = int(_env("asset_uploader.max_workers", str(DEFAULT_MAX_WORKERS)) or DEFAULT_MAX_WORKERS)
        except ValueError as exc:
            raise ConfigurationError(f"ASSET_UPLOADER__MAX_WORKERS: {exc}") from exc

        values: dict[str, Any] = dict(
            base_path=_env("asset_uploader.base_path", "") or "",
            ignore_paths=tuple(p.strip() for p in ignore.split(",") if p.strip()),
            prefix=_env("asset_uploader.prefix", "") or "",
            manifest_key=_env("asset_uploader.manifest_key", DEFAULT_MANIFEST_KEY) or DEFAULT_MANIFEST_KEY,
            no_upload=_env_flag("asset_uploader.no_upload"),
            no_upload_manifest=_env_flag("asset_uploader.no_upload_manifest"),
            no_upload_originals=_env_flag("asset_uploader.no_upload_originals"),
            no_upload_hashed=_env_flag("asset_uploader.no_upload_hashed"),
            headers=headers,
            files_hashed=_env_pattern("asset_uploader.files_hashed"),
            unhashed_pattern=_env_pattern("asset_uploader.unhashed_pattern"),
            include_pseudo_unhashed=_env_flag("asset_uploader.include_pseudo_unhashed"),
            gzip_hashed=_env_pattern("asset_uploader.gzip_hashed"),
            max_workers=max_workers,
        )
        values.update(overrides)
        return cls(**values)
