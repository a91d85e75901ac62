import re

import pytest

from asset_uploader.config import DEFAULT_MANIFEST_KEY, SyncConfig
from asset_uploader.digest import (DEFAULT_GZIP_HASHED_REGEXP,
                                   DEFAULT_HASHED_FILE_REGEXP)
from asset_uploader.errors import ConfigurationError


def test_defaults():
    config = SyncConfig(base_path="public")
    assert config.manifest_key == DEFAULT_MANIFEST_KEY == "asset-map.json"
    assert config.hashed_pattern is None
    assert config.strip_pattern is None
    assert config.gzip_pattern is None


def test_base_path_is_required():
    with pytest.raises(ConfigurationError):
        SyncConfig(base_path="")


def test_invalid_pattern_fails_fast():
    with pytest.raises(ConfigurationError):
        SyncConfig(base_path="public", files_hashed="(unclosed")


def test_invalid_max_workers():
    with pytest.raises(ConfigurationError):
        SyncConfig(base_path="public", max_workers=0)


def test_boolean_shorthand_selects_default_patterns():
    config = SyncConfig(base_path="public", files_hashed=True, gzip_hashed=True)
    assert config.hashed_pattern is DEFAULT_HASHED_FILE_REGEXP
    assert config.strip_pattern is DEFAULT_HASHED_FILE_REGEXP
    assert config.gzip_pattern is DEFAULT_GZIP_HASHED_REGEXP


def test_strip_pattern_can_differ_from_detection():
    config = SyncConfig(
        base_path="public", files_hashed=r"\.[0-9a-f]{6}\.", unhashed_pattern=r"\.[0-9a-f]{6}"
    )
    assert config.hashed_pattern.pattern == r"\.[0-9a-f]{6}\."
    assert config.strip_pattern.pattern == r"\.[0-9a-f]{6}"


def test_skip_predicates():
    config = SyncConfig(base_path="public", no_upload_originals=True)
    assert config.should_upload_original(pre_hashed=False) is False
    assert config.should_upload_original(pre_hashed=True) is True
    assert config.should_upload_hashed("a.js", "a-h.js") is True
    assert config.should_upload_hashed("a.js", "a.js") is False
    assert config.should_upload_hashed("a.js", None) is False

    dry = SyncConfig(base_path="public", no_upload=True)
    assert dry.should_upload_original(pre_hashed=True) is False
    assert dry.should_upload_hashed("a.js", "a-h.js") is False
    assert dry.should_upload_manifest() is False


def test_from_env(monkeypatch):
    monkeypatch.setenv("ASSET_UPLOADER__BASE_PATH", "/srv/public")
    monkeypatch.setenv("ASSET_UPLOADER__PREFIX", "assets")
    monkeypatch.setenv("ASSET_UPLOADER__IGNORE_PATHS", "^js/views, \\.DS_Store$")
    monkeypatch.setenv("ASSET_UPLOADER__NO_UPLOAD_ORIGINALS", "true")
    monkeypatch.setenv("ASSET_UPLOADER__FILES_HASHED", "yes")
    monkeypatch.setenv("ASSET_UPLOADER__GZIP_HASHED", r"\.js$")
    monkeypatch.setenv("ASSET_UPLOADER__CACHE_CONTROL", "max-age=31536000")
    monkeypatch.setenv("ASSET_UPLOADER__MAX_WORKERS", "3")

    config = SyncConfig.from_env()

    assert config.base_path == "/srv/public"
    assert config.prefix == "assets"
    assert config.ignore_paths == ("^js/views", r"\.DS_Store$")
    assert config.no_upload_originals is True
    assert config.no_upload is False
    assert config.hashed_pattern is DEFAULT_HASHED_FILE_REGEXP
    assert config.gzip_pattern == re.compile(r"\.js$")
    assert config.headers == {"CacheControl": "max-age=31536000"}
    assert config.max_workers == 3


def test_from_env_requires_base_path(monkeypatch):
    monkeypatch.delenv("ASSET_UPLOADER__BASE_PATH", raising=False)
    with pytest.raises(ConfigurationError):
        SyncConfig.from_env()


def test_from_env_overrides(monkeypatch):
    monkeypatch.delenv("ASSET_UPLOADER__BASE_PATH", raising=False)
    config = SyncConfig.from_env(base_path="public", no_upload=True)
    assert config.no_upload is True
