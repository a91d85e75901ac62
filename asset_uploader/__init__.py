"""Content-hashed static asset uploads to S3 compatible storage."""

from .config import SyncConfig
from .errors import (AssetIOError, AssetUploaderError, ConfigurationError,
                     RemoteTransientError, SyncCancelled, SyncError)
from .uploader import S3Sync, SyncResult

__all__ = [
    "AssetIOError",
    "AssetUploaderError",
    "ConfigurationError",
    "RemoteTransientError",
    "S3Sync",
    "SyncCancelled",
    "SyncConfig",
    "SyncError",
    "SyncResult",
]
