"""Exception hierarchy shared by the uploader modules."""

from __future__ import annotations


class AssetUploaderError(Exception):
    """Base class for all uploader failures."""


class ConfigurationError(AssetUploaderError, ValueError):
    """Raised when a :class:`~asset_uploader.config.SyncConfig` is invalid."""


class AssetIOError(AssetUploaderError, OSError):
    """A local asset could not be read."""


class RemoteTransientError(AssetUploaderError):
    """A storage call failed in a way that a later run may recover from."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key


class SyncCancelled(AssetUploaderError):
    """The run was cancelled before all uploads were issued."""


class SyncError(AssetUploaderError):
    """One or more files failed to upload.

    ``failures`` maps the local file path to the exception raised for it.
    ``first`` is the first failure observed and is also chained as the
    ``__cause__`` when the error is raised by the orchestrator.
    """

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = failures
        self.first = next(iter(failures.values()))
        super().__init__(
            f"{len(failures)} file(s) failed to sync; first error: {self.first}"
        )
