"""Pluggable storage backends.

The uploader only needs two primitives from a remote store: a conditional
existence check against a content fingerprint and a whole-object write.
:class:`S3Backend` talks to S3 or any S3 compatible service such as MinIO;
:class:`FSBackend` mirrors objects into a local directory which is handy for
serving assets via an Nginx alias or for inspecting a run locally.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Union

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigurationError, RemoteTransientError
from .hashing import hash_from_bytes, hash_from_file

ObjectBody = Union[bytes, BinaryIO]

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
NOT_MODIFIED_CODES = frozenset({"304", "NotModified"})


def _env(name: str, default: str | None = None) -> str | None:
    """Fetch configuration values using ``storage.foo`` style names.

    Environment variables use ``STORAGE__FOO`` to mirror nested configuration.
    """

    return os.getenv(name.replace(".", "__").upper(), default)


class RemoteState(str, Enum):
    """Result of comparing a local fingerprint with the stored object."""

    MISSING = "missing"
    CHANGED = "changed"
    UNCHANGED = "unchanged"

    @property
    def needs_upload(self) -> bool:
        return self is not RemoteState.UNCHANGED


class StorageBackend:
    """Simple interface all storage backends must implement."""

    def put(self, Key: str, Body: ObjectBody, **headers: Any):  # pragma: no cover - interface only
        raise NotImplementedError

    def check(self, key: str, fingerprint: str) -> RemoteState:  # pragma: no cover - interface only
        """Compare ``fingerprint`` with the object currently stored at ``key``."""
        raise NotImplementedError


class S3Backend(StorageBackend):
    """Storage backend backed by S3 or any S3 compatible service."""

    def __init__(
        self,
        bucket: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.endpoint = os.getenv("S3_ENDPOINT")
        self.region = os.getenv("S3_REGION") or os.getenv("AWS_DEFAULT_REGION")
        self.access_key = os.getenv("S3_ACCESS_KEY") or os.getenv(
            "S3_ACCESS_KEY_ID"
        )
        self.secret_key = os.getenv("S3_SECRET_KEY") or os.getenv(
            "S3_SECRET_ACCESS_KEY"
        )
        self.bucket = bucket or os.getenv("S3_BUCKET")
        if not self.bucket:
            raise ConfigurationError("S3 bucket not configured. Set S3_BUCKET.")

        self.client = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            config=Config(signature_version="s3v4"),
        )

    def put(self, Key: str, Body: ObjectBody, **headers: Any):
        try:
            return self.client.put_object(Bucket=self.bucket, Key=Key, Body=Body, **headers)
        except (ClientError, BotoCoreError) as exc:
            raise RemoteTransientError(Key, f"upload failed: {exc}") from exc

    def check(self, key: str, fingerprint: str) -> RemoteState:
        """Issue ``HEAD`` with ``If-None-Match`` set to the local fingerprint.

        S3 answers ``304`` when the stored ``ETag`` matches, ``404`` when the
        key does not exist and ``200`` when it exists with other content.
        """

        try:
            self.client.head_object(
                Bucket=self.bucket, Key=key, IfNoneMatch=f'"{fingerprint}"'
            )
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = str(error.get("Code", ""))
            status = str(exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", ""))
            if code in NOT_FOUND_CODES or status == "404":
                return RemoteState.MISSING
            if code in NOT_MODIFIED_CODES or status == "304":
                return RemoteState.UNCHANGED
            raise RemoteTransientError(key, f"conditional check failed: {exc}") from exc
        except BotoCoreError as exc:
            raise RemoteTransientError(key, f"conditional check failed: {exc}") from exc
        return RemoteState.CHANGED


class FSBackend(StorageBackend):
    """Filesystem storage, one file per object key."""

    def __init__(self, base_path: str | None = None) -> None:
        self.base_path = Path(base_path or _env("storage.fs_path", "/tmp/assets")).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    # helper ------------------------------------------------------------
    def _full_path(self, key: str) -> Path:
        return self.base_path / key

    # -- basic wrappers -------------------------------------------------
    def put(self, Key: str, Body: ObjectBody, **headers: Any):
        path = self._full_path(Key)
        data = Body.read() if hasattr(Body, "read") else Body
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as exc:
            raise RemoteTransientError(Key, f"upload failed: {exc}") from exc
        return {"ETag": f'"{hash_from_bytes(data)}"'}

    def check(self, key: str, fingerprint: str) -> RemoteState:
        path = self._full_path(key)
        if not path.is_file():
            return RemoteState.MISSING
        try:
            current = hash_from_file(str(path))
        except OSError as exc:
            raise RemoteTransientError(key, f"conditional check failed: {exc}") from exc
        return RemoteState.UNCHANGED if current == fingerprint else RemoteState.CHANGED


# -- backend loader --------------------------------------------------------
def load_backend() -> StorageBackend:
    backend_type = (_env("storage.type", "s3") or "s3").lower()
    if backend_type == "fs":
        return FSBackend()
    if backend_type in ("s3", "minio"):
        return S3Backend()
    raise ConfigurationError(f"Unknown storage type {backend_type!r}")


__all__ = [
    "FSBackend",
    "RemoteState",
    "S3Backend",
    "StorageBackend",
    "load_backend",
]
