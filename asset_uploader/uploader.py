"""Sync a directory of static assets to object storage under hashed names.

A run goes through four phases which are never reordered:

1. *Gather* - list every file below ``base_path`` minus ignored paths.
2. *Digest* - hash every file in discovery order and derive its hashed key.
   The digest must be complete before any file is rewritten because a
   stylesheet may reference an image discovered after it.
3. *Sync* - for each file upload the original and the hashed variant
   (with references rewritten) concurrently. Every upload is preceded by a
   conditional check so unchanged objects are skipped.
4. *Publish* - upload the digest as a JSON manifest.

Per-run state is reset afterwards whether the run succeeded or not, so a
single :class:`S3Sync` can be reused.
"""

from __future__ import annotations

import io
import json
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Dict, List, Optional

from . import directory, hashing, streams, transform
from .config import SyncConfig
from .digest import Digest, DigestBuilder, DigestEntry
from .errors import AssetIOError, AssetUploaderError, SyncCancelled, SyncError
from .files import CONTENT_TYPE_JSON, is_gzipped, upload_headers
from .storage import StorageBackend, load_backend

logger = logging.getLogger(__name__)

BodyOpener = Callable[[], BinaryIO]


@dataclass
class SyncResult:
    digest: Digest
    uploaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class S3Sync:
    """Upload assets and their hashed variants, then publish the manifest."""

    def __init__(self, config: SyncConfig, storage: StorageBackend | None = None) -> None:
        self.config = config
        if storage is None and not config.no_upload:
            storage = load_backend()
        self.storage = storage
        self.base_path = os.path.abspath(config.base_path)
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._reset_state()

    # -- per-run state ---------------------------------------------------
    def _reset_state(self) -> None:
        self._files: List[str] = []
        self._fingerprints: Dict[str, str] = {}
        self._builder = DigestBuilder(
            self.base_path,
            prefix=self.config.prefix,
            hashed_pattern=self.config.hashed_pattern,
            unhashed_pattern=self.config.strip_pattern,
            include_pseudo_unhashed=self.config.include_pseudo_unhashed,
            gzip_pattern=self.config.gzip_pattern,
        )
        self._uploaded: List[str] = []
        self._skipped: List[str] = []

    def reset(self) -> None:
        self._reset_state()

    @property
    def digest(self) -> Digest:
        return self._builder.digest

    @property
    def entries(self) -> Dict[str, DigestEntry]:
        return self._builder.entries

    def cancel(self) -> None:
        """Stop issuing new uploads; in-flight uploads finish."""
        logger.warning("Asset sync cancellation requested")
        self._cancelled.set()

    # -- phases ----------------------------------------------------------
    def run(self) -> SyncResult:
        self._cancelled.clear()
        try:
            self.gather()
            self.build_digest()
            self.sync()
            self.publish_manifest()
            logger.info(
                "Asset sync finished: %d files, %d uploaded, %d unchanged",
                len(self._files),
                len(self._uploaded),
                len(self._skipped),
            )
            return SyncResult(
                dict(self.digest), sorted(self._uploaded), sorted(self._skipped)
            )
        finally:
            self.reset()

    def gather(self) -> List[str]:
        try:
            self._files = directory.get_file_names(
                self.base_path, self.config.ignore_paths
            )
        except OSError as exc:
            if isinstance(exc, AssetIOError):
                raise
            raise AssetIOError(f"unable to list {self.base_path}: {exc}") from exc
        logger.info("Found %d files below %s", len(self._files), self.base_path)
        return self._files

    def build_digest(self) -> Digest:
        for file_path in self._files:
            entry = self._builder.add(file_path)
            self._fingerprints[file_path] = entry.hash
        logger.info("Built digest with %d entries", len(self.digest))
        return self.digest

    def sync(self) -> None:
        if self.config.no_upload:
            logger.info("Uploads disabled, skipping sync of %d files", len(self._files))
            return
        if self._cancelled.is_set():
            raise SyncCancelled("asset sync cancelled before upload")

        failures: Dict[str, BaseException] = {}
        cancelled = False
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {}
            for file_path in self._files:
                futures[executor.submit(self.upload_original, file_path)] = file_path
                futures[executor.submit(self.upload_hashed, file_path)] = file_path
            for fut in as_completed(futures):
                if fut.cancelled():
                    continue
                file_path = futures[fut]
                try:
                    fut.result()
                except SyncCancelled:
                    cancelled = True
                    for f in futures:
                        f.cancel()
                except (AssetUploaderError, OSError) as exc:
                    logger.error("Upload of %s failed: %s", file_path, exc)
                    failures.setdefault(file_path, exc)

        if failures:
            error = SyncError(failures)
            raise error from error.first
        if cancelled:
            raise SyncCancelled("asset sync cancelled")

    def publish_manifest(self) -> None:
        if not self.config.should_upload_manifest():
            logger.info("Manifest upload disabled")
            return
        data = json.dumps(self.digest, sort_keys=True).encode("utf-8")
        headers = upload_headers(
            self.config.manifest_key, self.config.headers, self.config.gzip_headers
        )
        headers["ContentType"] = CONTENT_TYPE_JSON
        if is_gzipped(self.config.manifest_key):
            # a .gz manifest key is stored compressed
            data = streams.compress(data)
        self._conditional_put(
            self.config.manifest_key,
            hashing.hash_from_bytes(data),
            lambda: io.BytesIO(data),
            headers,
        )

    # -- per file uploads --------------------------------------------------
    def upload_original(self, file_path: str) -> bool:
        entry = self._builder.entries[file_path]
        if not self.config.should_upload_original(entry.pre_hashed):
            logger.debug("Skipping original upload of %s", entry.relative_name)
            return False
        return self._conditional_put(
            entry.destination_key,
            self._fingerprints[file_path],
            lambda: open(file_path, "rb"),
        )

    def upload_hashed(self, file_path: str) -> bool:
        # the entry, not the digest, is authoritative: aliases may share names
        entry = self.entries.get(file_path)
        if entry is None:
            logger.warning("No digest entry for %s, skipping hashed upload", file_path)
            return False
        relative_name = entry.relative_name
        hashed_key = entry.hashed_key
        if not self.config.should_upload_hashed(entry.destination_key, hashed_key):
            logger.debug("Skipping hashed upload of %s", relative_name)
            return False

        result = transform.replace_hashed_filenames(file_path, relative_name, self.digest)
        if hashed_key.endswith(".gz") and not is_gzipped(file_path):
            data = streams.compress(result.read())
            fingerprint = hashing.hash_from_bytes(data)
            opener: BodyOpener = lambda: io.BytesIO(data)
        elif result.changed:
            fingerprint = result.hash
            opener = result.open
        else:
            fingerprint = self._fingerprints[file_path]
            opener = result.open
        return self._conditional_put(hashed_key, fingerprint, opener)

    def _conditional_put(
        self,
        key: str,
        fingerprint: str,
        open_body: BodyOpener,
        headers: Optional[Dict[str, Any]] = None,
    ) -> bool:
        if self._cancelled.is_set():
            raise SyncCancelled(f"not uploading {key}: sync cancelled")
        state = self.storage.check(key, fingerprint)
        if not state.needs_upload:
            logger.debug("%s is unchanged, skipping upload", key)
            with self._lock:
                self._skipped.append(key)
            return False
        if self._cancelled.is_set():
            raise SyncCancelled(f"not uploading {key}: sync cancelled")
        if headers is None:
            headers = upload_headers(key, self.config.headers, self.config.gzip_headers)
        with open_body() as body:
            self.storage.put(Key=key, Body=body, **headers)
        logger.info("Uploaded %s (%s)", key, state.value)
        with self._lock:
            self._uploaded.append(key)
        return True
