import hashlib
import sys
import threading
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(repo_root))

from asset_uploader.storage import RemoteState, StorageBackend


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


class MemoryStorage(StorageBackend):
    """In-memory object store recording every call."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.headers: dict[str, dict] = {}
        self.puts: list[str] = []
        self.checks: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def put(self, Key, Body, **headers):
        data = Body.read() if hasattr(Body, "read") else Body
        with self._lock:
            self.objects[Key] = data
            self.headers[Key] = headers
            self.puts.append(Key)
        return {"ETag": f'"{md5(data)}"'}

    def check(self, key, fingerprint):
        with self._lock:
            self.checks.append((key, fingerprint))
            if key not in self.objects:
                return RemoteState.MISSING
            if md5(self.objects[key]) == fingerprint:
                return RemoteState.UNCHANGED
            return RemoteState.CHANGED


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def write_file(tmp_path):
    def _write(relative: str, content) -> Path:
        path = tmp_path / "public" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path

    return _write


@pytest.fixture
def public_dir(tmp_path):
    path = tmp_path / "public"
    path.mkdir(exist_ok=True)
    return path
