"""Shared fixtures for the cloudsync test suite."""

import hashlib
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to Python path so the tests run from a plain checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from cloudsync.backends.base import StorageBackend  # noqa: E402
from cloudsync.errors import UninitializedContainerError  # noqa: E402
from cloudsync.sync.models import FileRecord  # noqa: E402


def md5(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


class MemoryBackend(StorageBackend):
    """Remote stand-in keeping objects in a dict."""

    def __init__(self, name="memory", files=None, missing=False):
        self.name = name
        self.files = dict(files or {})
        self.missing = missing
        self.failures = {}  # (operation, identity) -> exception
        self.calls = []

    def _check(self, operation, identity):
        self.calls.append((operation, identity))
        error = self.failures.get((operation, identity))
        if error is not None:
            raise error

    def list_files(self):
        self.calls.append(("list", None))
        if self.missing:
            raise UninitializedContainerError(self.name, "container does not exist")
        return [
            FileRecord(
                identity=identity,
                content_hash=md5(data),
                size=len(data),
                modified_at=datetime.now(timezone.utc),
                remote_path=identity,
            )
            for identity, data in sorted(self.files.items())
        ]

    def read_file(self, identity):
        self._check("read", identity)
        return self.files[identity]

    def write_file(self, identity, data):
        self._check("write", identity)
        self.missing = False
        self.files[identity] = data

    def delete_file(self, identity):
        self._check("delete", identity)
        self.files.pop(identity, None)


def write_file(path: Path, data: bytes, mtime_offset: float = 0.0):
    """Write ``data`` and move the mtime so cached hashes are invalidated."""
    path.parent.mkdir(parents=True, exist_ok=True)
    existed = path.exists()
    previous = path.stat().st_mtime if existed else None
    path.write_bytes(data)
    if previous is not None:
        stamp = previous + 10 + mtime_offset
        os.utime(path, (stamp, stamp))


@pytest.fixture
def local_root(tmp_path):
    root = tmp_path / "local"
    root.mkdir()
    return root
