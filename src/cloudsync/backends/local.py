"""Local filesystem backend."""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Tuple

from ..errors import ListingError
from ..sync.models import FileRecord
from ..utils.file_utils import FileHelper
from .base import StorageBackend

logger = logging.getLogger(__name__)


class LocalBackend(StorageBackend):
    """Files below a local root directory.

    Listing hashes every file with MD5. When the ``hash_cache`` store
    remembers a file with exactly the current modification time,
    its stored hash is reused instead of reading the file again.
    """

    def __init__(
        self,
        root,
        hash_cache=None,
        ignore: Iterable[str] = (),
        hash_workers: int = 8,
        state_dir: Optional[Path] = None,
        name: str = "local",
    ):
        """Initialize local backend.

        Args:
            root: Sync root directory
            hash_cache: Baseline store used to skip rehashing unchanged files
            ignore: Glob patterns (relative to the root) to leave out
            hash_workers: Size of the hashing thread pool
            state_dir: Directory holding baseline documents, never synced
            name: Display name
        """
        self.root = Path(root).expanduser()
        self.hash_cache = hash_cache
        self.ignore = list(ignore)
        self.hash_workers = max(1, hash_workers)
        self.name = name
        self._excluded: List[str] = []
        if state_dir is not None:
            try:
                self._excluded.append(
                    Path(state_dir).expanduser().resolve().relative_to(self.root.resolve()).as_posix()
                )
            except ValueError:
                pass  # state directory lives outside the tree

    def _path(self, identity: str) -> Path:
        parts = PurePosixPath(identity).parts
        if not parts or identity.startswith("/") or ".." in parts:
            raise ValueError(f"Invalid file identity: {identity!r}")
        return self.root.joinpath(*parts)

    def is_ignored(self, identity: str) -> bool:
        """True if ``identity`` is left out of sync (state directory, default names, user globs)."""
        for excluded in self._excluded:
            if identity == excluded or identity.startswith(excluded + "/"):
                return True
        return FileHelper.should_ignore(identity, self.ignore)

    def _walk(self) -> Tuple[List[FileRecord], List[Tuple[str, Path, os.stat_result]]]:
        def on_error(error: OSError):
            raise ListingError(self.name, str(error)) from error

        directories: List[FileRecord] = []
        files: List[Tuple[str, Path, os.stat_result]] = []
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=on_error):
            base = Path(dirpath)
            kept = []
            for dirname in sorted(dirnames):
                path = base / dirname
                identity = FileHelper.get_relative_path(path, self.root)
                if self.is_ignored(identity) or path.is_symlink():
                    continue
                kept.append(dirname)
                directories.append(FileRecord(
                    identity=identity,
                    content_hash="",
                    modified_at=FileHelper.modified_time_utc(path),
                    local_path=str(path),
                    is_directory=True,
                ))
            dirnames[:] = kept

            for filename in filenames:
                path = base / filename
                identity = FileHelper.get_relative_path(path, self.root)
                if self.is_ignored(identity) or not path.is_file():
                    continue
                files.append((identity, path, path.stat()))
        return directories, files

    def list_files(self) -> List[FileRecord]:
        if not self.root.is_dir():
            raise ListingError(self.name, f"sync root {self.root} is not a directory")

        try:
            directories, files = self._walk()
        except OSError as e:
            raise ListingError(self.name, str(e)) from e

        records: List[FileRecord] = []
        to_hash: List[FileRecord] = []
        for identity, path, stat in files:
            record = FileRecord(
                identity=identity,
                content_hash="",
                size=stat.st_size,
                modified_at=FileHelper.modified_time_utc(path),
                local_path=str(path),
            )
            if self.hash_cache is not None and self.hash_cache.timestamp_of(identity) == record.modified_at:
                record.content_hash = self.hash_cache.hash_of(identity)
            else:
                to_hash.append(record)
            records.append(record)

        if to_hash:
            logger.debug(f"Hashing {len(to_hash)} of {len(records)} local file(s)")
            try:
                with ThreadPoolExecutor(max_workers=self.hash_workers) as pool:
                    digests = pool.map(lambda r: FileHelper.md5_file(Path(r.local_path)), to_hash)
                    for record, digest in zip(to_hash, digests):
                        record.content_hash = digest
            except OSError as e:
                raise ListingError(self.name, f"could not hash file: {e}") from e

        logger.info(f"Local: {len(records)} file(s), {len(directories)} folder(s)")
        return directories + records

    def read_file(self, identity: str) -> bytes:
        return self._path(identity).read_bytes()

    def write_file(self, identity: str, data: bytes):
        path = self._path(identity)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def delete_file(self, identity: str):
        path = self._path(identity)
        path.unlink(missing_ok=True)

        # Remove folders left empty by the delete, never the root itself
        parent = path.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def test_connection(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.R_OK | os.W_OK)
