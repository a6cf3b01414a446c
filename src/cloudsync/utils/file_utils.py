"""File utility functions."""

import base64
import fnmatch
import hashlib
import os
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Iterable


class FileHelper:
    """Helper class for file operations."""

    DEFAULT_IGNORED_NAMES = {
        '.git', '.trash', '.ds_store', 'thumbs.db', 'desktop.ini'
    }

    @staticmethod
    def md5_bytes(data: bytes) -> str:
        """Hex MD5 digest of in-memory content."""
        return hashlib.md5(data).hexdigest()

    @staticmethod
    def md5_file(file_path: Path, chunk_size: int = 8192) -> str:
        """Calculate MD5 hash of a file.

        Args:
            file_path: Path to the file
            chunk_size: Size of chunks to read

        Returns:
            Hex digest of the file contents
        """
        hash_md5 = hashlib.md5()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(chunk_size), b""):
                hash_md5.update(chunk)
        return hash_md5.hexdigest()

    @staticmethod
    def md5_base64(data: bytes) -> str:
        """Base64 MD5 digest, as expected by the Content-MD5 header."""
        return base64.b64encode(hashlib.md5(data).digest()).decode('ascii')

    @staticmethod
    def base64_to_hex(digest: str) -> str:
        return base64.b64decode(digest).hex()

    @staticmethod
    def modified_time_utc(file_path: Path) -> datetime:
        return datetime.fromtimestamp(file_path.stat().st_mtime, tz=timezone.utc)

    @staticmethod
    def format_file_size(size_bytes: int) -> str:
        """Format file size in human readable format.

        Args:
            size_bytes: Size in bytes

        Returns:
            Formatted size string
        """
        if size_bytes == 0:
            return "0 B"

        size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
        i = 0

        while size_bytes >= 1024 and i < len(size_names) - 1:
            size_bytes /= 1024.0
            i += 1

        return f"{size_bytes:.1f} {size_names[i]}"

    @staticmethod
    def should_ignore(identity: str, patterns: Iterable[str] = ()) -> bool:
        """Check if a path relative to the sync root is excluded from sync.

        A path is ignored when any of its components is one of the default
        ignored names, or when the path or its file name matches one of the
        user glob patterns.

        Args:
            identity: POSIX path relative to the sync root
            patterns: Additional glob patterns

        Returns:
            True if the path should be skipped
        """
        parts = PurePosixPath(identity).parts
        if any(part.lower() in FileHelper.DEFAULT_IGNORED_NAMES for part in parts):
            return True

        name = parts[-1] if parts else identity
        for pattern in patterns:
            if fnmatch.fnmatch(identity, pattern) or fnmatch.fnmatch(name, pattern):
                return True
            # "dir/" style patterns exclude everything below that directory
            if pattern.endswith('/') and (identity + '/').startswith(pattern):
                return True
        return False

    @staticmethod
    def sanitize_filename(filename: str, replacement: str = "_") -> str:
        """Sanitize filename for safe storage.

        Args:
            filename: Original filename
            replacement: Character to replace invalid characters

        Returns:
            Sanitized filename
        """
        invalid_chars = '<>:"/\\|?*'

        sanitized = filename
        for char in invalid_chars:
            sanitized = sanitized.replace(char, replacement)

        sanitized = ''.join(char for char in sanitized if ord(char) >= 32)
        sanitized = sanitized.strip(' .')

        if not sanitized:
            sanitized = "unnamed"

        if len(sanitized) > 255:
            name, ext = os.path.splitext(sanitized)
            sanitized = name[:255 - len(ext)] + ext

        return sanitized

    @staticmethod
    def remote_key(prefix: str, identity: str) -> str:
        """Build the object key for an identity under a remote prefix.

        Args:
            prefix: Key prefix configured for the remote (may be empty)
            identity: POSIX path relative to the sync root

        Returns:
            Object key
        """
        identity = identity.replace('\\', '/').lstrip('/')
        if not prefix:
            return identity
        return f"{prefix.strip('/')}/{identity}"

    @staticmethod
    def identity_from_key(prefix: str, key: str) -> str:
        """Inverse of ``remote_key``."""
        prefix = prefix.strip('/')
        if prefix and key.startswith(prefix + '/'):
            return key[len(prefix) + 1:]
        return key

    @staticmethod
    def get_relative_path(file_path: Path, base_path: Path) -> str:
        """Get the POSIX relative path used as a file identity.

        Args:
            file_path: Full file path
            base_path: Sync root

        Returns:
            Relative path with forward slashes
        """
        return file_path.relative_to(base_path).as_posix()
