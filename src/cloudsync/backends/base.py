"""Storage backend contract used by the sync engine."""

from abc import ABC, abstractmethod
from typing import List

from ..sync.models import FileRecord


class StorageBackend(ABC):
    """One side of a sync: the local tree or a remote container.

    ``list_files`` raises ``UninitializedContainerError`` when the remote
    location does not exist yet and ``ListingError`` for any other failure.
    Errors escaping ``read_file``, ``write_file`` or ``delete_file`` are
    final; implementations retry transient failures themselves.
    """

    name: str = "storage"

    @abstractmethod
    def list_files(self) -> List[FileRecord]:
        """Snapshot every file on this side."""

    @abstractmethod
    def read_file(self, identity: str) -> bytes:
        """Return the full content of a file."""

    @abstractmethod
    def write_file(self, identity: str, data: bytes):
        """Create or replace a file."""

    @abstractmethod
    def delete_file(self, identity: str):
        """Remove a file."""

    def test_connection(self) -> bool:
        """Check that the backend is reachable.

        Returns:
            True if connection successful, False otherwise
        """
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
