"""Azure Blob Storage backend."""

import logging
from typing import List, Optional

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from ..errors import ListingError, UninitializedContainerError
from ..sync.models import FileRecord
from ..utils.file_utils import FileHelper
from ..utils.retry import RetryPolicy
from .base import StorageBackend

logger = logging.getLogger(__name__)


class AzureBlobBackend(StorageBackend):
    """Blobs below a prefix in an Azure Blob Storage container."""

    def __init__(self, service_client: BlobServiceClient, container_name: str, prefix: str = "",
                 retry: Optional[RetryPolicy] = None, name: Optional[str] = None):
        """Initialize Azure Blob backend.

        Args:
            service_client: Authenticated Blob Service client
            container_name: Target container name
            prefix: Optional path prefix for synced files
            retry: Retry policy for blob calls
            name: Display name
        """
        self.container_name = container_name
        self.prefix = prefix.strip('/')
        self.retry = retry or RetryPolicy()
        self.name = name or f"azure://{container_name}/{self.prefix}".rstrip('/')
        self.container_client = service_client.get_container_client(container_name)

    def _blob_path(self, identity: str) -> str:
        return FileHelper.remote_key(self.prefix, identity)

    def _content_hash(self, blob) -> str:
        content_md5 = blob.content_settings.content_md5 if blob.content_settings else None
        if content_md5:
            return bytes(content_md5).hex()
        # Large block uploads carry no MD5; hash the content instead
        logger.debug(f"No stored MD5 for {blob.name}, hashing content")
        return FileHelper.md5_bytes(self.container_client.download_blob(blob.name).readall())

    def _list_blobs(self) -> List[FileRecord]:
        name_starts_with = self.prefix + '/' if self.prefix else None
        try:
            blobs = list(self.container_client.list_blobs(name_starts_with=name_starts_with))
        except ResourceNotFoundError as e:
            raise UninitializedContainerError(
                self.name, f"container {self.container_name} does not exist"
            ) from e

        return [
            FileRecord(
                identity=FileHelper.identity_from_key(self.prefix, blob.name),
                content_hash=self._content_hash(blob),
                size=blob.size or 0,
                modified_at=blob.last_modified,
                remote_path=blob.name,
            )
            for blob in blobs
            if not blob.name.endswith('/')
        ]

    def list_files(self) -> List[FileRecord]:
        try:
            records = self.retry.call(self._list_blobs, description=f"list {self.name}")
        except AzureError as e:
            raise ListingError(self.name, str(e)) from e

        logger.info(f"{self.name}: {len(records)} blob(s)")
        return records

    def read_file(self, identity: str) -> bytes:
        return self.retry.call(
            lambda: self.container_client.download_blob(self._blob_path(identity)).readall(),
            description=f"download {identity}",
        )

    def _ensure_container(self):
        try:
            self.container_client.create_container()
            logger.info(f"Created container {self.container_name}")
        except ResourceExistsError:
            pass

    def _upload(self, identity: str, data: bytes):
        self.container_client.upload_blob(
            self._blob_path(identity),
            data,
            overwrite=True,
            content_settings=ContentSettings(content_md5=bytearray.fromhex(FileHelper.md5_bytes(data))),
        )

    def write_file(self, identity: str, data: bytes):
        def upload():
            try:
                self._upload(identity, data)
            except ResourceNotFoundError:
                # First write into a container that does not exist yet
                self._ensure_container()
                self._upload(identity, data)
        self.retry.call(upload, description=f"upload {identity}")

    def delete_file(self, identity: str):
        def delete():
            try:
                self.container_client.delete_blob(self._blob_path(identity))
            except ResourceNotFoundError:
                logger.debug(f"Blob {identity} already gone")
        self.retry.call(delete, description=f"delete {identity}")

    def test_connection(self) -> bool:
        try:
            self.container_client.get_container_properties()
            return True
        except AzureError as e:
            logger.error(f"Failed to connect to Azure container {self.container_name}: {e}")
            return False
