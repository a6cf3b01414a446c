"""Google Cloud Storage backend."""

import logging
from typing import List, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from ..errors import ListingError, UninitializedContainerError
from ..sync.models import FileRecord
from ..utils.file_utils import FileHelper
from ..utils.retry import RetryPolicy
from .base import StorageBackend

logger = logging.getLogger(__name__)


class GCSBackend(StorageBackend):
    """Objects below a prefix in a GCS bucket."""

    def __init__(self, client: storage.Client, bucket_name: str, prefix: str = "",
                 retry: Optional[RetryPolicy] = None, name: Optional[str] = None):
        """
        Initialize GCS backend.

        Args:
            client: Authenticated storage client
            bucket_name: Name of the GCS bucket
            prefix: Optional path prefix for synced files
            retry: Retry policy for storage calls
            name: Display name
        """
        self.client = client
        self.bucket_name = bucket_name
        self.bucket = client.bucket(bucket_name)
        self.prefix = prefix.strip('/')
        self.retry = retry or RetryPolicy()
        self.name = name or f"gs://{bucket_name}/{self.prefix}".rstrip('/')

    def _blob_path(self, identity: str) -> str:
        return FileHelper.remote_key(self.prefix, identity)

    def _list_blobs(self) -> List[FileRecord]:
        try:
            blobs = list(self.client.list_blobs(self.bucket_name, prefix=self.prefix + '/' if self.prefix else None))
        except NotFound as e:
            raise UninitializedContainerError(self.name, f"bucket {self.bucket_name} does not exist") from e

        records = []
        for blob in blobs:
            if blob.name.endswith('/'):
                continue
            if blob.md5_hash:
                content_hash = FileHelper.base64_to_hex(blob.md5_hash)
            else:
                # Composite objects have no MD5
                content_hash = FileHelper.md5_bytes(blob.download_as_bytes())
            records.append(FileRecord(
                identity=FileHelper.identity_from_key(self.prefix, blob.name),
                content_hash=content_hash,
                size=blob.size or 0,
                modified_at=blob.updated,
                remote_path=blob.name,
            ))
        return records

    def list_files(self) -> List[FileRecord]:
        try:
            records = self.retry.call(self._list_blobs, description=f"list {self.name}")
        except GoogleAPIError as e:
            raise ListingError(self.name, str(e)) from e

        logger.info(f"{self.name}: {len(records)} object(s)")
        return records

    def read_file(self, identity: str) -> bytes:
        return self.retry.call(
            lambda: self.bucket.blob(self._blob_path(identity)).download_as_bytes(),
            description=f"download {identity}",
        )

    def write_file(self, identity: str, data: bytes):
        def upload():
            blob = self.bucket.blob(self._blob_path(identity))
            blob.md5_hash = FileHelper.md5_base64(data)
            blob.upload_from_string(data)
        self.retry.call(upload, description=f"upload {identity}")

    def delete_file(self, identity: str):
        def delete():
            try:
                self.bucket.blob(self._blob_path(identity)).delete()
            except NotFound:
                logger.debug(f"Object {identity} already gone")
        self.retry.call(delete, description=f"delete {identity}")

    def test_connection(self) -> bool:
        try:
            return self.bucket.exists()
        except GoogleAPIError as e:
            logger.error(f"Failed to connect to GCS bucket {self.bucket_name}: {e}")
            return False
