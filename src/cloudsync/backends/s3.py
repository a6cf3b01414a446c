"""AWS S3 backend."""

import logging
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ListingError, UninitializedContainerError
from ..sync.models import FileRecord
from ..utils.file_utils import FileHelper
from ..utils.retry import RetryPolicy
from .base import StorageBackend

logger = logging.getLogger(__name__)

MISSING_BUCKET_CODES = {"NoSuchBucket", "404"}


class S3Backend(StorageBackend):
    """Objects below a key prefix in an S3 bucket.

    Content hashes come from the object ETag, which is the hex MD5 of the
    body for objects uploaded with a single ``put_object`` call.
    """

    def __init__(self, client, bucket: str, prefix: str = "",
                 retry: Optional[RetryPolicy] = None, name: Optional[str] = None):
        """Initialize S3 backend.

        Args:
            client: boto3 S3 client
            bucket: Bucket name
            prefix: Optional key prefix for synced files
            retry: Retry policy for S3 calls
            name: Display name
        """
        self.client = client
        self.bucket = bucket
        self.prefix = prefix.strip('/')
        self.retry = retry or RetryPolicy()
        self.name = name or f"s3://{bucket}/{self.prefix}".rstrip('/')

    def _key(self, identity: str) -> str:
        return FileHelper.remote_key(self.prefix, identity)

    def _list_objects(self) -> List[FileRecord]:
        paginator = self.client.get_paginator('list_objects_v2')
        params = {'Bucket': self.bucket}
        if self.prefix:
            params['Prefix'] = self.prefix + '/'

        records = []
        try:
            pages = list(paginator.paginate(**params))
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in MISSING_BUCKET_CODES:
                raise UninitializedContainerError(self.name, f"bucket {self.bucket} does not exist") from e
            raise

        for page in pages:
            for obj in page.get('Contents', []):
                key = obj['Key']
                identity = FileHelper.identity_from_key(self.prefix, key)
                if key.endswith('/'):
                    records.append(FileRecord(
                        identity=identity.rstrip('/'),
                        content_hash="",
                        modified_at=obj['LastModified'],
                        remote_path=key,
                        is_directory=True,
                    ))
                    continue
                etag = obj.get('ETag', '').strip('"')
                if '-' in etag or not etag:
                    # Multipart ETags are not an MD5 of the content
                    etag = FileHelper.md5_bytes(
                        self.client.get_object(Bucket=self.bucket, Key=key)['Body'].read()
                    )
                records.append(FileRecord(
                    identity=identity,
                    content_hash=etag,
                    size=obj.get('Size', 0),
                    modified_at=obj['LastModified'],
                    remote_path=key,
                ))
        return records

    def list_files(self) -> List[FileRecord]:
        try:
            records = self.retry.call(self._list_objects, description=f"list {self.name}")
        except (ClientError, BotoCoreError) as e:
            raise ListingError(self.name, str(e)) from e

        logger.info(f"{self.name}: {len(records)} object(s)")
        return records

    def read_file(self, identity: str) -> bytes:
        def get():
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(identity))
            return response['Body'].read()
        return self.retry.call(get, description=f"download {identity}")

    def write_file(self, identity: str, data: bytes):
        self.retry.call(
            self.client.put_object,
            Bucket=self.bucket,
            Key=self._key(identity),
            Body=data,
            ContentMD5=FileHelper.md5_base64(data),
            description=f"upload {identity}",
        )

    def delete_file(self, identity: str):
        self.retry.call(
            self.client.delete_object,
            Bucket=self.bucket,
            Key=self._key(identity),
            description=f"delete {identity}",
        )

    def test_connection(self) -> bool:
        try:
            self.client.head_bucket(Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to connect to S3 bucket {self.bucket}: {e}")
            return False
