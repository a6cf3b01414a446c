"""Storage backends: the local tree and remote object stores."""

from pathlib import Path
from typing import Optional

from ..auth.cloud_auth import AWSAuth, AzureAuth, GCPAuth
from ..config.settings import CredentialsConfig, RemoteConfig, RemoteType, SyncOptions
from ..errors import ConfigurationError
from ..utils.retry import RetryPolicy
from .base import StorageBackend
from .local import LocalBackend


def create_remote_backend(
    remote: RemoteConfig,
    credentials: Optional[CredentialsConfig] = None,
    options: Optional[SyncOptions] = None,
) -> StorageBackend:
    """Build the backend for one configured remote.

    Args:
        remote: Remote configuration
        credentials: Credentials (provider default chains are used for anything unset)
        options: Sync options supplying the retry settings

    Returns:
        Backend named after the remote
    """
    credentials = credentials or CredentialsConfig()
    options = options or SyncOptions()
    retry = RetryPolicy(attempts=options.retry_attempts, delay=options.retry_delay)

    if remote.type == RemoteType.AWS_S3:
        from .s3 import S3Backend

        auth = AWSAuth(
            access_key_id=credentials.aws_access_key_id,
            secret_access_key=credentials.aws_secret_access_key,
            session_token=credentials.aws_session_token,
            region=remote.region or "us-east-1",
        )
        return S3Backend(auth.get_s3_client(), remote.bucket, remote.prefix, retry, name=remote.name)

    if remote.type == RemoteType.AZURE_BLOB:
        from .azure_blob import AzureBlobBackend

        auth = AzureAuth(
            account_name=remote.account,
            account_key=credentials.azure_storage_account_key,
            connection_string=credentials.azure_storage_connection_string,
            use_default_credential=not (
                credentials.azure_storage_account_key or credentials.azure_storage_connection_string
            ),
        )
        return AzureBlobBackend(
            auth.get_blob_service_client(), remote.container, remote.prefix, retry, name=remote.name
        )

    if remote.type == RemoteType.GCP_STORAGE:
        from .gcs import GCSBackend

        auth = GCPAuth(
            project=remote.project,
            credentials_path=Path(credentials.gcp_credentials_file) if credentials.gcp_credentials_file else None,
        )
        return GCSBackend(auth.get_storage_client(), remote.bucket, remote.prefix, retry, name=remote.name)

    raise ConfigurationError(f"remotes.{remote.name}.type", f"unsupported remote type {remote.type}")


__all__ = ["StorageBackend", "LocalBackend", "create_remote_backend"]
