"""Cloud storage authentication handling."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import boto3
from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient
from google.auth.exceptions import DefaultCredentialsError
from google.cloud import storage
from google.oauth2 import service_account

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)


class AWSAuth:
    """Handle AWS authentication and S3 client creation."""

    def __init__(
        self,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        region: str = "us-east-1"
    ):
        """Initialize AWS authentication.

        Args:
            access_key_id: AWS access key ID
            secret_access_key: AWS secret access key
            session_token: AWS session token (for temporary credentials)
            region: AWS region
        """
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token
        self.region = region
        self._s3_client = None

    def get_s3_client(self):
        """Get authenticated S3 client.

        Returns:
            boto3 S3 client
        """
        if self._s3_client is None:
            if self.access_key_id and self.secret_access_key:
                self._s3_client = boto3.client(
                    's3',
                    aws_access_key_id=self.access_key_id,
                    aws_secret_access_key=self.secret_access_key,
                    aws_session_token=self.session_token,
                    region_name=self.region
                )
            else:
                # Default credential chain (environment, profile, instance role)
                self._s3_client = boto3.client('s3', region_name=self.region)

        return self._s3_client

    @classmethod
    def from_env(cls, region: str = "us-east-1") -> "AWSAuth":
        return cls(
            access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            session_token=os.getenv('AWS_SESSION_TOKEN'),
            region=region
        )


class AzureAuth:
    """Handle Azure Blob Storage authentication."""

    def __init__(
        self,
        account_name: str,
        account_key: Optional[str] = None,
        connection_string: Optional[str] = None,
        use_default_credential: bool = False
    ):
        """Initialize Azure Blob Storage authentication.

        Args:
            account_name: Storage account name
            account_key: Storage account key
            connection_string: Storage connection string or account SAS URL
            use_default_credential: Use DefaultAzureCredential
        """
        self.account_name = account_name
        self.account_key = account_key
        self.connection_string = connection_string
        self.use_default_credential = use_default_credential
        self._blob_service_client = None
        self._sas_url = None

        if connection_string and connection_string.startswith('https://'):
            self._sas_url = connection_string
            self.connection_string = None

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"

    def get_blob_service_client(self) -> BlobServiceClient:
        """Get authenticated Blob Service client.

        Returns:
            Azure BlobServiceClient

        Raises:
            AuthenticationError: If no usable credential is configured
        """
        if self._blob_service_client is None:
            if self._sas_url:
                # SAS token in the URL handles auth
                self._blob_service_client = BlobServiceClient(account_url=self._sas_url)
            elif self.connection_string:
                self._blob_service_client = BlobServiceClient.from_connection_string(
                    self.connection_string
                )
            elif self.account_key:
                self._blob_service_client = BlobServiceClient(
                    account_url=self.account_url,
                    credential=self.account_key
                )
            elif self.use_default_credential:
                # Managed identity, service principal, az login, ...
                self._blob_service_client = BlobServiceClient(
                    account_url=self.account_url,
                    credential=DefaultAzureCredential()
                )
            else:
                raise AuthenticationError(
                    "azure_blob",
                    "provide a connection string, an account key, or enable the default credential"
                )

        return self._blob_service_client

    @classmethod
    def from_env(cls, account_name: str) -> "AzureAuth":
        connection_string = os.getenv('AZURE_STORAGE_CONNECTION_STRING')
        account_key = os.getenv('AZURE_STORAGE_ACCOUNT_KEY')

        return cls(
            account_name=account_name,
            account_key=account_key,
            connection_string=connection_string,
            use_default_credential=not (connection_string or account_key)
        )


class GCPAuth:
    """Handle Google Cloud Storage authentication."""

    def __init__(
        self,
        project: Optional[str] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        credentials_path: Optional[Path] = None,
    ):
        """
        Initialize GCP authentication.

        Args:
            project: GCP project ID (optional with service account credentials)
            credentials_dict: Service account credentials as dict
            credentials_path: Path to service account JSON file
        """
        self.project = project
        self.credentials_dict = credentials_dict
        self.credentials_path = credentials_path
        self._client: Optional[storage.Client] = None

    def get_storage_client(self) -> storage.Client:
        """Get authenticated storage client.

        Raises:
            AuthenticationError: If credentials cannot be loaded
        """
        if self._client is None:
            try:
                if self.credentials_dict:
                    credentials = service_account.Credentials.from_service_account_info(
                        self.credentials_dict
                    )
                elif self.credentials_path:
                    credentials = service_account.Credentials.from_service_account_file(
                        str(self.credentials_path)
                    )
                else:
                    # Application default credentials
                    credentials = None
                self._client = storage.Client(project=self.project, credentials=credentials)
            except (DefaultCredentialsError, ValueError, OSError) as e:
                raise AuthenticationError("gcp_storage", str(e)) from e

        return self._client

    @classmethod
    def from_env(cls, project: Optional[str] = None) -> "GCPAuth":
        credentials_path = os.getenv('GOOGLE_APPLICATION_CREDENTIALS')
        return cls(
            project=project or os.getenv('GOOGLE_CLOUD_PROJECT'),
            credentials_path=Path(credentials_path) if credentials_path else None,
        )
