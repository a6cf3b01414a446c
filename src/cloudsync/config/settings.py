"""Configuration settings and models for the sync application."""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigurationError
from ..sync.models import FailurePolicy


class RemoteType(str, Enum):
    """Supported remote storage types."""
    AWS_S3 = "aws_s3"
    AZURE_BLOB = "azure_blob"
    GCP_STORAGE = "gcp_storage"


class RemoteConfig(BaseModel):
    """Configuration for one remote endpoint."""
    type: RemoteType
    name: str

    # AWS S3 / GCP specific
    bucket: Optional[str] = None
    region: Optional[str] = "us-east-1"
    project: Optional[str] = None

    # Azure Blob specific
    account: Optional[str] = None
    container: Optional[str] = None

    # Common
    prefix: str = ""
    enabled: bool = True

    @model_validator(mode='after')
    def validate_location(self) -> "RemoteConfig":
        if self.type in (RemoteType.AWS_S3, RemoteType.GCP_STORAGE) and not self.bucket:
            raise ValueError(f'bucket is required for {self.type.value} remotes')
        if self.type == RemoteType.AZURE_BLOB:
            if not self.account:
                raise ValueError('account is required for Azure Blob remotes')
            if not self.container:
                raise ValueError('container is required for Azure Blob remotes')
        return self

    @property
    def location(self) -> str:
        """Human readable location, e.g. ``s3://bucket/prefix``."""
        if self.type == RemoteType.AWS_S3:
            base = f"s3://{self.bucket}"
        elif self.type == RemoteType.GCP_STORAGE:
            base = f"gs://{self.bucket}"
        else:
            base = f"azure://{self.account}/{self.container}"
        return f"{base}/{self.prefix.strip('/')}".rstrip('/')


class SyncOptions(BaseModel):
    """Synchronization options."""
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)  # seconds
    hash_workers: int = Field(default=8, ge=1)
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    state_dir: str = ".cloudsync"
    ignore: List[str] = Field(default_factory=list)
    log_file: Optional[str] = None


class SyncConfig(BaseModel):
    """Main configuration class."""
    local_root: Path
    remotes: List[RemoteConfig]
    sync_options: SyncOptions = Field(default_factory=SyncOptions)

    @field_validator('local_root')
    @classmethod
    def expand_local_root(cls, v: Path) -> Path:
        return Path(os.path.expandvars(str(v))).expanduser()

    @field_validator('remotes')
    @classmethod
    def validate_unique_names(cls, v: List[RemoteConfig]) -> List[RemoteConfig]:
        names = [remote.name for remote in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"remote names must be unique: {', '.join(duplicates)}")
        return v

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "SyncConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(str(config_path), "configuration file not found")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
            return cls(**config_data)
        except yaml.YAMLError as e:
            raise ConfigurationError(str(config_path), f"invalid YAML: {e}") from e
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(str(config_path), str(e)) from e

    def to_yaml(self, config_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.model_dump(mode='json', exclude_none=True), f,
                           default_flow_style=False, indent=2, sort_keys=False)

    def get_remote_by_name(self, name: str) -> Optional[RemoteConfig]:
        """Get remote configuration by name."""
        for remote in self.remotes:
            if remote.name == name:
                return remote
        return None

    def get_enabled_remotes(self) -> List[RemoteConfig]:
        """Get all enabled remotes."""
        return [remote for remote in self.remotes if remote.enabled]

    @property
    def state_path(self) -> Path:
        """Directory holding baseline documents (relative paths are below the local root)."""
        state_dir = Path(self.sync_options.state_dir).expanduser()
        if state_dir.is_absolute():
            return state_dir
        return self.local_root / state_dir


class CredentialsConfig(BaseModel):
    """Credentials configuration (stored separately for security)."""
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None

    azure_storage_connection_string: Optional[str] = None
    azure_storage_account_key: Optional[str] = None

    gcp_credentials_file: Optional[str] = None

    @classmethod
    def from_yaml(cls, credentials_path: Union[str, Path]) -> "CredentialsConfig":
        """Load credentials from YAML file."""
        credentials_path = Path(credentials_path)
        if not credentials_path.exists():
            return cls()  # Return empty config if file doesn't exist

        with open(credentials_path, 'r', encoding='utf-8') as f:
            creds_data = yaml.safe_load(f) or {}

        return cls(**creds_data)

    @classmethod
    def from_env(cls) -> "CredentialsConfig":
        """Load credentials from environment variables."""
        return cls(
            aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            aws_session_token=os.getenv('AWS_SESSION_TOKEN'),
            azure_storage_connection_string=os.getenv('AZURE_STORAGE_CONNECTION_STRING'),
            azure_storage_account_key=os.getenv('AZURE_STORAGE_ACCOUNT_KEY'),
            gcp_credentials_file=os.getenv('GOOGLE_APPLICATION_CREDENTIALS'),
        )

    def merged_with(self, other: "CredentialsConfig") -> "CredentialsConfig":
        """Fill unset fields from ``other`` (e.g. file values over environment)."""
        values = other.model_dump()
        values.update({k: v for k, v in self.model_dump().items() if v is not None})
        return CredentialsConfig(**values)
