"""Configuration management for cloudsync."""

from .settings import CredentialsConfig, RemoteConfig, RemoteType, SyncConfig, SyncOptions

__all__ = ["SyncConfig", "RemoteConfig", "RemoteType", "SyncOptions", "CredentialsConfig"]
