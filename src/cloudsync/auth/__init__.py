"""Authentication for cloud storage providers."""

from .cloud_auth import AWSAuth, AzureAuth, GCPAuth

__all__ = ["AWSAuth", "AzureAuth", "GCPAuth"]
