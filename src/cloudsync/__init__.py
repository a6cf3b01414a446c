"""
CloudSync

Keeps a local folder and one or more cloud object stores (AWS S3, Azure Blob
Storage, Google Cloud Storage) in sync, merging files changed on both sides.
"""

__version__ = "1.0.0"
__author__ = "CloudSync"
__description__ = "Two-way sync between a local folder and cloud object storage"

from .config.settings import SyncConfig
from .sync.sync_manager import SyncManager

__all__ = ["SyncConfig", "SyncManager"]
