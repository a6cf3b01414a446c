"""Utility functions and helpers."""

from .file_utils import FileHelper
from .logging import setup_logging
from .retry import RetryPolicy

__all__ = ["setup_logging", "FileHelper", "RetryPolicy"]
