"""Reconciliation and merge engine."""

from .baseline import BaselineEntry, BaselineRegistry, BaselineStore, BaselineView
from .classifier import classify, summarize
from .executor import ExecutionReport, PlanExecutor
from .merge import merge_contents
from .models import Action, ActionKind, FailurePolicy, FileRecord, ProgressEvent
from .progress import ProgressTracker
from .synchronizer import SyncResult, Synchronizer

__all__ = [
    "Action", "ActionKind", "FailurePolicy", "FileRecord", "ProgressEvent",
    "BaselineEntry", "BaselineRegistry", "BaselineStore", "BaselineView",
    "classify", "summarize", "merge_contents",
    "ExecutionReport", "PlanExecutor", "ProgressTracker",
    "SyncResult", "Synchronizer",
]
