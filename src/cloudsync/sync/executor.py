"""Plan executor: applies a plan against the local and remote backends."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from ..errors import (ActionFailure, CloudSyncError, PlanAbortedError, TransferError,
                      UninitializedContainerError)
from ..utils.file_utils import FileHelper
from ..utils.logging import ContextualLogger, TimedOperation
from .merge import merge_contents
from .models import Action, ActionKind, FailurePolicy, FileRecord
from .progress import ProgressSink, ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class ExecutionReport:
    """Outcome of executing one plan against one endpoint."""
    endpoint: str
    planned: int = 0
    completed: Dict[ActionKind, int] = field(default_factory=dict)
    failures: List[ActionFailure] = field(default_factory=list)
    bytes_transferred: int = 0
    baseline_entries: Optional[int] = None  # set once the baseline is committed
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return not self.failures and self.baseline_entries is not None


class PlanExecutor:
    """Runs the actions of a plan one after another.

    After every action succeeded the remote is listed again and that
    listing replaces the sync baseline, which commits the run. If any action
    failed the baseline is left as it was and ``PlanAbortedError`` is raised.
    """

    def __init__(
        self,
        local,
        remote,
        sync_baseline,
        progress_sink: Optional[ProgressSink] = None,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        is_ignored: Optional[Callable[[str], bool]] = None,
    ):
        """Initialize plan executor.

        Args:
            local: Local ``StorageBackend``
            remote: Remote ``StorageBackend``
            sync_baseline: ``BaselineStore`` for this remote
            progress_sink: Callable receiving a ``ProgressEvent`` per completed action
            failure_policy: Stop at the first failure or finish the plan first
            is_ignored: Identities never recorded in the baseline
        """
        self.local = local
        self.remote = remote
        self.sync_baseline = sync_baseline
        self.progress_sink = progress_sink
        self.failure_policy = FailurePolicy(failure_policy)
        self.is_ignored = is_ignored
        self.log = ContextualLogger(logger, {"remote": remote.name})

    def execute(self, plan: Sequence[Action]) -> ExecutionReport:
        """Apply every action of the plan and commit the sync baseline.

        Args:
            plan: Actions from the classifier, in order

        Returns:
            Report of what was done

        Raises:
            PlanAbortedError: If any action failed (carries the report)
            ListingError: If the final remote listing failed
            BaselineError: If the sync baseline could not be written
        """
        report = ExecutionReport(endpoint=self.remote.name, planned=len(plan))
        tracker = ProgressTracker(plan, self.progress_sink)
        if plan:
            self.log.info(f"Executing {len(plan)} action(s): {tracker.summary()}")

        with TimedOperation(self.log, f"sync of {len(plan)} change(s)", log_level="DEBUG") as timer:
            for action in plan:
                try:
                    report.bytes_transferred += self._apply(action)
                except Exception as e:
                    error = e if isinstance(e, CloudSyncError) else TransferError(action.kind, action.identity, e)
                    self.log.error(f"Failed to {action.kind.value} {action.identity}: {e}")
                    report.failures.append(ActionFailure(action.identity, action.kind, error))
                    if self.failure_policy == FailurePolicy.ABORT:
                        break
                    continue

                tracker.complete(action.kind)
                report.completed[action.kind] = report.completed.get(action.kind, 0) + 1

            if not report.failures:
                report.baseline_entries = self._commit()
        report.duration = timer.duration

        if report.failures:
            skipped = len(plan) - sum(report.completed.values()) - len(report.failures)
            if skipped:
                self.log.warning(f"Skipped {skipped} remaining action(s)")
            raise PlanAbortedError(self.remote.name, report.failures, report)

        self.log.info(f"Sync complete, baseline holds {report.baseline_entries} file(s)")
        return report

    def _apply(self, action: Action) -> int:
        """Perform one action; returns the number of bytes moved."""
        identity = action.identity
        self.log.debug(f"Processing {action.kind.value} for {identity}")

        if action.kind == ActionKind.UPLOAD:
            data = self.local.read_file(identity)
            self.remote.write_file(identity, data)
            return len(data)

        if action.kind == ActionKind.DOWNLOAD:
            data = self.remote.read_file(identity)
            self.local.write_file(identity, data)
            return len(data)

        if action.kind == ActionKind.DELETE_LOCAL:
            self.local.delete_file(identity)
            return 0

        if action.kind == ActionKind.DELETE_REMOTE:
            self.remote.delete_file(identity)
            return 0

        if action.kind == ActionKind.MERGE:
            return self._merge(action)

        raise ValueError(f"Unknown action kind: {action.kind}")

    def _merge(self, action: Action) -> int:
        identity = action.identity
        try:
            local_data = self.local.read_file(identity)
            remote_data = self.remote.read_file(identity)
        except Exception as e:
            raise TransferError(action.kind, identity, e) from e

        merged = merge_contents(local_data, remote_data, identity)

        try:
            self.local.write_file(identity, merged)
            self.remote.write_file(identity, merged)
        except Exception as e:
            raise TransferError(action.kind, identity, e) from e

        content_hash = FileHelper.md5_bytes(merged)
        now = datetime.now(timezone.utc)
        for record in (action.local, action.remote):
            self._mark_merged(record, content_hash, len(merged), now)

        self.log.warning(f"Conflict in {identity} written as merge artifact to both sides")
        return 2 * len(merged)

    @staticmethod
    def _mark_merged(record: FileRecord, content_hash: str, size: int, when: datetime):
        record.content_hash = content_hash
        record.size = size
        record.modified_at = when

    def _commit(self) -> int:
        """Replace the sync baseline with a fresh remote listing."""
        try:
            listing = self.remote.list_files()
        except UninitializedContainerError:
            self.log.info("Remote container still does not exist, recording an empty baseline")
            listing = []
        if self.is_ignored is not None:
            listing = [record for record in listing if not self.is_ignored(record.identity)]
        self.sync_baseline.write(listing)
        return sum(1 for record in listing if not record.is_directory)
