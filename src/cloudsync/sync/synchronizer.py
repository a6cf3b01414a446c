"""One sync run between the local tree and one remote endpoint."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from ..errors import UninitializedContainerError
from ..utils.logging import TimedOperation
from .classifier import classify, summarize
from .executor import ExecutionReport, PlanExecutor
from .models import Action, FailurePolicy, FileRecord
from .progress import ProgressSink

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    endpoint: str
    plan: List[Action] = field(default_factory=list)
    report: Optional[ExecutionReport] = None
    dry_run: bool = False


class Synchronizer:
    """Lists both sides, classifies, and executes the plan for one remote.

    Both baselines belong to this endpoint and are read fresh at the start
    of every run. After the plan committed the sync baseline, the local
    baseline is rewritten from a fresh local listing.

    Paths the local side ignores are dropped from the remote listing as
    well, so an ignored remote object is neither downloaded nor deleted.
    """

    def __init__(
        self,
        local,
        remote,
        sync_baseline,
        local_baseline,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        progress_sink: Optional[ProgressSink] = None,
        is_ignored: Optional[Callable[[str], bool]] = None,
    ):
        self.local = local
        self.remote = remote
        self.sync_baseline = sync_baseline
        self.local_baseline = local_baseline
        self.failure_policy = failure_policy
        self.progress_sink = progress_sink
        self.is_ignored = is_ignored or getattr(local, "is_ignored", None)

    def _list_remote(self) -> List[FileRecord]:
        try:
            records = self.remote.list_files()
        except UninitializedContainerError as e:
            logger.info(f"{self.remote.name}: {e}; treating remote as empty")
            return []

        if self.is_ignored is None:
            return records
        kept = [record for record in records if not self.is_ignored(record.identity)]
        if len(kept) != len(records):
            logger.debug(f"{self.remote.name}: skipping {len(records) - len(kept)} ignored object(s)")
        return kept

    def snapshot(self) -> Tuple[List[FileRecord], List[FileRecord]]:
        """List local and remote files concurrently.

        Raises:
            ListingError: If either side could not be listed
            BaselineError: If a baseline exists but cannot be read
        """
        self.sync_baseline.read()
        self.local_baseline.read()

        with TimedOperation(logger, f"listing local and {self.remote.name}", log_level="DEBUG"):
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="listing") as pool:
                local_future = pool.submit(self.local.list_files)
                remote_future = pool.submit(self._list_remote)
                return local_future.result(), remote_future.result()

    def plan(self) -> List[Action]:
        """Classify the current state without changing anything."""
        local_records, remote_records = self.snapshot()
        plan = classify(local_records, remote_records, self.sync_baseline, self.local_baseline)
        if plan:
            counts = ", ".join(f"{kind.value}: {count}" for kind, count in summarize(plan).items())
            logger.info(f"{self.remote.name}: {len(plan)} change(s) ({counts})")
        else:
            logger.info(f"{self.remote.name}: up to date")
        return plan

    def run(self, dry_run: bool = False) -> SyncResult:
        """Plan and, unless ``dry_run``, execute a sync.

        Raises:
            PlanAbortedError: If any action failed
            BaselineError: If a baseline could not be written
        """
        plan = self.plan()
        result = SyncResult(endpoint=self.remote.name, plan=plan, dry_run=dry_run)
        if dry_run:
            return result

        executor = PlanExecutor(
            self.local,
            self.remote,
            self.sync_baseline,
            progress_sink=self.progress_sink,
            failure_policy=self.failure_policy,
            is_ignored=self.is_ignored,
        )
        result.report = executor.execute(plan)

        self.local_baseline.write(self.local.list_files())
        logger.debug(f"{self.remote.name}: local baseline updated")
        return result
