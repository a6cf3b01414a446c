"""Reconciliation classifier: turns two listings plus baselines into a plan."""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from .models import Action, ActionKind, FileRecord

logger = logging.getLogger(__name__)


def _matches(baseline, identity: str, content_hash: Optional[str]) -> bool:
    """True only if the baseline has a hash for ``identity`` equal to ``content_hash``."""
    stored = baseline.hash_of(identity)
    return stored is not None and content_hash is not None and stored == content_hash


def _index(records: Iterable[FileRecord], side: str) -> Dict[str, FileRecord]:
    indexed: Dict[str, FileRecord] = {}
    for record in records:
        if record.is_directory:
            continue
        if record.identity in indexed:
            raise ValueError(f"Duplicate identity in {side} listing: {record.identity}")
        indexed[record.identity] = record
    return indexed


def _classify_local_only(local: FileRecord, sync_baseline, local_baseline) -> Action:
    identity = local.identity
    if not sync_baseline.has(identity):
        logger.debug(f"New local file, uploading: {identity}")
        return Action(ActionKind.UPLOAD, local=local)

    if _matches(local_baseline, identity, sync_baseline.hash_of(identity)):
        logger.debug(f"File unchanged since last sync and gone remotely, deleting locally: {identity}")
        return Action(ActionKind.DELETE_LOCAL, local=local)

    logger.debug(f"Local file modified since last sync, re-uploading: {identity}")
    return Action(ActionKind.UPLOAD, local=local)


def _classify_remote_only(remote: FileRecord, sync_baseline) -> Action:
    identity = remote.identity
    if sync_baseline.has(identity):
        logger.debug(f"File deleted locally, removing from remote: {identity}")
        return Action(ActionKind.DELETE_REMOTE, remote=remote)

    logger.debug(f"New remote file, downloading: {identity}")
    return Action(ActionKind.DOWNLOAD, remote=remote)


def _classify_divergent(local: FileRecord, remote: FileRecord, sync_baseline, local_baseline) -> Action:
    identity = local.identity
    if _matches(sync_baseline, identity, remote.content_hash):
        logger.debug(f"Local changes detected, uploading: {identity}")
        return Action(ActionKind.UPLOAD, local=local, remote=remote)

    if _matches(local_baseline, identity, local.content_hash):
        logger.debug(f"Remote changes detected, downloading: {identity}")
        return Action(ActionKind.DOWNLOAD, local=local, remote=remote)

    logger.debug(f"Conflict detected, needs merge: {identity}")
    return Action(ActionKind.MERGE, local=local, remote=remote)


def classify(
    local_records: Iterable[FileRecord],
    remote_records: Iterable[FileRecord],
    sync_baseline,
    local_baseline,
) -> List[Action]:
    """Decide what has to happen to every file so both sides converge.

    Args:
        local_records: Current local listing
        remote_records: Current remote listing (empty if the container does not exist yet)
        sync_baseline: Remote state as of the last successful sync
            (anything with ``has``/``hash_of``)
        local_baseline: Local state as of the last successful sync

    Returns:
        The plan: local-side actions in identity order, followed by
        remote-only actions in identity order. Files whose hashes agree on
        both sides produce no action.
    """
    local = _index(local_records, "local")
    remote = _index(remote_records, "remote")

    # An empty remote with local content means a new or emptied container;
    # nothing is deleted locally in that case.
    if not remote and local:
        logger.info(f"Remote is empty, uploading all {len(local)} local file(s)")
        return [Action(ActionKind.UPLOAD, local=local[identity]) for identity in sorted(local)]

    plan: List[Action] = []
    for identity in sorted(local):
        local_record = local[identity]
        remote_record = remote.get(identity)
        if remote_record is None:
            plan.append(_classify_local_only(local_record, sync_baseline, local_baseline))
        elif local_record.content_hash != remote_record.content_hash:
            plan.append(_classify_divergent(local_record, remote_record, sync_baseline, local_baseline))

    for identity in sorted(remote.keys() - local.keys()):
        plan.append(_classify_remote_only(remote[identity], sync_baseline))

    return plan


def summarize(plan: Iterable[Action]) -> Dict[ActionKind, int]:
    """Count planned actions per kind (kinds with no actions are omitted)."""
    counts = Counter(action.kind for action in plan)
    return {kind: counts[kind] for kind in ActionKind if counts[kind]}
