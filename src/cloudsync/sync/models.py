"""Records, actions and progress events exchanged by the sync engine."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ActionKind(str, Enum):
    """What has to happen to one file to bring both sides together."""
    UPLOAD = "upload"
    DOWNLOAD = "download"
    DELETE_LOCAL = "delete_local"
    DELETE_REMOTE = "delete_remote"
    MERGE = "merge"


@dataclass
class FileRecord:
    """One file observed on either side during a listing.

    ``identity`` is the POSIX path relative to the sync root and is the key
    used to match files across local, remote and baseline.
    """
    identity: str
    content_hash: str
    size: int = 0
    modified_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    local_path: Optional[str] = None
    remote_path: Optional[str] = None
    is_directory: bool = False


@dataclass(frozen=True)
class Action:
    """A single planned operation; at least one side is present."""
    kind: ActionKind
    local: Optional[FileRecord] = None
    remote: Optional[FileRecord] = None

    def __post_init__(self):
        if self.local is None and self.remote is None:
            raise ValueError("An action needs at least one file record")
        if self.kind == ActionKind.MERGE and (self.local is None or self.remote is None):
            raise ValueError("A merge action needs both file records")

    @property
    def identity(self) -> str:
        record = self.local if self.local is not None else self.remote
        return record.identity


@dataclass(frozen=True)
class ProgressEvent:
    kind: ActionKind
    completed: int
    total: int


class FailurePolicy(str, Enum):
    """What the executor does after an action fails.

    Under both policies the sync baseline is left untouched when any
    action failed.
    """
    ABORT = "abort"  # stop at the first failure
    CONTINUE = "continue"  # finish the plan, report every failure
