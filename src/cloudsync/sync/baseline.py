"""Baseline store: last known-synced hash and timestamp per file."""

import contextlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Set, Union

from dateutil.parser import isoparse

from ..errors import BaselineError
from ..utils.file_utils import FileHelper
from .models import FileRecord

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_iso(value: datetime) -> str:
    return _as_utc(value).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class BaselineEntry:
    """State of one file as of the last successful sync."""
    content_hash: str
    synced_at: datetime


class BaselineStore:
    """One baseline document on disk plus its in-memory map.

    The document looks like::

        {"lastSyncTimestamp": "...Z",
         "entries": {"notes/a.md": {"contentHash": "...", "syncedAtUTC": "...Z"}}}

    A missing or unparseable document reads as an empty baseline. ``write``
    and ``clear`` replace the whole document atomically.
    """

    def __init__(self, baseline_file: Union[str, Path]):
        """Initialize baseline store.

        Args:
            baseline_file: Path to the JSON baseline document
        """
        self.baseline_file = Path(baseline_file)
        self._entries: Dict[str, BaselineEntry] = {}
        self._last_sync: Optional[datetime] = None
        self._loaded = False

    def __repr__(self) -> str:
        return f"BaselineStore({str(self.baseline_file)!r})"

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._entries)

    def _ensure_loaded(self):
        if not self._loaded:
            self.read()

    def _parse(self, text: str):
        data = json.loads(text)
        if not isinstance(data, dict) or not isinstance(data.get("entries", {}), dict):
            raise ValueError("baseline document must be an object with an 'entries' object")

        entries: Dict[str, BaselineEntry] = {}
        for identity, raw in data.get("entries", {}).items():
            entries[identity] = BaselineEntry(
                content_hash=str(raw["contentHash"]),
                synced_at=_as_utc(isoparse(raw["syncedAtUTC"])),
            )

        last_sync = data.get("lastSyncTimestamp")
        return entries, (_as_utc(isoparse(last_sync)) if last_sync else None)

    def read(self) -> Dict[str, BaselineEntry]:
        """Load the document from disk and return a copy of its entries.

        Raises:
            BaselineError: If the document exists but cannot be read
        """
        try:
            text = self.baseline_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No baseline at {self.baseline_file}, starting empty")
            text = None
        except OSError as e:
            raise BaselineError("read", self.baseline_file, str(e)) from e

        entries: Dict[str, BaselineEntry] = {}
        last_sync = None
        if text is not None:
            try:
                entries, last_sync = self._parse(text)
                logger.debug(f"Loaded baseline {self.baseline_file.name} with {len(entries)} entries")
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring unreadable baseline {self.baseline_file}: {e}")
                entries, last_sync = {}, None

        self._entries = entries
        self._last_sync = last_sync
        self._loaded = True
        return dict(self._entries)

    def _write_document(self, entries: Dict[str, BaselineEntry], last_sync: Optional[datetime]):
        document = {
            "lastSyncTimestamp": _to_iso(last_sync) if last_sync else None,
            "entries": {
                identity: {
                    "contentHash": entry.content_hash,
                    "syncedAtUTC": _to_iso(entry.synced_at),
                }
                for identity, entry in sorted(entries.items())
            },
        }

        tmp_path = None
        try:
            payload = json.dumps(document, indent=2, ensure_ascii=False)
            self.baseline_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.baseline_file.name}.", suffix=".tmp", dir=self.baseline_file.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.baseline_file)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise BaselineError("write", self.baseline_file, str(e)) from e

        self._entries = entries
        self._last_sync = last_sync
        self._loaded = True

    def write(self, records: Iterable[FileRecord]):
        """Replace the whole baseline with the given records.

        The new document is written to a temporary file next to the target
        and moved into place; on failure the previous document and the
        in-memory map are left untouched.

        Args:
            records: Authoritative listing to remember (directories are skipped)

        Raises:
            BaselineError: If the document could not be written
        """
        entries = {
            record.identity: BaselineEntry(record.content_hash, _as_utc(record.modified_at))
            for record in records
            if not record.is_directory
        }
        self._write_document(entries, datetime.now(timezone.utc))
        logger.debug(f"Baseline {self.baseline_file.name} updated with {len(entries)} entries")

    def clear(self):
        """Forget every entry and the last sync time.

        Raises:
            BaselineError: If the document could not be written
        """
        self._write_document({}, None)
        logger.info(f"Baseline {self.baseline_file.name} cleared")

    @property
    def last_sync(self) -> Optional[datetime]:
        self._ensure_loaded()
        return self._last_sync

    def has(self, identity: str) -> bool:
        self._ensure_loaded()
        return identity in self._entries

    def entry(self, identity: str) -> Optional[BaselineEntry]:
        self._ensure_loaded()
        return self._entries.get(identity)

    def hash_of(self, identity: str) -> Optional[str]:
        entry = self.entry(identity)
        return entry.content_hash if entry else None

    def timestamp_of(self, identity: str) -> Optional[datetime]:
        entry = self.entry(identity)
        return entry.synced_at if entry else None

    def identities(self) -> Set[str]:
        self._ensure_loaded()
        return set(self._entries)


class BaselineView:
    """Read-only baseline over a plain ``identity -> hash`` mapping."""

    def __init__(self, hashes: Optional[Mapping[str, str]] = None):
        self._hashes = dict(hashes or {})

    def has(self, identity: str) -> bool:
        return identity in self._hashes

    def hash_of(self, identity: str) -> Optional[str]:
        return self._hashes.get(identity)


class BaselineRegistry:
    """Hands out one shared ``BaselineStore`` per document path.

    The registry is created by whoever drives a run and passed down to the
    components that need baselines.
    """

    HASH_CACHE_DOCUMENT = "hash-cache.json"

    def __init__(self, state_dir: Union[str, Path]):
        self.state_dir = Path(state_dir)
        self._stores: Dict[Path, BaselineStore] = {}

    def get(self, path: Union[str, Path]) -> BaselineStore:
        """Return the store for ``path``, creating it on first use."""
        key = Path(path).expanduser().resolve()
        store = self._stores.get(key)
        if store is None:
            store = BaselineStore(key)
            self._stores[key] = store
        return store

    @staticmethod
    def _slug(endpoint_name: str) -> str:
        return FileHelper.sanitize_filename(endpoint_name.strip().lower().replace(" ", "-"), "-")

    def sync_baseline(self, endpoint_name: str) -> BaselineStore:
        """Baseline remembering the remote state of one endpoint."""
        return self.get(self.state_dir / f"baseline-{self._slug(endpoint_name)}.json")

    def local_baseline(self, endpoint_name: str) -> BaselineStore:
        """Baseline remembering the local tree as of the last sync with one endpoint."""
        return self.get(self.state_dir / f"local-baseline-{self._slug(endpoint_name)}.json")

    def hash_cache(self) -> BaselineStore:
        """Local hashes keyed by modification time, shared by every endpoint."""
        return self.get(self.state_dir / self.HASH_CACHE_DOCUMENT)
