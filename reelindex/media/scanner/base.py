"""
Base scanner types.

Plain data passed between the directory walker, the indexer and the
service layer.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from reelindex.database.models import EntryKind, ScanLog, ScanLogStatus, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ScannedEntry:
    """A folder or media file found by the walker."""

    path: str
    name: str
    parent_path: str
    kind: EntryKind
    extension: Optional[str] = None
    size: int = 0
    modified_at: Optional[datetime] = None

    @property
    def is_folder(self) -> bool:
        return self.kind == EntryKind.FOLDER

    def to_row(self, library: str, indexed_at: datetime) -> Dict[str, Any]:
        """Column values for a FileIndexEntry insert."""
        return {
            "path": self.path,
            "name": self.name,
            "parent_path": self.parent_path,
            "file_type": self.kind.value,
            "extension": self.extension,
            "size": self.size,
            "modified_at": self.modified_at,
            "library": library,
            "indexed_at": indexed_at,
        }


@dataclass
class WalkResult:
    """Everything one walk produced."""

    entries: List[ScannedEntry] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    @property
    def folders(self) -> int:
        return sum(1 for e in self.entries if e.is_folder)

    @property
    def media_files(self) -> int:
        return len(self.entries) - self.folders


@dataclass
class IndexScanState:
    """Progress of one indexing run in this process."""

    id: int
    scan_path: str
    status: ScanLogStatus = ScanLogStatus.RUNNING
    triggered_by: str = "system"
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    files_found: int = 0
    files_indexed: int = 0
    errors: int = 0
    error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.status == ScanLogStatus.RUNNING

    @property
    def elapsed_time(self) -> timedelta:
        return (self.completed_at or utcnow()) - self.started_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "scan_path": self.scan_path,
            "triggered_by": self.triggered_by,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "files_found": self.files_found,
            "files_indexed": self.files_indexed,
            "errors": self.errors,
            "error": self.error,
        }

    @classmethod
    def from_log(cls, log: ScanLog) -> "IndexScanState":
        """Rebuild state from a persisted scan log."""
        error = None
        details = log.error_list
        if isinstance(details, dict):
            error = details.get("fatal")
        return cls(
            id=log.id,
            scan_path=log.scan_path or "",
            status=ScanLogStatus(log.status),
            triggered_by=log.triggered_by or "system",
            started_at=log.started_at,
            completed_at=log.completed_at,
            files_found=log.files_found,
            files_indexed=log.files_indexed,
            errors=log.errors,
            error=error,
        )


@dataclass
class ScanStartResult:
    """Outcome of a request to start an indexing run."""

    accepted: bool
    scan_id: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.accepted, "scan_id": self.scan_id, "error": self.error}
