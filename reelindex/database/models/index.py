"""
File Index Database Models

Defines FileIndexEntry and ScanLog.
The index is a derived view of the file system: a scan replaces every row
under its root and rows are never patched in place.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reelindex.database.models.base import Base, utcnow


class EntryKind(str, Enum):
    """Kind of an indexed file-system entry."""

    FOLDER = "folder"
    VIDEO = "video"
    AUDIO = "audio"


class ScanLogStatus(str, Enum):
    """
    Lifecycle of an indexing run.

    RUNNING moves to exactly one of COMPLETED or FAILED.
    """

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class FileIndexEntry(Base):
    """
    One folder, video or audio file under a scanned root.
    """

    __tablename__ = "file_index"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Absolute path is the fingerprint
    path: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    parent_path: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)

    # "folder", "video", "audio"
    file_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    extension: Mapped[str | None] = mapped_column(String(20), nullable=True)
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    modified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Library label, "unknown" when no configured library contains the path
    library: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    indexed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "parent_path": self.parent_path,
            "file_type": self.file_type,
            "extension": self.extension,
            "size": self.size,
            "modified_at": self.modified_at,
            "library": self.library,
            "indexed_at": self.indexed_at,
        }

    def __repr__(self) -> str:
        return f"<FileIndexEntry {self.file_type}: {self.path}>"


class ScanLog(Base):
    """
    One indexing run.

    error_details holds JSON: the first 100 per-entry errors of a completed
    run, or {"fatal": message} for a failed one.
    """

    __tablename__ = "scan_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ScanLogStatus.RUNNING.value, index=True
    )

    files_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    files_indexed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    errors: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    scan_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    triggered_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def error_list(self) -> Any:
        """Decoded error_details, or None."""
        if not self.error_details:
            return None
        return json.loads(self.error_details)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "files_found": self.files_found,
            "files_indexed": self.files_indexed,
            "errors": self.errors,
            "error_details": self.error_list,
            "scan_path": self.scan_path,
            "triggered_by": self.triggered_by,
        }

    def __repr__(self) -> str:
        return f"<ScanLog {self.id}: {self.status} {self.scan_path}>"
