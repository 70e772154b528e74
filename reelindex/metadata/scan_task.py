"""
Background metadata scan.

Walks a directory tree and resolves metadata for every media file whose
cache entry is missing or stale, one file at a time. Only one background
scan runs per orchestrator; its progress is polled, not pushed.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from reelindex.config import DEFAULT_METADATA_EXTENSIONS
from reelindex.database.models import utcnow
from reelindex.media.scanner.file_scanner import FileScanner
from reelindex.metadata.resolver import MetadataResolver

logger = logging.getLogger(__name__)


class MetadataScanStatus(str, Enum):
    """Status of the metadata scan."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class MetadataScanProgress:
    """Progress snapshot of a metadata scan."""

    status: MetadataScanStatus = MetadataScanStatus.IDLE
    scanned: int = 0
    total: int = 0
    current: str = ""
    root: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def percent_complete(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.scanned / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "scanned": self.scanned,
            "total": self.total,
            "current": self.current,
            "root": self.root,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "error": self.error,
        }


@dataclass
class MetadataScanStart:
    """Outcome of a request to start a background metadata scan."""

    accepted: bool
    progress: MetadataScanProgress = field(default_factory=MetadataScanProgress)
    message: Optional[str] = None

    @property
    def already_running(self) -> bool:
        return not self.accepted


class MetadataScanOrchestrator:
    """
    Single-flight metadata scan over a directory tree.

    Usage:
        orchestrator = MetadataScanOrchestrator(resolver)
        orchestrator.start_background_scan("/media/movies")
        progress = orchestrator.get_scan_progress()
    """

    def __init__(
        self,
        resolver: MetadataResolver,
        scanner: Optional[FileScanner] = None,
        extensions: Optional[Iterable[str]] = None,
    ):
        self.resolver = resolver
        self.scanner = scanner or FileScanner()
        self.extensions = list(extensions or DEFAULT_METADATA_EXTENSIONS)

        self._progress = MetadataScanProgress()
        self._task: Optional[asyncio.Task] = None

    def is_running(self) -> bool:
        return self._progress.status == MetadataScanStatus.RUNNING

    def start_background_scan(self, root: str) -> MetadataScanStart:
        """
        Start scanning root in the background.

        Returns:
            MetadataScanStart with a progress snapshot; not accepted when a
            scan is already running
        """
        if self.is_running():
            return MetadataScanStart(
                accepted=False,
                progress=self.get_scan_progress(),
                message="Scan already in progress",
            )

        scan_root = os.path.abspath(root)
        self._progress = MetadataScanProgress(
            status=MetadataScanStatus.RUNNING,
            root=scan_root,
            started_at=utcnow(),
        )
        self._task = asyncio.create_task(
            self._run_background(self._progress),
            name="metadata-scan",
        )

        logger.info(f"Started background metadata scan: {scan_root}")
        return MetadataScanStart(accepted=True, progress=self.get_scan_progress())

    async def _run_background(self, progress: MetadataScanProgress) -> None:
        try:
            await self._scan(progress.root, progress)
            progress.status = MetadataScanStatus.COMPLETED
            logger.info(
                f"Metadata scan complete: {progress.scanned}/{progress.total} files"
            )
        except Exception as e:
            logger.exception(f"Metadata scan failed: {e}")
            progress.error = str(e)
            progress.status = MetadataScanStatus.ERROR
        finally:
            progress.completed_at = utcnow()

    async def scan_directory(self, root: str) -> tuple[int, int]:
        """
        Scan root and wait for it to finish.

        Does not touch the background scan's progress.

        Returns:
            (scanned, total)
        """
        progress = MetadataScanProgress(
            status=MetadataScanStatus.RUNNING,
            root=os.path.abspath(root),
            started_at=utcnow(),
        )
        await self._scan(progress.root, progress)
        return progress.scanned, progress.total

    async def _scan(self, root: str, progress: MetadataScanProgress) -> None:
        files = await asyncio.to_thread(self.scanner.list_files, root, self.extensions)
        progress.total = len(files)
        logger.info(f"Found {progress.total} media files under {root}")

        for path in files:
            cached = await self.resolver.get_cached(path)
            if self.resolver.needs_refresh(cached):
                await self.resolver.resolve(path)

            progress.scanned += 1
            progress.current = os.path.basename(path)

    def get_scan_progress(self) -> MetadataScanProgress:
        """Copy of the current progress; status "idle" if never run."""
        return replace(self._progress)

    async def wait(self) -> MetadataScanProgress:
        """Wait for the running background scan, if any, to finish."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)
        return self.get_scan_progress()
