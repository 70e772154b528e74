"""
File index builder.

Runs one background indexing job at a time: walk a root, then replace the
index rows under that root in a single transaction, recording the run in
scan_logs.
"""

import asyncio
import logging
import os
from typing import Iterable, Optional

from reelindex.config import LibraryConfig
from reelindex.database.models import ScanLogStatus, utcnow
from reelindex.database.stores import FileIndexStore
from reelindex.media.scanner.base import IndexScanState, ScanStartResult, WalkResult
from reelindex.media.scanner.file_scanner import FileScanner

logger = logging.getLogger(__name__)

UNKNOWN_LIBRARY = "unknown"


def library_for_path(path: str, libraries: Iterable[LibraryConfig]) -> str:
    """Name of the first library containing path, or "unknown"."""
    for library in libraries:
        lib_path = os.path.abspath(library.path).rstrip(os.sep)
        if path == lib_path or path.startswith(lib_path + os.sep):
            return library.name
    return UNKNOWN_LIBRARY


class FileIndexer:
    """
    Single-flight file indexer.

    Usage:
        indexer = FileIndexer(FileIndexStore(session_factory))
        result = await indexer.start_scan("/media/movies", libraries)
        await indexer.wait()
        status = await indexer.get_scan_status()
    """

    def __init__(
        self,
        store: FileIndexStore,
        scanner: Optional[FileScanner] = None,
        max_error_details: int = 100,
    ):
        self.store = store
        self.scanner = scanner or FileScanner()
        self.max_error_details = max_error_details

        self._state: Optional[IndexScanState] = None
        self._task: Optional[asyncio.Task] = None
        self._start_lock = asyncio.Lock()

    def is_running(self) -> bool:
        return self._state is not None and self._state.is_running

    async def start_scan(
        self,
        root: str,
        libraries: Optional[Iterable[LibraryConfig]] = None,
        triggered_by: str = "system",
    ) -> ScanStartResult:
        """
        Start indexing root in the background.

        Args:
            root: Directory to index
            libraries: Library definitions used to label entries
            triggered_by: Who asked for the scan

        Returns:
            ScanStartResult; rejected with the running scan's id when a
            scan is already in progress
        """
        async with self._start_lock:
            if self.is_running():
                logger.info(f"Index scan {self._state.id} already running, rejecting {root}")
                return ScanStartResult(
                    accepted=False,
                    scan_id=self._state.id,
                    error="Scan already in progress",
                )

            scan_root = os.path.abspath(root)
            log = await self.store.create_scan_log(scan_root, triggered_by)
            self._state = IndexScanState(
                id=log.id,
                scan_path=scan_root,
                triggered_by=triggered_by,
                started_at=log.started_at,
            )
            self._task = asyncio.create_task(
                self._run(self._state, list(libraries or [])),
                name=f"index-scan-{log.id}",
            )

        logger.info(f"Started index scan {log.id}: {scan_root} (by {triggered_by})")
        return ScanStartResult(accepted=True, scan_id=log.id)

    async def _run(self, state: IndexScanState, libraries: list[LibraryConfig]) -> None:
        try:
            walk: WalkResult = await asyncio.to_thread(self.scanner.walk, state.scan_path)
            state.files_found = len(walk.entries)
            state.errors = len(walk.errors)

            indexed_at = utcnow()
            rows = [
                entry.to_row(library_for_path(entry.path, libraries), indexed_at)
                for entry in walk.entries
            ]
            state.files_indexed = await self.store.replace_subtree(state.scan_path, rows)

            await self.store.finish_scan_log(
                state.id,
                files_found=state.files_found,
                files_indexed=state.files_indexed,
                errors=walk.errors,
                max_details=self.max_error_details,
            )
            state.completed_at = utcnow()
            state.status = ScanLogStatus.COMPLETED

            logger.info(
                f"Index scan {state.id} complete: {state.files_indexed} entries indexed, "
                f"{state.errors} errors in {state.elapsed_time}"
            )

        except Exception as e:
            logger.exception(f"Index scan {state.id} failed: {e}")
            state.error = str(e)
            try:
                await self.store.fail_scan_log(state.id, str(e), files_found=state.files_found)
            except Exception as log_error:
                logger.error(f"Could not record failure of scan {state.id}: {log_error}")
            state.completed_at = utcnow()
            state.status = ScanLogStatus.FAILED

    async def get_scan_status(self) -> Optional[IndexScanState]:
        """
        Current or last scan in this process, else the latest persisted
        scan log, else None.
        """
        if self._state is not None:
            return self._state

        log = await self.store.get_latest_scan_log()
        if log is None:
            return None
        return IndexScanState.from_log(log)

    async def wait(self) -> Optional[IndexScanState]:
        """Wait for the running scan, if any, to finish."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)
        return self._state
