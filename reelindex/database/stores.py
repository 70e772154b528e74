"""
Persistence stores for the file index and metadata cache.

Thin async wrappers over SQLAlchemy sessions. Each public method runs in
its own transaction via session_scope, so callers never see half-applied
writes.
"""

import json
import logging
import os
from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import delete, func, insert, select, update

from reelindex.database.connection import SessionFactory, session_scope
from reelindex.database.models import (
    FileIndexEntry,
    MetadataRecord,
    ScanLog,
    ScanLogStatus,
    utcnow,
)

logger = logging.getLogger(__name__)

# SQLite caps bound parameters per statement
_IN_CLAUSE_CHUNK = 500
_INSERT_BATCH_SIZE = 1000


def _subtree_prefix(root: str) -> str:
    """Path prefix shared by every entry strictly below root."""
    stripped = root.rstrip("/\\") or root
    if stripped.endswith(os.sep):
        return stripped
    return stripped + os.sep


class MetadataStore:
    """Point reads and upserts of MetadataRecord keyed by absolute path."""

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    async def get(self, file_path: str) -> Optional[MetadataRecord]:
        async with session_scope(self._session_factory) as session:
            return await session.get(MetadataRecord, file_path)

    async def get_many(self, file_paths: Iterable[str]) -> dict[str, MetadataRecord]:
        """
        Fetch records for many paths.

        Returns:
            Mapping of path to record, only for paths that have one
        """
        paths = list(dict.fromkeys(file_paths))
        found: dict[str, MetadataRecord] = {}
        if not paths:
            return found

        async with session_scope(self._session_factory) as session:
            for i in range(0, len(paths), _IN_CLAUSE_CHUNK):
                chunk = paths[i:i + _IN_CLAUSE_CHUNK]
                result = await session.execute(
                    select(MetadataRecord).where(MetadataRecord.file_path.in_(chunk))
                )
                for record in result.scalars():
                    found[record.file_path] = record
        return found

    async def upsert(self, record: MetadataRecord) -> MetadataRecord:
        """Insert or replace the record for record.file_path."""
        async with session_scope(self._session_factory) as session:
            merged = await session.merge(record)
            await session.flush()
        return merged

    async def count(self) -> int:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(select(func.count()).select_from(MetadataRecord))
            return result.scalar() or 0


class FileIndexStore:
    """
    File index rows and the scan-log ledger.

    The index is only ever replaced a subtree at a time.
    """

    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    # -- Index ------------------------------------------------------------

    async def replace_subtree(self, root: str, rows: Sequence[dict[str, Any]]) -> int:
        """
        Delete every entry below root and insert rows, in one transaction.

        Args:
            root: Absolute directory path
            rows: Column dicts for FileIndexEntry

        Returns:
            Number of rows inserted
        """
        prefix = _subtree_prefix(root)
        inserted = 0

        async with session_scope(self._session_factory) as session:
            result = await session.execute(
                delete(FileIndexEntry).where(
                    FileIndexEntry.path.startswith(prefix, autoescape=True),
                    # SQLite LIKE ignores ASCII case
                    func.substr(FileIndexEntry.path, 1, len(prefix)) == prefix,
                )
            )
            logger.debug(f"Purged {result.rowcount} index entries under {root}")

            for i in range(0, len(rows), _INSERT_BATCH_SIZE):
                batch = list(rows[i:i + _INSERT_BATCH_SIZE])
                await session.execute(insert(FileIndexEntry), batch)
                inserted += len(batch)

        return inserted

    async def search(
        self,
        query: str,
        file_type: Optional[str] = None,
        library: Optional[str] = None,
        limit: int = 100,
    ) -> list[FileIndexEntry]:
        """Case-insensitive substring match on entry name, ordered by name."""
        stmt = select(FileIndexEntry).where(
            func.lower(FileIndexEntry.name).contains(query.lower(), autoescape=True)
        )
        if file_type:
            stmt = stmt.where(FileIndexEntry.file_type == file_type)
        if library:
            stmt = stmt.where(FileIndexEntry.library == library)
        stmt = stmt.order_by(FileIndexEntry.name).limit(limit)

        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def list_children(self, directory: str) -> list[FileIndexEntry]:
        """Direct children of directory, folders first then by name."""
        folders_first = (FileIndexEntry.file_type != "folder")
        stmt = (
            select(FileIndexEntry)
            .where(FileIndexEntry.parent_path == directory)
            .order_by(folders_first, func.lower(FileIndexEntry.name))
        )
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def count_children(self, directory: str) -> int:
        stmt = (
            select(func.count())
            .select_from(FileIndexEntry)
            .where(FileIndexEntry.parent_path == directory)
        )
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def count_entries(self) -> int:
        async with session_scope(self._session_factory) as session:
            result = await session.execute(select(func.count()).select_from(FileIndexEntry))
            return result.scalar() or 0

    async def stats_by_type(self) -> dict[str, dict[str, int]]:
        """Count and total size per entry kind."""
        stmt = select(
            FileIndexEntry.file_type,
            func.count(),
            func.coalesce(func.sum(FileIndexEntry.size), 0),
        ).group_by(FileIndexEntry.file_type)

        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return {
                file_type: {"count": count, "total_size": int(total_size)}
                for file_type, count, total_size in result.all()
            }

    # -- Scan logs --------------------------------------------------------

    async def create_scan_log(self, scan_path: str, triggered_by: str = "system") -> ScanLog:
        log = ScanLog(
            started_at=utcnow(),
            status=ScanLogStatus.RUNNING.value,
            scan_path=scan_path,
            triggered_by=triggered_by,
        )
        async with session_scope(self._session_factory) as session:
            session.add(log)
            await session.flush()
        return log

    async def finish_scan_log(
        self,
        scan_id: int,
        files_found: int,
        files_indexed: int,
        errors: list[dict[str, str]],
        max_details: int = 100,
    ) -> None:
        """Mark a scan completed with its counts and the first errors."""
        details = json.dumps(errors[:max_details]) if errors else None
        await self._update_scan_log(
            scan_id,
            status=ScanLogStatus.COMPLETED.value,
            completed_at=utcnow(),
            files_found=files_found,
            files_indexed=files_indexed,
            errors=len(errors),
            error_details=details,
        )

    async def fail_scan_log(self, scan_id: int, message: str, files_found: int = 0) -> None:
        """Mark a scan failed with the fatal message."""
        await self._update_scan_log(
            scan_id,
            status=ScanLogStatus.FAILED.value,
            completed_at=utcnow(),
            files_found=files_found,
            error_details=json.dumps({"fatal": message}),
        )

    async def _update_scan_log(self, scan_id: int, **values: Any) -> None:
        async with session_scope(self._session_factory) as session:
            await session.execute(
                update(ScanLog).where(ScanLog.id == scan_id).values(**values)
            )

    async def get_scan_log(self, scan_id: int) -> Optional[ScanLog]:
        async with session_scope(self._session_factory) as session:
            return await session.get(ScanLog, scan_id)

    async def get_latest_scan_log(self) -> Optional[ScanLog]:
        stmt = select(ScanLog).order_by(ScanLog.id.desc()).limit(1)
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_last_completed_scan(self) -> Optional[ScanLog]:
        stmt = (
            select(ScanLog)
            .where(ScanLog.status == ScanLogStatus.COMPLETED.value)
            .order_by(ScanLog.completed_at.desc(), ScanLog.id.desc())
            .limit(1)
        )
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_scan_logs(self, limit: int = 50) -> list[ScanLog]:
        """Most recent scan logs, newest first."""
        stmt = select(ScanLog).order_by(ScanLog.id.desc()).limit(limit)
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return list(result.scalars())

    async def count_scan_logs(self, status: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(ScanLog)
        if status:
            stmt = stmt.where(ScanLog.status == status)
        async with session_scope(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalar() or 0
