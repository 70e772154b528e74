"""
ReelIndex database layer.
"""

from reelindex.database.connection import (
    SessionFactory,
    close_db,
    create_engine_and_factory,
    create_tables,
    get_session,
    get_session_factory,
    init_db,
    session_scope,
)
from reelindex.database.models import (
    Base,
    FileIndexEntry,
    MetadataRecord,
    ScanLog,
    ScanLogStatus,
)
from reelindex.database.stores import FileIndexStore, MetadataStore

__all__ = [
    "Base",
    "FileIndexEntry",
    "FileIndexStore",
    "MetadataRecord",
    "MetadataStore",
    "ScanLog",
    "ScanLogStatus",
    "SessionFactory",
    "close_db",
    "create_engine_and_factory",
    "create_tables",
    "get_session",
    "get_session_factory",
    "init_db",
    "session_scope",
]
