"""
ReelIndex Database Models

SQLAlchemy models for:
- The file index and its scan logs
- The per-file metadata cache
"""

from reelindex.database.models.base import Base, utcnow
from reelindex.database.models.index import (
    EntryKind,
    FileIndexEntry,
    ScanLog,
    ScanLogStatus,
)
from reelindex.database.models.metadata import (
    SOURCE_FILENAME,
    SOURCE_OMDB,
    SOURCE_OMDB_TVMAZE,
    SOURCE_TVMAZE,
    SOURCE_WIKIDATA,
    MetadataRecord,
)

__all__ = [
    "Base",
    "utcnow",
    # Index
    "EntryKind",
    "FileIndexEntry",
    "ScanLog",
    "ScanLogStatus",
    # Metadata
    "MetadataRecord",
    "SOURCE_FILENAME",
    "SOURCE_OMDB",
    "SOURCE_OMDB_TVMAZE",
    "SOURCE_TVMAZE",
    "SOURCE_WIKIDATA",
]
