"""
Media scanning framework.
"""

from reelindex.media.scanner.base import (
    IndexScanState,
    ScannedEntry,
    ScanStartResult,
    WalkResult,
)
from reelindex.media.scanner.file_scanner import FileScanner
from reelindex.media.scanner.indexer import FileIndexer, library_for_path

__all__ = [
    "FileIndexer",
    "FileScanner",
    "IndexScanState",
    "ScannedEntry",
    "ScanStartResult",
    "WalkResult",
    "library_for_path",
]
