"""
Metadata resolution and background metadata scans.
"""

from reelindex.metadata.resolver import MetadataResolver, draft_record
from reelindex.metadata.scan_task import (
    MetadataScanOrchestrator,
    MetadataScanProgress,
    MetadataScanStart,
    MetadataScanStatus,
)

__all__ = [
    "MetadataResolver",
    "MetadataScanOrchestrator",
    "MetadataScanProgress",
    "MetadataScanStart",
    "MetadataScanStatus",
    "draft_record",
]
