"""
ReelIndex service layer.
"""

from reelindex.services.library_service import LibraryService, browse_item, build_providers

__all__ = [
    "LibraryService",
    "browse_item",
    "build_providers",
]
