"""
ReelIndex - Media Library Indexing and Metadata Resolution

Walks media folders into a browsable file index and enriches every
playable file with titles, artwork and descriptive attributes:
- Filename heuristics for titles, years and episode numbers
- OMDb, TVmaze and Wikidata lookups under per-provider rate limits
- Persistent metadata cache with a freshness window
- Single-flight background scans with pollable progress
"""

__version__ = "1.0.0"
__author__ = "ReelIndex Contributors"
__license__ = "MIT"

from reelindex.config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
