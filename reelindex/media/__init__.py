"""
ReelIndex Media Module

Filename parsing, metadata providers, artwork downloads and file-system
scanning.
"""

from reelindex.media.name_parser import FilenameParser, ParsedFilename, parse_filename
from reelindex.media.providers import (
    MetadataProvider,
    OMDbProvider,
    PartialMetadata,
    RateLimiter,
    TVmazeProvider,
    WikidataProvider,
)
from reelindex.media.artwork import ThumbnailFetcher
from reelindex.media.scanner import FileIndexer, FileScanner

__all__ = [
    # Parsing
    "FilenameParser",
    "ParsedFilename",
    "parse_filename",
    # Providers
    "MetadataProvider",
    "PartialMetadata",
    "OMDbProvider",
    "TVmazeProvider",
    "WikidataProvider",
    "RateLimiter",
    # Artwork
    "ThumbnailFetcher",
    # Scanning
    "FileIndexer",
    "FileScanner",
]
