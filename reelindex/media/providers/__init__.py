"""
Metadata providers for media enrichment.

Supports:
- OMDb (movies and series, API key required)
- TVmaze (series episodes)
- Wikidata (film fallback via SPARQL)
"""

from reelindex.media.providers.base import MetadataProvider, PartialMetadata
from reelindex.media.providers.omdb import OMDbProvider
from reelindex.media.providers.rate_limiter import (
    RateLimiter,
    RateLimiterRegistry,
    RateLimiterState,
)
from reelindex.media.providers.tvmaze import EpisodicResult, TVmazeProvider
from reelindex.media.providers.wikidata import LinkedDataResult, WikidataProvider

__all__ = [
    "MetadataProvider",
    "PartialMetadata",
    "OMDbProvider",
    "TVmazeProvider",
    "EpisodicResult",
    "WikidataProvider",
    "LinkedDataResult",
    "RateLimiter",
    "RateLimiterRegistry",
    "RateLimiterState",
]
