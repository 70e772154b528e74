"""
Mock API Responses

Pre-defined mock responses for external service testing.
"""

from .omdb_responses import (
    OMDB_MOVIE,
    OMDB_NOT_FOUND,
    OMDB_SERIES,
)
from .tvmaze_responses import (
    TVMAZE_EPISODE,
    TVMAZE_SHOW,
)
from .wikidata_responses import (
    WIKIDATA_EMPTY,
    WIKIDATA_FILM,
)

__all__ = [
    "OMDB_MOVIE",
    "OMDB_NOT_FOUND",
    "OMDB_SERIES",
    "TVMAZE_EPISODE",
    "TVMAZE_SHOW",
    "WIKIDATA_EMPTY",
    "WIKIDATA_FILM",
]
