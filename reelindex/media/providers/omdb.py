"""
OMDb (Open Movie Database) metadata provider.

Title lookups against https://www.omdbapi.com for movies and series.
Requires an API key: https://www.omdbapi.com/apikey.aspx
"""

import logging
import re
from typing import Any, Dict, Optional

import httpx

from reelindex.database.models import SOURCE_OMDB, MetadataRecord
from reelindex.exceptions import ProviderError
from reelindex.media.name_parser import KIND_SERIES, ParsedFilename
from reelindex.media.providers.base import MetadataProvider, PartialMetadata, clean_value
from reelindex.media.providers.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

_YEAR_PREFIX = re.compile(r"^\s*(\d{4})")


class OMDbProvider(MetadataProvider):
    """
    OMDb title search.

    A search with a year that finds nothing is retried once without the
    year, since release years in filenames are often off by one.
    """

    BASE_URL = "https://www.omdbapi.com/"

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: RateLimiter,
        api_key: str = "",
        timeout: float = 15.0,
    ):
        super().__init__(client, limiter, timeout)
        self.api_key = api_key

    @property
    def name(self) -> str:
        return SOURCE_OMDB

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def search(
        self,
        title: str,
        year: Optional[int] = None,
        kind: str = "movie",
    ) -> Optional[Dict[str, Any]]:
        """
        Search OMDb by exact title.

        Args:
            title: Title to match
            year: Optional release year
            kind: "movie" or "series"

        Returns:
            OMDb response dict, or None when not found, disabled or failing
        """
        if not self.enabled or not title:
            return None

        params: Dict[str, Any] = {
            "apikey": self.api_key,
            "t": title,
            "type": "series" if kind == KIND_SERIES else "movie",
        }
        if year:
            params["y"] = year

        try:
            data = await self._get_json(self.BASE_URL, params)
            if self._found(data):
                return data

            if year:
                params.pop("y")
                logger.debug(f"OMDb: no match for '{title}' ({year}), retrying without year")
                data = await self._get_json(self.BASE_URL, params)
                if self._found(data):
                    return data

            logger.debug(f"OMDb: no match for '{title}'")
            return None

        except ProviderError as e:
            logger.warning(f"OMDb search failed for '{title}': {e}")
            return None

    @staticmethod
    def _found(data: Any) -> bool:
        return isinstance(data, dict) and data.get("Response") == "True"

    async def lookup(self, parsed: ParsedFilename) -> Optional[PartialMetadata]:
        data = await self.search(parsed.title, parsed.year, parsed.kind)
        if not data:
            return None
        return self._parse_result(data, parsed)

    def _parse_result(self, data: Dict[str, Any], parsed: ParsedFilename) -> PartialMetadata:
        year = parsed.year
        year_match = _YEAR_PREFIX.match(str(data.get("Year") or ""))
        if year_match:
            year = int(year_match.group(1))

        imdb_id = clean_value(data.get("imdbID"))

        return PartialMetadata(
            provider=self.name,
            title=clean_value(data.get("Title")) or parsed.title,
            year=year,
            plot=clean_value(data.get("Plot")),
            rating=clean_value(data.get("imdbRating")),
            genre=clean_value(data.get("Genre")),
            director=clean_value(data.get("Director")),
            actors=clean_value(data.get("Actors")),
            runtime=clean_value(data.get("Runtime")),
            imdb_id=imdb_id,
            poster_url=clean_value(data.get("Poster")),
            poster_key=imdb_id or parsed.title,
            raw=data,
        )

    def merge(self, record: MetadataRecord, result: PartialMetadata) -> None:
        record.clean_title = result.title
        record.year = result.year
        record.plot = result.plot
        record.rating = result.rating
        record.genre = result.genre
        record.director = result.director
        record.actors = result.actors
        record.runtime = result.runtime
        record.imdb_id = result.imdb_id
        record.source = SOURCE_OMDB
