"""
Wikidata metadata provider.

Fallback lookup of films by English label through the public SPARQL
endpoint. Only consulted when no other provider matched.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from reelindex.database.models import SOURCE_WIKIDATA, MetadataRecord
from reelindex.exceptions import ProviderError
from reelindex.media.name_parser import ParsedFilename
from reelindex.media.providers.base import MetadataProvider, PartialMetadata, clean_value

logger = logging.getLogger(__name__)


@dataclass
class LinkedDataResult:
    """A Wikidata film match."""

    title: Optional[str] = None
    image: Optional[str] = None
    external_id: Optional[str] = None  # IMDb id (P345)
    item: Optional[str] = None


def escape_sparql_literal(value: str) -> str:
    """Escape a value for use inside a double-quoted SPARQL string."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def build_film_query(title: str, year: Optional[int] = None) -> str:
    """
    SPARQL for one film (Q11424 or a subclass) labelled title in English.

    With a year, films published that year sort first.
    """
    label = escape_sparql_literal(title)
    year_clauses = ""
    order = ""
    if year:
        year_clauses = (
            "  OPTIONAL { ?item wdt:P577 ?published. }\n"
            f"  BIND(IF(BOUND(?published) && YEAR(?published) = {int(year)}, 1, 0) AS ?yearMatch)\n"
        )
        order = "ORDER BY DESC(?yearMatch)\n"

    return (
        "SELECT ?item ?itemLabel ?image ?imdbId WHERE {\n"
        "  ?item wdt:P31/wdt:P279* wd:Q11424.\n"
        f'  ?item rdfs:label "{label}"@en.\n'
        "  OPTIONAL { ?item wdt:P18 ?image. }\n"
        "  OPTIONAL { ?item wdt:P345 ?imdbId. }\n"
        f"{year_clauses}"
        '  SERVICE wikibase:label { bd:serviceParam wikibase:language "en". }\n'
        "}\n"
        f"{order}"
        "LIMIT 1"
    )


class WikidataProvider(MetadataProvider):
    """Wikidata SPARQL film lookup."""

    SPARQL_URL = "https://query.wikidata.org/sparql"

    @property
    def name(self) -> str:
        return SOURCE_WIKIDATA

    def is_applicable(self, parsed: ParsedFilename, record: MetadataRecord) -> bool:
        return not record.has_provider_match

    async def search(self, title: str, year: Optional[int] = None) -> Optional[LinkedDataResult]:
        """
        Find a film by exact English label.

        Returns:
            LinkedDataResult, or None when nothing matched or Wikidata failed
        """
        if not title:
            return None

        try:
            data = await self._get_json(
                self.SPARQL_URL,
                {"query": build_film_query(title, year), "format": "json"},
            )
        except ProviderError as e:
            logger.warning(f"Wikidata search failed for '{title}': {e}")
            return None

        if not isinstance(data, dict):
            return None
        bindings = (data.get("results") or {}).get("bindings") or []
        if not bindings:
            return None

        row: Dict[str, Any] = bindings[0]

        def _value(key: str) -> Optional[str]:
            return clean_value((row.get(key) or {}).get("value"))

        return LinkedDataResult(
            title=_value("itemLabel"),
            image=_value("image"),
            external_id=_value("imdbId"),
            item=_value("item"),
        )

    async def lookup(self, parsed: ParsedFilename) -> Optional[PartialMetadata]:
        result = await self.search(parsed.title, parsed.year)
        if result is None:
            return None

        return PartialMetadata(
            provider=self.name,
            title=result.title,
            imdb_id=result.external_id,
            poster_url=result.image,
            poster_key=parsed.title,
            raw={"item": result.item},
        )

    def merge(self, record: MetadataRecord, result: PartialMetadata) -> None:
        if result.title:
            record.clean_title = result.title
        if result.imdb_id:
            record.imdb_id = result.imdb_id
        record.source = SOURCE_WIKIDATA
