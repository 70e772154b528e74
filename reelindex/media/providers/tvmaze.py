"""
TVmaze metadata provider.

Show and episode lookups against https://api.tvmaze.com (free, no API key).
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from reelindex.database.models import (
    SOURCE_FILENAME,
    SOURCE_OMDB,
    SOURCE_OMDB_TVMAZE,
    SOURCE_TVMAZE,
    MetadataRecord,
)
from reelindex.exceptions import ProviderError
from reelindex.media.name_parser import KIND_SERIES, ParsedFilename
from reelindex.media.providers.base import MetadataProvider, PartialMetadata, clean_value

logger = logging.getLogger(__name__)

_HTML_TAG = re.compile(r"<[^>]*>")


def strip_html(text: Optional[str]) -> Optional[str]:
    """Drop tags from a TVmaze summary and unescape entities."""
    if not text:
        return None
    stripped = html.unescape(_HTML_TAG.sub("", text)).strip()
    return stripped or None


@dataclass
class EpisodicResult:
    """A TVmaze show and, when requested and found, one of its episodes."""

    show: Dict[str, Any]
    episode: Optional[Dict[str, Any]] = None

    @property
    def show_id(self) -> Optional[int]:
        return self.show.get("id")

    @property
    def show_image(self) -> Optional[str]:
        image = self.show.get("image") or {}
        return image.get("medium") or image.get("original")


class TVmazeProvider(MetadataProvider):
    """
    TVmaze single-show search plus episode-by-number lookup.

    Only used for files parsed as series episodes.
    """

    BASE_URL = "https://api.tvmaze.com"

    @property
    def name(self) -> str:
        return SOURCE_TVMAZE

    def is_applicable(self, parsed: ParsedFilename, record: MetadataRecord) -> bool:
        return parsed.kind == KIND_SERIES and parsed.is_episode

    async def search(
        self,
        title: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> Optional[EpisodicResult]:
        """
        Find a show by name and optionally one episode.

        Args:
            title: Show name
            season: Season number
            episode: Episode number within the season

        Returns:
            EpisodicResult, or None when no show matched or TVmaze failed
        """
        if not title:
            return None

        try:
            show = await self._get_json(
                f"{self.BASE_URL}/singlesearch/shows", {"q": title}
            )
        except ProviderError as e:
            if e.status_code == 404:
                logger.debug(f"TVmaze: show not found: '{title}'")
            else:
                logger.warning(f"TVmaze search failed for '{title}': {e}")
            return None

        if not isinstance(show, dict) or show.get("id") is None:
            return None

        result = EpisodicResult(show=show)

        if season is not None and episode is not None:
            try:
                result.episode = await self._get_json(
                    f"{self.BASE_URL}/shows/{show['id']}/episodebynumber",
                    {"season": season, "number": episode},
                )
            except ProviderError as e:
                if e.status_code == 404:
                    logger.debug(
                        f"TVmaze: episode not found: {show.get('name')} "
                        f"S{season:02d}E{episode:02d}"
                    )
                else:
                    logger.warning(f"TVmaze episode lookup failed for '{title}': {e}")

        return result

    async def lookup(self, parsed: ParsedFilename) -> Optional[PartialMetadata]:
        result = await self.search(parsed.title, parsed.season, parsed.episode)
        if result is None:
            return None

        partial = PartialMetadata(
            provider=self.name,
            title=clean_value(result.show.get("name")),
            tvmaze_id=result.show_id,
            poster_url=result.show_image,
            poster_key=f"tvmaze_{result.show_id}",
            raw={"show": result.show, "episode": result.episode},
        )

        if isinstance(result.episode, dict):
            partial.episode_found = True
            partial.episode_title = clean_value(result.episode.get("name"))
            partial.plot = strip_html(result.episode.get("summary"))

        return partial

    def merge(self, record: MetadataRecord, result: PartialMetadata) -> None:
        record.tvmaze_id = result.tvmaze_id
        if result.title and (not record.clean_title or record.source == SOURCE_FILENAME):
            record.clean_title = result.title

        if result.episode_found:
            record.episode_title = result.episode_title
            if not record.plot:
                record.plot = result.plot
            record.source = SOURCE_OMDB_TVMAZE if record.source == SOURCE_OMDB else SOURCE_TVMAZE
