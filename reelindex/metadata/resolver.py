"""
Metadata resolution with a persistent cache.

For one media file: parse the filename, run the provider chain, fetch
artwork and upsert the merged record keyed by absolute path. Fresh cached
records are returned without touching the network.
"""

import logging
import os
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence

from reelindex.database.models import SOURCE_FILENAME, MetadataRecord, utcnow
from reelindex.database.stores import MetadataStore
from reelindex.media.artwork import ThumbnailFetcher
from reelindex.media.name_parser import FilenameParser, ParsedFilename
from reelindex.media.providers.base import MetadataProvider, PartialMetadata

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS = timedelta(days=7)


def draft_record(file_path: str, parsed: ParsedFilename, now: datetime) -> MetadataRecord:
    """
    Filename-only record.

    Every column is set explicitly so an upsert over an older row clears
    fields this resolution did not produce.
    """
    return MetadataRecord(
        file_path=file_path,
        clean_title=parsed.title,
        year=parsed.year,
        kind=parsed.kind,
        poster_path=None,
        plot=None,
        rating=None,
        genre=None,
        director=None,
        actors=None,
        runtime=None,
        imdb_id=None,
        tvmaze_id=None,
        season=parsed.season,
        episode=parsed.episode,
        episode_title=None,
        source=SOURCE_FILENAME,
        fetched_at=now,
        updated_at=now,
    )


class MetadataResolver:
    """
    Resolve and cache metadata for media files.

    Providers run in the given order. Each sees the record as left by the
    ones before it, so later providers can act as fallbacks.
    """

    def __init__(
        self,
        store: MetadataStore,
        providers: Sequence[MetadataProvider],
        thumbnails: Optional[ThumbnailFetcher] = None,
        parser: Optional[FilenameParser] = None,
        freshness: timedelta = DEFAULT_FRESHNESS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.providers = list(providers)
        self.thumbnails = thumbnails
        self.parser = parser or FilenameParser()
        self.freshness = freshness
        self._clock = clock

    def is_fresh(self, record: MetadataRecord, now: Optional[datetime] = None) -> bool:
        """Whether record was fetched within the freshness window."""
        if record.fetched_at is None:
            return False
        return ((now or self._clock()) - record.fetched_at) < self.freshness

    def needs_refresh(self, record: Optional[MetadataRecord]) -> bool:
        """Missing or stale records need resolving."""
        return record is None or not self.is_fresh(record)

    async def get_cached(self, file_path: str) -> Optional[MetadataRecord]:
        """Cached record for file_path; never calls a provider."""
        return await self.store.get(file_path)

    async def get_cached_bulk(self, file_paths: Iterable[str]) -> dict[str, MetadataRecord]:
        """Cached records for the paths that have one."""
        return await self.store.get_many(file_paths)

    async def resolve(self, file_path: str) -> MetadataRecord:
        """
        Resolve metadata for one file.

        Args:
            file_path: Absolute path of the media file

        Returns:
            The cached record when fresh and matched by a provider,
            otherwise a newly resolved (and, if possible, saved) record.
            Never raises for provider, artwork or storage failures.
        """
        try:
            cached = await self.store.get(file_path)
        except Exception as e:
            logger.warning(f"Metadata cache read failed for {file_path}: {e}")
            cached = None

        if cached is not None and cached.has_provider_match and self.is_fresh(cached):
            return cached

        parsed = self.parser.parse(os.path.basename(file_path))
        record = draft_record(file_path, parsed, self._clock())

        for provider in self.providers:
            if not provider.is_applicable(parsed, record):
                continue
            try:
                result = await provider.lookup(parsed)
                if result is None:
                    continue
                provider.merge(record, result)
                await self._attach_poster(record, result)
            except Exception as e:
                logger.warning(f"Provider {provider.name} failed for {file_path}: {e}")

        logger.debug(f"Resolved {file_path} as '{record.clean_title}' from {record.source}")

        try:
            return await self.store.upsert(record)
        except Exception as e:
            logger.exception(f"Failed to save metadata for {file_path}: {e}")
            return record

    async def _attach_poster(self, record: MetadataRecord, result: PartialMetadata) -> None:
        if record.poster_path or not result.has_poster or self.thumbnails is None:
            return
        key = result.poster_key or record.clean_title or os.path.basename(record.file_path)
        record.poster_path = await self.thumbnails.fetch(result.poster_url, key)
