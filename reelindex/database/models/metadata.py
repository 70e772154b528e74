"""
Metadata Cache Database Model

One resolved metadata record per media file path.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reelindex.database.models.base import Base

# Source tags, in the order providers can contribute
SOURCE_FILENAME = "filename"
SOURCE_OMDB = "omdb"
SOURCE_OMDB_TVMAZE = "omdb+tvmaze"
SOURCE_TVMAZE = "tvmaze"
SOURCE_WIKIDATA = "wikidata"


class MetadataRecord(Base):
    """
    Resolved metadata for one media file.

    A record with source "filename" carries only what the filename
    heuristics produced: no provider matched.
    """

    __tablename__ = "media_metadata"

    file_path: Mapped[str] = mapped_column(Text, primary_key=True)

    clean_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # "movie" or "series"
    kind: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Site-relative path of the downloaded poster
    poster_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    plot: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[str | None] = mapped_column(String(20), nullable=True)
    genre: Mapped[str | None] = mapped_column(Text, nullable=True)
    director: Mapped[str | None] = mapped_column(Text, nullable=True)
    actors: Mapped[str | None] = mapped_column(Text, nullable=True)
    runtime: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # External IDs
    imdb_id: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    tvmaze_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Episodes
    season: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episode: Mapped[int | None] = mapped_column(Integer, nullable=True)
    episode_title: Mapped[str | None] = mapped_column(Text, nullable=True)

    source: Mapped[str] = mapped_column(String(20), nullable=False, default=SOURCE_FILENAME)

    fetched_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def actor_list(self) -> list[str]:
        """Actors split from the comma-separated column."""
        if not self.actors:
            return []
        return [name.strip() for name in self.actors.split(",") if name.strip()]

    @property
    def has_provider_match(self) -> bool:
        return self.source != SOURCE_FILENAME

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "clean_title": self.clean_title,
            "year": self.year,
            "kind": self.kind,
            "poster_path": self.poster_path,
            "plot": self.plot,
            "rating": self.rating,
            "genre": self.genre,
            "director": self.director,
            "actors": self.actors,
            "runtime": self.runtime,
            "imdb_id": self.imdb_id,
            "tvmaze_id": self.tvmaze_id,
            "season": self.season,
            "episode": self.episode,
            "episode_title": self.episode_title,
            "source": self.source,
            "fetched_at": self.fetched_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<MetadataRecord {self.source}: {self.clean_title} ({self.file_path})>"
