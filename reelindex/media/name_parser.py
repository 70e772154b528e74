"""
Filename heuristics for media titles.

Turns release-style filenames such as "Show.Name.S01E02.720p.mkv" or
"Movie Name (2023).mp4" into a clean title plus year/season/episode.
Pure string work: no file system or network access.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from reelindex.config import DEFAULT_AUDIO_EXTENSIONS, DEFAULT_VIDEO_EXTENSIONS

# First recorded motion picture
EARLIEST_FILM_YEAR = 1888

KIND_MOVIE = "movie"
KIND_SERIES = "series"

# "Show Name S01E02" / "Show.Name.s1e2"
_EPISODE_PATTERN = re.compile(r"^(.+?)[\.\s_-]+s(\d{1,2})e(\d{1,2})", re.IGNORECASE)
# "Show Name 1x02"
_EPISODE_ALT_PATTERN = re.compile(r"^(.+?)[\.\s_-]+(\d{1,2})x(\d{1,2})", re.IGNORECASE)

_RELEASE_TAGS = (
    r"720p|1080p|2160p|4k|uhd|bluray|brrip|webrip|web-dl|hdtv|dvdrip"
    r"|x264|x265|hevc|h\.?264|h\.?265|aac|ac3|dts|atmos|proper|repack"
    r"|extended|unrated|directors[\.\s_]?cut|remastered|remux|hdr|10bit"
)
# Everything from the first release tag to the end of the name
_RELEASE_TAG_PATTERN = re.compile(
    rf"[\.\s_\-\[\(]*(?<![a-z0-9])(?:{_RELEASE_TAGS})(?![a-z0-9]).*$",
    re.IGNORECASE,
)

_BRACKETED_YEAR_PATTERN = re.compile(r"[\(\[](\d{4})[\)\]]")
_TRAILING_YEAR_PATTERN = re.compile(r"[\.\s_-]+(\d{4})[\.\s_-]*$")


@dataclass
class ParsedFilename:
    """What the filename alone says about a media file."""

    title: str
    year: Optional[int] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    kind: str = KIND_MOVIE
    original_filename: str = ""

    @property
    def is_episode(self) -> bool:
        """True when both season and episode numbers are known."""
        return self.season is not None and self.episode is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "year": self.year,
            "season": self.season,
            "episode": self.episode,
            "kind": self.kind,
            "original_filename": self.original_filename,
        }


def _clean_title(text: str) -> str:
    text = re.sub(r"[\._]", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    text = re.sub(r"[\s-]+$", "", text)
    return text.strip()


class FilenameParser:
    """
    Parse media filenames.

    Episodic patterns win over movie-year detection; a year is only kept
    when it falls between 1888 and two years from now.
    """

    def __init__(
        self,
        extensions: Optional[Iterable[str]] = None,
        current_year: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            extensions: Extensions to strip, with or without the dot.
                Defaults to the video and audio extension lists.
            current_year: Returns the current year; for tests.
        """
        exts = extensions or (DEFAULT_VIDEO_EXTENSIONS + DEFAULT_AUDIO_EXTENSIONS)
        names = sorted({e.lower().lstrip(".") for e in exts}, key=len, reverse=True)
        self._extension_pattern = re.compile(
            r"\.(?:" + "|".join(re.escape(n) for n in names) + r")$",
            re.IGNORECASE,
        )
        self._current_year = current_year or (lambda: datetime.now().year)

    def strip_extension(self, filename: str) -> str:
        return self._extension_pattern.sub("", filename)

    def is_plausible_year(self, year: int) -> bool:
        return EARLIEST_FILM_YEAR <= year <= self._current_year() + 2

    def parse(self, filename: str) -> ParsedFilename:
        """
        Parse a bare filename.

        Args:
            filename: File name without directories

        Returns:
            ParsedFilename; never raises
        """
        name = self.strip_extension(filename)

        title = name
        season: Optional[int] = None
        episode: Optional[int] = None
        year: Optional[int] = None
        kind = KIND_MOVIE

        match = _EPISODE_PATTERN.match(name) or _EPISODE_ALT_PATTERN.match(name)
        if match:
            title = match.group(1)
            season = int(match.group(2))
            episode = int(match.group(3))
            kind = KIND_SERIES

        title = _RELEASE_TAG_PATTERN.sub("", title, count=1)

        if kind == KIND_MOVIE:
            title, year = self._split_year(title)

        cleaned = _clean_title(title)
        if not cleaned:
            # Names made only of tags keep their raw text
            cleaned = _clean_title(name) or filename

        return ParsedFilename(
            title=cleaned,
            year=year,
            season=season,
            episode=episode,
            kind=kind,
            original_filename=filename,
        )

    def _split_year(self, title: str) -> tuple[str, Optional[int]]:
        """Split a bracketed or trailing year off a movie title."""
        match = _BRACKETED_YEAR_PATTERN.search(title) or _TRAILING_YEAR_PATTERN.search(title)
        if not match:
            return title, None

        year = int(match.group(1))
        before = title[:match.start()]
        if not self.is_plausible_year(year) or not _clean_title(before):
            return title, None
        return before, year


_default_parser: Optional[FilenameParser] = None


def parse_filename(filename: str) -> ParsedFilename:
    """Parse filename with the default parser."""
    global _default_parser
    if _default_parser is None:
        _default_parser = FilenameParser()
    return _default_parser.parse(filename)
