"""
Unit tests for filename heuristics.
"""

import pytest

from reelindex.media.name_parser import (
    KIND_MOVIE,
    KIND_SERIES,
    FilenameParser,
    parse_filename,
)


@pytest.fixture
def parser() -> FilenameParser:
    return FilenameParser(current_year=lambda: 2024)


@pytest.mark.unit
class TestEpisodePatterns:
    """Tests for series episode detection."""

    def test_sxxexx(self, parser: FilenameParser):
        """Test SxxEyy episode markers."""
        parsed = parser.parse("Name.S01E02.720p.HDTV.mkv")

        assert parsed.title == "Name"
        assert parsed.season == 1
        assert parsed.episode == 2
        assert parsed.kind == KIND_SERIES
        assert parsed.year is None

    def test_lowercase_single_digits(self, parser: FilenameParser):
        """Test lowercase markers with single digits."""
        parsed = parser.parse("the_office_s3e7.mp4")

        assert parsed.title == "the office"
        assert (parsed.season, parsed.episode) == (3, 7)

    def test_nxnn(self, parser: FilenameParser):
        """Test NxNN episode markers."""
        parsed = parser.parse("Doctor Who 4x10.avi")

        assert parsed.title == "Doctor Who"
        assert (parsed.season, parsed.episode) == (4, 10)
        assert parsed.kind == KIND_SERIES

    def test_multi_word_show(self, parser: FilenameParser):
        """Test the show title stops at the episode marker."""
        parsed = parser.parse("Breaking.Bad.S01E02.Cats.in.the.Bag.1080p.WEB-DL.mkv")

        assert parsed.title == "Breaking Bad"
        assert parsed.is_episode


@pytest.mark.unit
class TestMovieYears:
    """Tests for movie year extraction."""

    def test_parenthesized_year(self, parser: FilenameParser):
        """Test a year in parentheses."""
        parsed = parser.parse("Name (2023).mp4")

        assert parsed.title == "Name"
        assert parsed.year == 2023
        assert parsed.kind == KIND_MOVIE

    def test_year_out_of_range_is_dropped(self, parser: FilenameParser):
        """Test implausible years stay in the title."""
        parsed = parser.parse("Movie 1600.mp4")

        assert parsed.year is None
        assert parsed.title == "Movie 1600"

    def test_future_year_limit(self, parser: FilenameParser):
        """Test years more than two ahead are rejected."""
        assert parser.parse("Soon (2026).mkv").year == 2026
        assert parser.parse("Later (2027).mkv").year is None

    def test_trailing_year_after_tags(self, parser: FilenameParser):
        """Test a bare year before release tags."""
        parsed = parser.parse("The.Matrix.1999.1080p.BluRay.x264.mkv")

        assert parsed.title == "The Matrix"
        assert parsed.year == 1999

    def test_number_in_title_kept(self, parser: FilenameParser):
        """Test only the last year is taken as the release year."""
        parsed = parser.parse("Blade.Runner.2049.2017.mkv")

        assert parsed.title == "Blade Runner 2049"
        assert parsed.year == 2017

    def test_bracketed_year(self, parser: FilenameParser):
        """Test a year in square brackets."""
        parsed = parser.parse("Alien [1979].mkv")

        assert parsed.title == "Alien"
        assert parsed.year == 1979

    def test_title_that_is_a_year(self, parser: FilenameParser):
        """Test a title that is itself a year."""
        parsed = parser.parse("1917 (2019).mkv")

        assert parsed.title == "1917"
        assert parsed.year == 2019


@pytest.mark.unit
class TestCleanup:
    """Tests for title cleanup."""

    def test_release_tags_removed(self, parser: FilenameParser):
        """Test quality and codec tags are stripped."""
        parsed = parser.parse("Some.Film.EXTENDED.REMASTERED.2160p.mkv")

        assert parsed.title == "Some Film"

    def test_tag_inside_word_kept(self, parser: FilenameParser):
        """Test tags only match whole words."""
        parsed = parser.parse("Isaac.mp4")

        assert parsed.title == "Isaac"

    def test_trailing_hyphen_removed(self, parser: FilenameParser):
        """Test a dangling hyphen is removed from the title."""
        parsed = parser.parse("Some Film - .mp4")

        assert parsed.title == "Some Film"

    def test_unknown_extension_kept(self, parser: FilenameParser):
        """Test non-media extensions are not stripped."""
        parsed = parser.parse("readme.txt")

        assert parsed.title == "readme txt"

    def test_original_filename(self, parser: FilenameParser):
        """Test the original filename is preserved."""
        parsed = parser.parse("Name (2023).mp4")

        assert parsed.original_filename == "Name (2023).mp4"

    def test_module_level_helper(self):
        """Test parse_filename."""
        parsed = parse_filename("Show.S02E03.mkv")

        assert parsed.title == "Show"
        assert parsed.to_dict()["season"] == 2
