"""
Unit tests for metadata providers.
"""

from datetime import datetime

import httpx
import pytest

from reelindex.database.models import (
    SOURCE_FILENAME,
    SOURCE_OMDB,
    SOURCE_OMDB_TVMAZE,
    SOURCE_TVMAZE,
    SOURCE_WIKIDATA,
)
from reelindex.media.name_parser import FilenameParser
from reelindex.media.providers import (
    OMDbProvider,
    TVmazeProvider,
    WikidataProvider,
)
from reelindex.media.providers.base import clean_value
from reelindex.media.providers.tvmaze import strip_html
from reelindex.media.providers.wikidata import build_film_query, escape_sparql_literal
from reelindex.metadata.resolver import draft_record
from tests.fixtures.mock_api import MockAPI, make_limiter
from tests.fixtures.mock_responses import (
    OMDB_MOVIE,
    OMDB_NOT_FOUND,
    OMDB_SERIES,
    TVMAZE_EPISODE,
    TVMAZE_SHOW,
    WIKIDATA_EMPTY,
    WIKIDATA_FILM,
)

OMDB_HOST = "www.omdbapi.com"
TVMAZE_HOST = "api.tvmaze.com"
WIKIDATA_HOST = "query.wikidata.org"

parser = FilenameParser(current_year=lambda: 2024)


def _draft(filename: str):
    return draft_record(f"/media/{filename}", parser.parse(filename), datetime(2024, 1, 1))


@pytest.mark.unit
class TestCleanValue:
    """Tests for clean_value."""

    def test_placeholders(self):
        """Test empty and N/A values become None."""
        assert clean_value(None) is None
        assert clean_value("") is None
        assert clean_value("  ") is None
        assert clean_value("N/A") is None

    def test_values(self):
        """Test values are stripped and stringified."""
        assert clean_value(" 8.7 ") == "8.7"
        assert clean_value(169) == "169"


@pytest.mark.unit
class TestOMDbProvider:
    """Tests for OMDbProvider."""

    @pytest.fixture
    def provider(self, http_client: httpx.AsyncClient) -> OMDbProvider:
        return OMDbProvider(http_client, make_limiter("omdb"), api_key="key")

    @pytest.mark.asyncio
    async def test_lookup_movie(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test a movie lookup and its query parameters."""
        mock_api.add(OMDB_HOST, "/", json=OMDB_MOVIE)

        result = await provider.lookup(parser.parse("The.Matrix.1999.1080p.mkv"))

        assert result is not None
        assert result.title == "The Matrix"
        assert result.year == 1999
        assert result.rating == "8.7"
        assert result.imdb_id == "tt0133093"
        assert result.poster_key == "tt0133093"
        assert result.has_poster

        params = mock_api.requests_to(OMDB_HOST)[0].url.params
        assert params["apikey"] == "key"
        assert params["t"] == "The Matrix"
        assert params["y"] == "1999"
        assert params["type"] == "movie"

    @pytest.mark.asyncio
    async def test_retries_without_year(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test a miss with a year is retried without it."""
        def responder(request: httpx.Request) -> httpx.Response:
            if "y" in request.url.params:
                return httpx.Response(200, json=OMDB_NOT_FOUND)
            return httpx.Response(200, json=OMDB_MOVIE)

        mock_api.add(OMDB_HOST, "/", responder=responder)

        result = await provider.lookup(parser.parse("The Matrix (2000).mkv"))

        assert result is not None
        assert result.year == 1999
        assert len(mock_api.requests_to(OMDB_HOST)) == 2

    @pytest.mark.asyncio
    async def test_not_found(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test a miss without a year is not retried."""
        mock_api.add(OMDB_HOST, "/", json=OMDB_NOT_FOUND)

        assert await provider.lookup(parser.parse("Nothing.mkv")) is None
        assert len(mock_api.requests_to(OMDB_HOST)) == 1

    @pytest.mark.asyncio
    async def test_series_type_and_year_range(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test series lookups and "2008-2013" style years."""
        mock_api.add(OMDB_HOST, "/", json=OMDB_SERIES)

        result = await provider.lookup(parser.parse("Breaking.Bad.S01E02.mkv"))

        assert mock_api.requests_to(OMDB_HOST)[0].url.params["type"] == "series"
        assert result.year == 2008
        assert result.director is None
        assert not result.has_poster

    @pytest.mark.asyncio
    async def test_disabled_without_key(self, http_client: httpx.AsyncClient, mock_api: MockAPI):
        """Test no request is made without an API key."""
        provider = OMDbProvider(http_client, make_limiter("omdb"), api_key="")

        assert not provider.enabled
        assert await provider.lookup(parser.parse("The Matrix.mkv")) is None
        assert mock_api.requests == []

    @pytest.mark.asyncio
    async def test_server_error(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test a 500 is reported as no match."""
        mock_api.add(OMDB_HOST, "/", json={"error": "boom"}, status_code=500)

        assert await provider.lookup(parser.parse("The Matrix.mkv")) is None

    @pytest.mark.asyncio
    async def test_timeout(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test a transport timeout is reported as no match."""
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        mock_api.add(OMDB_HOST, "/", responder=timeout)

        assert await provider.lookup(parser.parse("The Matrix.mkv")) is None

    @pytest.mark.asyncio
    async def test_invalid_json(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test a non-JSON body is reported as no match."""
        mock_api.add(OMDB_HOST, "/", content=b"<html>oops</html>")

        assert await provider.lookup(parser.parse("The Matrix.mkv")) is None

    @pytest.mark.asyncio
    async def test_merge(self, provider: OMDbProvider, mock_api: MockAPI):
        """Test merging an OMDb result into a draft record."""
        mock_api.add(OMDB_HOST, "/", json=OMDB_MOVIE)
        record = _draft("The.Matrix.1999.mkv")

        provider.merge(record, await provider.lookup(parser.parse("The.Matrix.1999.mkv")))

        assert record.source == SOURCE_OMDB
        assert record.clean_title == "The Matrix"
        assert record.genre == "Action, Sci-Fi"
        assert record.actor_list == ["Keanu Reeves", "Laurence Fishburne", "Carrie-Anne Moss"]


@pytest.mark.unit
class TestTVmazeProvider:
    """Tests for TVmazeProvider."""

    @pytest.fixture
    def provider(self, http_client: httpx.AsyncClient) -> TVmazeProvider:
        return TVmazeProvider(http_client, make_limiter("tvmaze"))

    def test_strip_html(self):
        """Test HTML summaries become plain text."""
        assert strip_html(TVMAZE_EPISODE["summary"]) == (
            "Walt and Jesse attempt to tie up loose ends & move on."
        )
        assert strip_html("<p></p>") is None
        assert strip_html(None) is None

    def test_only_for_episodes(self, provider: TVmazeProvider):
        """Test TVmaze only applies to episodes."""
        episode = parser.parse("Breaking.Bad.S01E02.mkv")
        movie = parser.parse("The Matrix (1999).mkv")

        assert provider.is_applicable(episode, _draft("Breaking.Bad.S01E02.mkv"))
        assert not provider.is_applicable(movie, _draft("The Matrix (1999).mkv"))

    @pytest.mark.asyncio
    async def test_show_and_episode(self, provider: TVmazeProvider, mock_api: MockAPI):
        """Test show search followed by episode lookup."""
        mock_api.add(TVMAZE_HOST, "/singlesearch/shows", json=TVMAZE_SHOW)
        mock_api.add(TVMAZE_HOST, "/shows/169/episodebynumber", json=TVMAZE_EPISODE)

        result = await provider.lookup(parser.parse("Breaking.Bad.S01E02.mkv"))

        assert result.tvmaze_id == 169
        assert result.title == "Breaking Bad"
        assert result.episode_found
        assert result.episode_title == "Cat's in the Bag..."
        assert result.plot.startswith("Walt and Jesse")
        assert result.poster_key == "tvmaze_169"
        assert result.poster_url.endswith("medium_portrait/0/2400.jpg")

        show_request, episode_request = mock_api.requests_to(TVMAZE_HOST)
        assert show_request.url.params["q"] == "Breaking Bad"
        assert episode_request.url.params["season"] == "1"
        assert episode_request.url.params["number"] == "2"

    @pytest.mark.asyncio
    async def test_show_not_found(self, provider: TVmazeProvider, mock_api: MockAPI):
        """Test an unknown show skips the episode lookup."""
        mock_api.add(TVMAZE_HOST, "/singlesearch/shows", json={}, status_code=404)

        assert await provider.lookup(parser.parse("Unknown.Show.S01E01.mkv")) is None
        assert len(mock_api.requests_to(TVMAZE_HOST)) == 1

    @pytest.mark.asyncio
    async def test_episode_not_found_keeps_show(
        self, provider: TVmazeProvider, mock_api: MockAPI
    ):
        """Test a missing episode still returns the show."""
        mock_api.add(TVMAZE_HOST, "/singlesearch/shows", json=TVMAZE_SHOW)

        result = await provider.lookup(parser.parse("Breaking.Bad.S09E99.mkv"))

        assert result is not None
        assert result.tvmaze_id == 169
        assert not result.episode_found
        assert result.episode_title is None

    @pytest.mark.asyncio
    async def test_merge_after_omdb(self, provider: TVmazeProvider, mock_api: MockAPI):
        """Test TVmaze fills in episode details after OMDb."""
        mock_api.add(TVMAZE_HOST, "/singlesearch/shows", json=TVMAZE_SHOW)
        mock_api.add(TVMAZE_HOST, "/shows/169/episodebynumber", json=TVMAZE_EPISODE)
        record = _draft("Breaking.Bad.S01E02.mkv")
        record.source = SOURCE_OMDB
        record.plot = "Show plot"

        provider.merge(record, await provider.lookup(parser.parse("Breaking.Bad.S01E02.mkv")))

        assert record.source == SOURCE_OMDB_TVMAZE
        assert record.tvmaze_id == 169
        assert record.episode_title == "Cat's in the Bag..."
        assert record.plot == "Show plot"

    @pytest.mark.asyncio
    async def test_merge_alone(self, provider: TVmazeProvider, mock_api: MockAPI):
        """Test TVmaze as the only match."""
        mock_api.add(TVMAZE_HOST, "/singlesearch/shows", json=TVMAZE_SHOW)
        mock_api.add(TVMAZE_HOST, "/shows/169/episodebynumber", json=TVMAZE_EPISODE)
        record = _draft("breaking.bad.s01e02.mkv")

        provider.merge(record, await provider.lookup(parser.parse("breaking.bad.s01e02.mkv")))

        assert record.source == SOURCE_TVMAZE
        assert record.clean_title == "Breaking Bad"
        assert record.plot.startswith("Walt and Jesse")

    @pytest.mark.asyncio
    async def test_merge_show_only_keeps_source(
        self, provider: TVmazeProvider, mock_api: MockAPI
    ):
        """Test a show-only match does not claim the record."""
        mock_api.add(TVMAZE_HOST, "/singlesearch/shows", json=TVMAZE_SHOW)
        record = _draft("Breaking.Bad.S09E99.mkv")

        provider.merge(record, await provider.lookup(parser.parse("Breaking.Bad.S09E99.mkv")))

        assert record.source == SOURCE_FILENAME
        assert record.tvmaze_id == 169


@pytest.mark.unit
class TestWikidataProvider:
    """Tests for WikidataProvider."""

    @pytest.fixture
    def provider(self, http_client: httpx.AsyncClient) -> WikidataProvider:
        return WikidataProvider(http_client, make_limiter("wikidata"))

    def test_escape_literal(self):
        """Test SPARQL literal escaping."""
        assert escape_sparql_literal('Say "Hi"\\') == 'Say \\"Hi\\"\\\\'

    def test_query_without_year(self):
        """Test the film query without a year."""
        query = build_film_query("Nosferatu")

        assert 'rdfs:label "Nosferatu"@en' in query
        assert "wd:Q11424" in query
        assert "P577" not in query
        assert query.endswith("LIMIT 1")

    def test_query_with_year(self):
        """Test the film query prefers the given year."""
        query = build_film_query("Nosferatu", 1922)

        assert "YEAR(?published) = 1922" in query
        assert "ORDER BY DESC(?yearMatch)" in query

    def test_only_without_match(self, provider: WikidataProvider):
        """Test Wikidata only runs when no provider matched."""
        record = _draft("Nosferatu (1922).mp4")
        parsed = parser.parse("Nosferatu (1922).mp4")

        assert provider.is_applicable(parsed, record)
        record.source = SOURCE_OMDB
        assert not provider.is_applicable(parsed, record)

    @pytest.mark.asyncio
    async def test_lookup(self, provider: WikidataProvider, mock_api: MockAPI):
        """Test a Wikidata film lookup."""
        mock_api.add(WIKIDATA_HOST, "/sparql", json=WIKIDATA_FILM)

        result = await provider.lookup(parser.parse("Nosferatu (1922).mp4"))

        assert result.title == "Nosferatu"
        assert result.imdb_id == "tt0013442"
        assert result.poster_url.endswith("Nosferatu.png")
        assert result.poster_key == "Nosferatu"

        params = mock_api.requests_to(WIKIDATA_HOST)[0].url.params
        assert params["format"] == "json"
        assert "1922" in params["query"]

    @pytest.mark.asyncio
    async def test_no_bindings(self, provider: WikidataProvider, mock_api: MockAPI):
        """Test empty SPARQL results."""
        mock_api.add(WIKIDATA_HOST, "/sparql", json=WIKIDATA_EMPTY)

        assert await provider.lookup(parser.parse("Nothing.mp4")) is None

    @pytest.mark.asyncio
    async def test_merge(self, provider: WikidataProvider, mock_api: MockAPI):
        """Test merging a Wikidata result."""
        mock_api.add(WIKIDATA_HOST, "/sparql", json=WIKIDATA_FILM)
        record = _draft("nosferatu.mp4")

        provider.merge(record, await provider.lookup(parser.parse("nosferatu.mp4")))

        assert record.source == SOURCE_WIKIDATA
        assert record.clean_title == "Nosferatu"
        assert record.imdb_id == "tt0013442"
