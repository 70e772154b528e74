"""
ReelIndex Test Configuration

Shared fixtures and configuration for all tests.
"""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator

import httpx
import pytest

import reelindex.config as config_module
from reelindex.database.connection import (
    SessionFactory,
    create_engine_and_factory,
    create_tables,
)
from reelindex.database.stores import FileIndexStore, MetadataStore
from tests.fixtures.mock_api import MockAPI


# ============ Database Fixtures ============


@pytest.fixture(scope="function")
async def session_factory() -> AsyncGenerator[SessionFactory, None]:
    """Fresh in-memory SQLite database per test."""
    engine, factory = create_engine_and_factory("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    yield factory
    await engine.dispose()


@pytest.fixture
def metadata_store(session_factory: SessionFactory) -> MetadataStore:
    return MetadataStore(session_factory)


@pytest.fixture
def index_store(session_factory: SessionFactory) -> FileIndexStore:
    return FileIndexStore(session_factory)


# ============ Temporary File Fixtures ============


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture(scope="function")
def media_tree(temp_dir: Path) -> Path:
    """
    A small library:

        library/
            Movie One (2001).mp4
            Movie Two.mkv
            notes.txt
            song.mp3
            Extras/
                Behind.The.Scenes.avi
                theme.flac
    """
    root = temp_dir / "library"
    extras = root / "Extras"
    extras.mkdir(parents=True)

    (root / "Movie One (2001).mp4").write_bytes(b"\x00" * 1024)
    (root / "Movie Two.mkv").write_bytes(b"\x00" * 2048)
    (root / "notes.txt").write_text("not media")
    (root / "song.mp3").write_bytes(b"\x00" * 512)
    (extras / "Behind.The.Scenes.avi").write_bytes(b"\x00" * 256)
    (extras / "theme.flac").write_bytes(b"\x00" * 128)
    return root


# ============ HTTP Mock Fixtures ============


@pytest.fixture
def mock_api() -> MockAPI:
    return MockAPI()


@pytest.fixture
async def http_client(mock_api: MockAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """httpx client whose transport is mock_api."""
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(mock_api.handler),
        follow_redirects=True,
    ) as client:
        yield client


# ============ Environment Fixtures ============


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables and cached config for each test."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("REELINDEX_"):
            del os.environ[key]
    config_module._config = None

    yield

    os.environ.clear()
    os.environ.update(original_env)
    config_module._config = None
