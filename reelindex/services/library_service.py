"""
Library Service for ReelIndex

Single entry point for the outer layers (HTTP API, CLI, schedulers):
- File indexing and scan logs
- Index search, stats and browsing
- Metadata resolution and cache reads
- Background metadata scans
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Any, Iterable, Optional

import httpx

from reelindex.config import ReelIndexConfig, get_config
from reelindex.database.connection import SessionFactory, init_db
from reelindex.database.models import EntryKind, FileIndexEntry, MetadataRecord
from reelindex.database.stores import FileIndexStore, MetadataStore
from reelindex.media.artwork import ThumbnailFetcher
from reelindex.media.name_parser import FilenameParser
from reelindex.media.providers import (
    MetadataProvider,
    OMDbProvider,
    RateLimiterRegistry,
    TVmazeProvider,
    WikidataProvider,
)
from reelindex.media.scanner import FileIndexer, FileScanner, ScanStartResult
from reelindex.metadata import MetadataResolver, MetadataScanOrchestrator

logger = logging.getLogger(__name__)


def browse_item(entry: FileIndexEntry) -> dict[str, Any]:
    """Shape an index entry for directory listings."""
    return {
        "name": entry.name,
        "path": entry.path,
        "is_directory": entry.file_type == EntryKind.FOLDER.value,
        "is_video": entry.file_type == EntryKind.VIDEO.value,
        "is_audio": entry.file_type == EntryKind.AUDIO.value,
        "size": entry.size or 0,
        "library": entry.library,
    }


def build_providers(
    config: ReelIndexConfig,
    client: httpx.AsyncClient,
    registry: Optional[RateLimiterRegistry] = None,
) -> list[MetadataProvider]:
    """Provider chain in resolution order: OMDb, TVmaze, Wikidata."""
    registry = registry or RateLimiterRegistry()
    limits = config.metadata.rate_limits
    timeout = config.metadata.request_timeout

    providers: list[MetadataProvider] = [
        OMDbProvider(
            client,
            registry.get_or_create("omdb", limits.omdb),
            api_key=config.metadata.omdb_api_key,
            timeout=timeout,
        ),
        TVmazeProvider(client, registry.get_or_create("tvmaze", limits.tvmaze), timeout=timeout),
        WikidataProvider(
            client, registry.get_or_create("wikidata", limits.wikidata), timeout=timeout
        ),
    ]

    if not config.metadata.omdb_api_key:
        logger.info("No OMDb API key configured; OMDb lookups disabled")

    return providers


class LibraryService:
    """
    Media library indexing and metadata service.

    Build with LibraryService.create(); call close() when done.
    """

    def __init__(
        self,
        config: ReelIndexConfig,
        index_store: FileIndexStore,
        indexer: FileIndexer,
        resolver: MetadataResolver,
        metadata_scanner: MetadataScanOrchestrator,
        client: Optional[httpx.AsyncClient] = None,
        owns_client: bool = False,
    ):
        self.config = config
        self.index_store = index_store
        self.indexer = indexer
        self.resolver = resolver
        self.metadata_scanner = metadata_scanner
        self._client = client
        self._owns_client = owns_client

    @classmethod
    async def create(
        cls,
        config: Optional[ReelIndexConfig] = None,
        session_factory: Optional[SessionFactory] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "LibraryService":
        """
        Wire up stores, providers and orchestrators.

        Args:
            config: Configuration; defaults to get_config()
            session_factory: Database sessions; defaults to init_db()
            client: HTTP client for providers and artwork; one is created
                (and closed by close()) when omitted
        """
        config = config or get_config()
        if session_factory is None:
            session_factory = await init_db(config.database.url)

        owns_client = client is None
        if client is None:
            client = httpx.AsyncClient(
                timeout=config.metadata.request_timeout,
                follow_redirects=True,
                max_redirects=config.metadata.max_redirects,
                headers={
                    "User-Agent": config.metadata.user_agent,
                    "Accept": "application/json",
                },
            )

        scanner = FileScanner(
            video_extensions=config.scanner.video_extensions,
            audio_extensions=config.scanner.audio_extensions,
        )

        index_store = FileIndexStore(session_factory)
        indexer = FileIndexer(
            index_store,
            scanner=scanner,
            max_error_details=config.scanner.max_error_details,
        )

        thumbnails = ThumbnailFetcher(
            Path(config.metadata.thumbnail_dir),
            client,
            url_prefix=config.metadata.thumbnail_url_prefix,
            timeout=config.metadata.download_timeout,
            max_redirects=config.metadata.max_redirects,
        )
        resolver = MetadataResolver(
            MetadataStore(session_factory),
            build_providers(config, client),
            thumbnails=thumbnails,
            parser=FilenameParser(
                config.scanner.video_extensions + config.scanner.audio_extensions
            ),
            freshness=timedelta(days=config.metadata.freshness_days),
        )
        metadata_scanner = MetadataScanOrchestrator(
            resolver,
            scanner=scanner,
            extensions=config.metadata.media_extensions,
        )

        logger.info("Library service initialized")
        return cls(
            config,
            index_store,
            indexer,
            resolver,
            metadata_scanner,
            client=client,
            owns_client=owns_client,
        )

    async def close(self) -> None:
        """Wait for running jobs and release the HTTP client."""
        await self.indexer.wait()
        await self.metadata_scanner.wait()
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    # -- Indexing ---------------------------------------------------------

    async def start_scan(self, root: str, triggered_by: str = "system") -> ScanStartResult:
        """Start a background index scan of root."""
        return await self.indexer.start_scan(
            root,
            libraries=self.config.scanner.libraries,
            triggered_by=triggered_by,
        )

    async def get_scan_status(self) -> Optional[dict[str, Any]]:
        state = await self.indexer.get_scan_status()
        return state.to_dict() if state else None

    async def get_scan_logs(self, limit: int = 50) -> list[dict[str, Any]]:
        logs = await self.index_store.list_scan_logs(limit)
        return [log.to_dict() for log in logs]

    async def search(
        self,
        query: str,
        file_type: Optional[str] = None,
        library: Optional[str] = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        entries = await self.index_store.search(query, file_type, library, limit)
        return [entry.to_dict() for entry in entries]

    async def get_index_stats(self) -> dict[str, Any]:
        by_type = await self.index_store.stats_by_type()
        last_scan = await self.index_store.get_last_completed_scan()
        return {
            "by_type": by_type,
            "last_scan": (
                {
                    "completed_at": last_scan.completed_at,
                    "files_indexed": last_scan.files_indexed,
                }
                if last_scan
                else None
            ),
            "total_files": sum(stats["count"] for stats in by_type.values()),
        }

    async def has_index(self) -> bool:
        return await self.index_store.count_entries() > 0

    async def browse(self, directory: str) -> list[dict[str, Any]]:
        """Indexed children of directory, folders first."""
        entries = await self.index_store.list_children(directory)
        return [browse_item(entry) for entry in entries]

    async def has_indexed_children(self, directory: str) -> bool:
        return await self.index_store.count_children(directory) > 0

    # -- Metadata ---------------------------------------------------------

    async def resolve_metadata(self, file_path: str) -> MetadataRecord:
        return await self.resolver.resolve(file_path)

    async def get_cached_metadata(self, file_path: str) -> Optional[MetadataRecord]:
        return await self.resolver.get_cached(file_path)

    async def get_cached_metadata_bulk(
        self, file_paths: Iterable[str]
    ) -> dict[str, MetadataRecord]:
        return await self.resolver.get_cached_bulk(file_paths)

    def start_background_metadata_scan(self, root: str) -> dict[str, Any]:
        result = self.metadata_scanner.start_background_scan(root)
        return {
            "accepted": result.accepted,
            "already_running": result.already_running,
            "message": result.message,
            **result.progress.to_dict(),
        }

    def get_metadata_scan_progress(self) -> dict[str, Any]:
        return self.metadata_scanner.get_scan_progress().to_dict()

    async def scan_metadata_directory(self, root: str) -> tuple[int, int]:
        """Resolve metadata under root and wait; returns (scanned, total)."""
        return await self.metadata_scanner.scan_directory(root)
