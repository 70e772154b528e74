"""
Artwork downloads.

Fetches poster images from provider URLs and stores them under the
thumbnail directory, returning the site-relative path the web layer serves
them from.
"""

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx

from reelindex.exceptions import ThumbnailError
from reelindex.media.providers.base import NOT_AVAILABLE

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".jpg"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


def thumbnail_filename(key: str, url: str) -> str:
    """
    Local file name for an image.

    Every non-alphanumeric character of key becomes "_"; the extension
    comes from the URL path.
    """
    ext = os.path.splitext(urlparse(url).path)[1].lower()
    if not ext or len(ext) > 6 or not ext[1:].isalnum():
        ext = DEFAULT_EXTENSION
    return _UNSAFE_CHARS.sub("_", key) + ext


class ThumbnailFetcher:
    """
    Download images into a local directory.

    Failures never propagate: fetch() logs and returns None.
    """

    def __init__(
        self,
        thumbnail_dir: str | Path,
        client: httpx.AsyncClient,
        url_prefix: str = "/thumbnails",
        timeout: float = 30.0,
        max_redirects: int = 5,
    ):
        self.thumbnail_dir = Path(thumbnail_dir)
        self.client = client
        self.url_prefix = url_prefix.rstrip("/")
        self.timeout = timeout
        self.max_redirects = max_redirects

    async def fetch(self, url: Optional[str], key: str) -> Optional[str]:
        """
        Download url and store it under a name derived from key.

        Args:
            url: Image URL; None or "N/A" means no image
            key: Stable identifier for the image (IMDb id, title...)

        Returns:
            Site-relative path such as "/thumbnails/tt0133093.jpg", or None
        """
        if not url or url == NOT_AVAILABLE:
            return None

        try:
            content = await self._download(url)
            filename = thumbnail_filename(key, url)
            await asyncio.to_thread(self._write, filename, content)
        except (httpx.HTTPError, httpx.InvalidURL, ThumbnailError, OSError) as e:
            logger.warning(f"Failed to download thumbnail {url}: {e}")
            return None

        logger.debug(f"Saved thumbnail {filename} from {url}")
        return f"{self.url_prefix}/{filename}"

    async def _download(self, url: str) -> bytes:
        request_url = httpx.URL(url)

        for _ in range(self.max_redirects + 1):
            response = await self.client.get(
                request_url,
                timeout=self.timeout,
                follow_redirects=False,
            )
            if response.is_redirect:
                location = response.headers.get("location", "")
                request_url = response.url.join(location)
                continue

            if not response.is_success:
                raise ThumbnailError(f"HTTP {response.status_code}", url=url)
            return response.content

        raise ThumbnailError(f"Too many redirects (max {self.max_redirects})", url=url)

    def _write(self, filename: str, content: bytes) -> None:
        self.thumbnail_dir.mkdir(parents=True, exist_ok=True)
        (self.thumbnail_dir / filename).write_bytes(content)
