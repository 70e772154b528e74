"""
Base metadata provider classes.

Providers look a parsed filename up in an external service and fold what
they find into a MetadataRecord. The resolver runs them in order; each one
decides from the record so far whether it still has anything to add.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from reelindex.database.models import MetadataRecord
from reelindex.exceptions import ProviderError
from reelindex.media.name_parser import ParsedFilename
from reelindex.media.providers.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Placeholder some providers use for empty fields
NOT_AVAILABLE = "N/A"


def clean_value(value: Any) -> Optional[str]:
    """Provider field to str, with empty and "N/A" mapped to None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == NOT_AVAILABLE:
        return None
    return text


@dataclass
class PartialMetadata:
    """
    What one provider found for one file.

    Only fields the provider actually knows are set. poster_url/poster_key
    describe artwork to download; the resolver fetches it when the record
    has no poster yet.
    """

    provider: str
    title: Optional[str] = None
    year: Optional[int] = None
    plot: Optional[str] = None
    rating: Optional[str] = None
    genre: Optional[str] = None
    director: Optional[str] = None
    actors: Optional[str] = None
    runtime: Optional[str] = None
    imdb_id: Optional[str] = None
    tvmaze_id: Optional[int] = None
    episode_title: Optional[str] = None
    episode_found: bool = False
    poster_url: Optional[str] = None
    poster_key: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def has_poster(self) -> bool:
        return bool(self.poster_url) and self.poster_url != NOT_AVAILABLE


class MetadataProvider(ABC):
    """
    Abstract base class for metadata providers.

    Subclasses implement lookup() and merge(); every outbound request goes
    through _get_json(), which waits on the provider's RateLimiter first.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: RateLimiter,
        timeout: float = 15.0,
    ):
        """
        Initialize the metadata provider.

        Args:
            client: Shared HTTP client
            limiter: This provider's rate limiter
            timeout: Per-request timeout in seconds
        """
        self.client = client
        self.limiter = limiter
        self.timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name, also its source tag."""
        pass

    def is_applicable(self, parsed: ParsedFilename, record: MetadataRecord) -> bool:
        """Whether this provider should run for the record so far."""
        return True

    @abstractmethod
    async def lookup(self, parsed: ParsedFilename) -> Optional[PartialMetadata]:
        """
        Look up a parsed filename.

        Returns:
            PartialMetadata, or None when nothing matched or the provider
            could not be reached
        """
        pass

    @abstractmethod
    def merge(self, record: MetadataRecord, result: PartialMetadata) -> None:
        """Fold result into record in place."""
        pass

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Rate-limited GET returning decoded JSON.

        Raises:
            ProviderError: on transport failure, non-200 status or bad JSON
        """
        await self.limiter.acquire()

        try:
            response = await self.client.get(url, params=params, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Request failed: {e.__class__.__name__}: {e}",
                provider=self.name,
                original_error=e,
            ) from e

        if response.status_code != 200:
            raise ProviderError(
                f"HTTP {response.status_code} from {url}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"Invalid JSON from {url}",
                provider=self.name,
                original_error=e,
            ) from e

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
