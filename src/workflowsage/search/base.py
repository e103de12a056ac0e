"""Base types for web search providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """A single ranked search hit."""

    title: str
    link: str
    snippet: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class SearchProvider(ABC):
    """Web search capability.

    ``search`` never raises on provider failure: HTTP errors, timeouts and
    malformed payloads are logged and reported as an empty result list.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 15.0,
        result_count: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.result_count = result_count
        self._client = client

    @property
    @abstractmethod
    def provider_name(self) -> str: ...

    @abstractmethod
    async def _fetch(self, client: httpx.AsyncClient, query: str) -> list[SearchResult]:
        """Run the provider request; may raise."""
        ...

    async def search(self, query: str) -> list[SearchResult]:
        """Search the web for ``query`` and return ranked results."""
        try:
            if self._client is not None:
                results = await self._fetch(self._client, query)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    results = await self._fetch(client, query)
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"{self.provider_name} search failed for {query!r}: {e}")
            return []

        logger.info(f"{self.provider_name} returned {len(results)} results for {query!r}")
        return results

    @staticmethod
    def _normalize(items: Any) -> list[SearchResult]:
        """Map provider items carrying title/link/snippet to SearchResults."""
        if not isinstance(items, list):
            return []
        return [
            SearchResult(
                title=str(item.get("title") or ""),
                link=str(item.get("link") or ""),
                snippet=str(item.get("snippet") or ""),
            )
            for item in items
            if isinstance(item, dict)
        ]


class UnconfiguredSearchProvider(SearchProvider):
    """Stand-in used when no search API key is configured.

    Returns a single notice result so the model learns search is unavailable.
    """

    NOTICE = SearchResult(
        title="Search API Key Not Configured",
        link="https://example.com",
        snippet=(
            "Web search is currently unavailable as the Search API key is not "
            "configured. Please set the SEARCH_API_KEY environment variable."
        ),
    )

    def __init__(self) -> None:
        super().__init__(api_key="")

    @property
    def provider_name(self) -> str:
        return "unconfigured"

    async def _fetch(self, client: httpx.AsyncClient, query: str) -> list[SearchResult]:
        return [self.NOTICE]

    async def search(self, query: str) -> list[SearchResult]:
        logger.warning("Web search requested but SEARCH_API_KEY is not set")
        return [self.NOTICE]
