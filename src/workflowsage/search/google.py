"""Google Custom Search provider."""

from typing import Optional

import httpx

from workflowsage.search.base import SearchProvider, SearchResult

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


class GoogleSearchProvider(SearchProvider):
    """Search via the Google Custom Search JSON API; results come from ``items``."""

    def __init__(
        self,
        api_key: str,
        engine_id: str,
        timeout: float = 15.0,
        result_count: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            api_key=api_key, timeout=timeout, result_count=result_count, client=client
        )
        self.engine_id = engine_id

    @property
    def provider_name(self) -> str:
        return "google"

    async def _fetch(self, client: httpx.AsyncClient, query: str) -> list[SearchResult]:
        response = await client.get(
            GOOGLE_SEARCH_URL,
            params={
                "key": self.api_key,
                "cx": self.engine_id,
                "q": query,
                # The API caps page size at 10
                "num": min(self.result_count, 10),
            },
        )
        response.raise_for_status()
        return self._normalize(response.json().get("items"))
