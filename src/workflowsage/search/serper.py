"""Serper (google.serper.dev) search provider."""

import httpx

from workflowsage.search.base import SearchProvider, SearchResult

SERPER_URL = "https://google.serper.dev/search"


class SerperSearchProvider(SearchProvider):
    """Search via the Serper API; results come from the ``organic`` list."""

    @property
    def provider_name(self) -> str:
        return "serper"

    async def _fetch(self, client: httpx.AsyncClient, query: str) -> list[SearchResult]:
        response = await client.post(
            SERPER_URL,
            headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
            json={"q": query, "num": self.result_count},
        )
        response.raise_for_status()
        return self._normalize(response.json().get("organic"))
