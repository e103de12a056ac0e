"""
Tests for web search providers.
"""

import json

import httpx
import pytest

from workflowsage.config import Settings
from workflowsage.search import (
    GoogleSearchProvider,
    SerperSearchProvider,
    UnconfiguredSearchProvider,
    create_search_provider,
)
from workflowsage.search.google import GOOGLE_SEARCH_URL
from workflowsage.search.serper import SERPER_URL


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestSerperSearchProvider:
    """Tests for the Serper provider."""

    async def test_posts_query_and_reads_organic(self):
        """Test that the query is POSTed with the API key header."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "organic": [
                        {"title": "AI invoices", "link": "https://a.example", "snippet": "s1"},
                        {"title": "OCR", "link": "https://b.example"},
                    ]
                },
            )

        async with _client(handler) as client:
            provider = SerperSearchProvider(api_key="key-1", result_count=5, client=client)
            results = await provider.search("invoice automation")

        assert [r.link for r in results] == ["https://a.example", "https://b.example"]
        assert results[1].snippet == ""
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == SERPER_URL
        assert request.headers["X-API-KEY"] == "key-1"
        assert json.loads(request.content) == {"q": "invoice automation", "num": 5}

    async def test_http_error_returns_empty(self):
        """Test that a server error yields no results instead of raising."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"message": "boom"})

        async with _client(handler) as client:
            provider = SerperSearchProvider(api_key="key-1", client=client)
            assert await provider.search("q") == []

    async def test_missing_organic_returns_empty(self):
        """Test that a payload without results yields an empty list."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"searchParameters": {}})

        async with _client(handler) as client:
            provider = SerperSearchProvider(api_key="key-1", client=client)
            assert await provider.search("q") == []

    async def test_non_object_payload_returns_empty(self):
        """Test that a malformed payload yields an empty list."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["unexpected"])

        async with _client(handler) as client:
            provider = SerperSearchProvider(api_key="key-1", client=client)
            assert await provider.search("q") == []

    async def test_transport_error_returns_empty(self):
        """Test that a connection failure yields an empty list."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with _client(handler) as client:
            provider = SerperSearchProvider(api_key="key-1", client=client)
            assert await provider.search("q") == []


class TestGoogleSearchProvider:
    """Tests for the Google Custom Search provider."""

    async def test_gets_with_params_and_reads_items(self):
        """Test that key, engine id and query travel as query parameters."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"items": [{"title": "T", "link": "https://t.example", "snippet": "S"}]},
            )

        async with _client(handler) as client:
            provider = GoogleSearchProvider(
                api_key="g-key", engine_id="cx-1", result_count=25, client=client
            )
            results = await provider.search("rpa")

        assert len(results) == 1
        assert results[0].to_dict() == {
            "title": "T",
            "link": "https://t.example",
            "snippet": "S",
        }
        request = seen[0]
        assert request.method == "GET"
        assert str(request.url).startswith(GOOGLE_SEARCH_URL)
        params = request.url.params
        assert params["key"] == "g-key"
        assert params["cx"] == "cx-1"
        assert params["q"] == "rpa"
        assert params["num"] == "10"

    async def test_non_dict_items_are_skipped(self):
        """Test that entries that are not objects are ignored."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"items": ["junk", {"title": "ok"}]})

        async with _client(handler) as client:
            provider = GoogleSearchProvider(api_key="k", engine_id="cx", client=client)
            results = await provider.search("q")

        assert [r.title for r in results] == ["ok"]


class TestCreateSearchProvider:
    """Tests for provider selection from settings."""

    def test_no_key_gives_unconfigured(self, test_settings):
        """Test that a missing API key selects the notice provider."""
        assert isinstance(create_search_provider(test_settings), UnconfiguredSearchProvider)

    def test_default_engine_is_serper(self):
        """Test that Serper is used when only a key is configured."""
        config = Settings(_env_file=None, search_api_key="abc")

        provider = create_search_provider(config)

        assert isinstance(provider, SerperSearchProvider)
        assert provider.api_key == "abc"

    def test_google_engine(self):
        """Test that the google engine setting selects Google Custom Search."""
        config = Settings(
            _env_file=None,
            search_api_key="abc",
            search_engine="google",
            google_search_engine_id="cx-9",
            search_result_count=7,
        )

        provider = create_search_provider(config)

        assert isinstance(provider, GoogleSearchProvider)
        assert provider.engine_id == "cx-9"
        assert provider.result_count == 7

    @pytest.mark.parametrize("query", ["", "anything"])
    async def test_unconfigured_always_returns_notice(self, query):
        """Test that the notice provider answers every query the same way."""
        provider = UnconfiguredSearchProvider()

        assert await provider.search(query) == [UnconfiguredSearchProvider.NOTICE]
