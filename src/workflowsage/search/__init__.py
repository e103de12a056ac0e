"""Web search providers used by the recommendation tool loop."""

import logging
from typing import Optional

from workflowsage.config import Settings, settings as default_settings
from workflowsage.search.base import (
    SearchProvider,
    SearchResult,
    UnconfiguredSearchProvider,
)
from workflowsage.search.google import GoogleSearchProvider
from workflowsage.search.serper import SerperSearchProvider

logger = logging.getLogger(__name__)


def create_search_provider(config: Optional[Settings] = None) -> SearchProvider:
    """Build the search provider selected by configuration.

    Falls back to UnconfiguredSearchProvider when no API key is set.
    """
    config = config or default_settings
    if not config.search_api_key:
        logger.warning("SEARCH_API_KEY is not set. Web search functionality will be limited.")
        return UnconfiguredSearchProvider()

    if config.search_engine == "google":
        return GoogleSearchProvider(
            api_key=config.search_api_key,
            engine_id=config.google_search_engine_id,
            timeout=config.search_timeout_seconds,
            result_count=config.search_result_count,
        )

    return SerperSearchProvider(
        api_key=config.search_api_key,
        timeout=config.search_timeout_seconds,
        result_count=config.search_result_count,
    )


__all__ = [
    "GoogleSearchProvider",
    "SearchProvider",
    "SearchResult",
    "SerperSearchProvider",
    "UnconfiguredSearchProvider",
    "create_search_provider",
]
