"""Language model provider implementations for the conversation core.

This module provides a pluggable provider system. Currently supported providers:
- Anthropic (claude-3-7-sonnet, claude-sonnet-4-5, etc.)
- OpenAI (gpt-4o, gpt-4o-mini, etc.)

Usage:
    from workflowsage.llm import ConversationTranscript, create_provider

    provider = create_provider(
        provider_type="anthropic",
        api_key="sk-ant-xxx",
    )

    reply = await provider.complete(
        system_prompt="You are an expert...",
        transcript=ConversationTranscript().add_user_text("Hello"),
    )
"""

import logging
from typing import Literal

from workflowsage.llm.base import LanguageModel, ModelReply, ToolSpec
from workflowsage.llm.transcript import (
    ConversationTranscript,
    ToolRequest,
    ToolResult,
    TranscriptEntry,
)

logger = logging.getLogger(__name__)

# Type alias for provider names
ProviderType = Literal["anthropic", "openai"]


def create_provider(
    provider_type: ProviderType,
    api_key: str,
    model: str | None = None,
) -> LanguageModel:
    """Factory function to create language model providers.

    Args:
        provider_type: The provider to use ("anthropic" or "openai")
        api_key: API key for the provider
        model: Optional model override (uses provider default if not specified)

    Returns:
        Configured LanguageModel instance

    Raises:
        ValueError: If provider_type is unknown or api_key is missing
    """
    if not api_key:
        raise ValueError(f"API key is required for {provider_type} provider")

    if provider_type == "anthropic":
        from workflowsage.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(
            api_key=api_key,
            model=model or "claude-3-7-sonnet-20250219",
        )

    elif provider_type == "openai":
        from workflowsage.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(
            api_key=api_key,
            model=model or "gpt-4o",
        )

    else:
        raise ValueError(
            f"Unknown provider type: {provider_type}. "
            f"Supported providers: anthropic, openai"
        )


def get_available_providers() -> list[str]:
    """Get list of available provider types."""
    return ["anthropic", "openai"]


__all__ = [
    "ConversationTranscript",
    "LanguageModel",
    "ModelReply",
    "ProviderType",
    "ToolRequest",
    "ToolResult",
    "ToolSpec",
    "TranscriptEntry",
    "create_provider",
    "get_available_providers",
]
