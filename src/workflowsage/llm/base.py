"""Base protocol and types for language model providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from workflowsage.llm.transcript import ConversationTranscript, ToolRequest


@dataclass
class ToolSpec:
    """A capability the model may ask the caller to invoke.

    Attributes:
        name: Identifier the model uses in its requests
        description: What the capability does, shown to the model
        input_schema: JSON schema of the request arguments
    """

    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass
class ModelReply:
    """Standardized reply from language model providers.

    Attributes:
        text_segments: Text blocks of the reply, in order
        tool_requests: Capability invocations requested by the model
        stop_reason: Why generation stopped (end_turn, tool_use, length, ...)
        model: The actual model used (may differ from requested)
        prompt_tokens: Number of tokens in the prompt
        completion_tokens: Number of tokens in the completion
        duration_ms: Time taken for the API call in milliseconds
        raw_response: Provider-specific raw response for debugging
    """

    text_segments: list[str] = field(default_factory=list)
    tool_requests: list[ToolRequest] = field(default_factory=list)
    stop_reason: str = "unknown"
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    duration_ms: float = 0.0
    raw_response: Any = None

    @property
    def text(self) -> str:
        """All text segments joined by blank lines."""
        return "\n\n".join(segment for segment in self.text_segments if segment)

    @property
    def first_text(self) -> Optional[str]:
        """The first text segment, if any."""
        return self.text_segments[0] if self.text_segments else None

    @property
    def requests_tools(self) -> bool:
        return bool(self.tool_requests)


class LanguageModel(ABC):
    """Abstract base class for language model providers.

    Implementations must handle:
    - API client initialization
    - Translating a ConversationTranscript into the vendor message shape
    - Declaring tools and parsing tool requests out of replies
    - Wrapping vendor errors in ProviderError
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider identifier (e.g., 'anthropic', 'openai')."""
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model identifier being used."""
        ...

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        transcript: ConversationTranscript,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        tools: Optional[list[ToolSpec]] = None,
    ) -> ModelReply:
        """Generate the next assistant reply for a transcript.

        Args:
            system_prompt: Instructions for this call
            transcript: Full ordered message history, replayed on every call
            max_tokens: Maximum tokens in the response
            temperature: Sampling temperature (0.0-1.0)
            tools: Optional capabilities the model may request

        Returns:
            ModelReply with text segments and any tool requests

        Raises:
            ProviderError: The vendor call failed
        """
        ...

    @abstractmethod
    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate the cost in USD for the given token usage."""
        ...
