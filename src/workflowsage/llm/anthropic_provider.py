"""Anthropic language model provider implementation."""

import logging
import time
from typing import Any, Optional

from anthropic import APIError, AsyncAnthropic

from workflowsage.exceptions import ProviderError
from workflowsage.llm.base import LanguageModel, ModelReply, ToolSpec
from workflowsage.llm.logger import LLMLogger, llm_logger
from workflowsage.llm.transcript import (
    ConversationTranscript,
    ToolRequest,
    TranscriptEntry,
)

logger = logging.getLogger(__name__)


# Pricing per 1M tokens
ANTHROPIC_PRICING = {
    "claude-3-7-sonnet-20250219": {"input": 3.00, "output": 15.00},
    "claude-sonnet-4-5-20250514": {"input": 3.00, "output": 15.00},
    "claude-3-5-haiku-20241022": {"input": 0.80, "output": 4.00},
    "claude-3-5-sonnet-20241022": {"input": 3.00, "output": 15.00},
    # Default fallback
    "default": {"input": 3.00, "output": 15.00},
}


class AnthropicProvider(LanguageModel):
    """Anthropic provider using the async Anthropic Python SDK.

    Tools are declared with ``tool_choice=auto``; ``tool_use`` blocks in the
    reply become ToolRequests and ToolResults are sent back as
    ``tool_result`` blocks in a user message.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-7-sonnet-20250219",
        interaction_logger: Optional[LLMLogger] = None,
    ):
        """Initialize the Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Model to use (default: claude-3-7-sonnet-20250219)
            interaction_logger: LLM interaction logger (defaults to the global one)
        """
        if not api_key:
            raise ValueError("Anthropic API key is required")

        self.client = AsyncAnthropic(api_key=api_key)
        self._model = model
        self._llm_logger = interaction_logger or llm_logger
        logger.info(f"Initialized Anthropic provider with model: {model}")

    @property
    def provider_name(self) -> str:
        """Return 'anthropic' as the provider identifier."""
        return "anthropic"

    @property
    def model_name(self) -> str:
        """Return the model identifier."""
        return self._model

    async def complete(
        self,
        system_prompt: str,
        transcript: ConversationTranscript,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        tools: Optional[list[ToolSpec]] = None,
    ) -> ModelReply:
        """Generate a reply using Anthropic's Messages API."""
        request_params: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system_prompt,
            "messages": [self._to_message(entry) for entry in transcript],
        }
        if tools:
            request_params["tools"] = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.input_schema,
                }
                for tool in tools
            ]
            request_params["tool_choice"] = {"type": "auto"}

        request_id = self._llm_logger.log_request(
            provider=self.provider_name,
            model=self._model,
            system_prompt=system_prompt,
            transcript=transcript,
            max_tokens=max_tokens,
            temperature=temperature,
            tool_names=[tool.name for tool in tools or []],
        )

        start_time = time.time()
        try:
            response = await self.client.messages.create(**request_params)
        except APIError as e:
            self._llm_logger.log_error(request_id, e)
            raise ProviderError(self.provider_name, str(e)) from e
        duration_ms = (time.time() - start_time) * 1000

        reply = self._build_reply(response, duration_ms)
        self._llm_logger.log_response(request_id, reply)
        return reply

    def _to_message(self, entry: TranscriptEntry) -> dict[str, Any]:
        """Translate one transcript entry into an Anthropic message."""
        if entry.tool_results:
            return {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": result.request_id,
                        "content": result.content,
                        "is_error": result.is_error,
                    }
                    for result in entry.tool_results
                ],
            }

        if entry.tool_requests:
            blocks: list[dict[str, Any]] = []
            if entry.text:
                blocks.append({"type": "text", "text": entry.text})
            for request in entry.tool_requests:
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": request.id,
                        "name": request.name,
                        "input": request.arguments,
                    }
                )
            return {"role": "assistant", "content": blocks}

        return {"role": entry.role.value, "content": entry.text}

    def _build_reply(self, response: Any, duration_ms: float) -> ModelReply:
        """Build ModelReply from an Anthropic API response."""
        text_segments: list[str] = []
        tool_requests: list[ToolRequest] = []
        for block in response.content or []:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                text_segments.append(block.text)
            elif block_type == "tool_use":
                arguments = block.input if isinstance(block.input, dict) else {}
                tool_requests.append(
                    ToolRequest(id=block.id, name=block.name, arguments=dict(arguments))
                )

        usage = response.usage
        return ModelReply(
            text_segments=text_segments,
            tool_requests=tool_requests,
            stop_reason=response.stop_reason or "unknown",
            model=response.model,
            prompt_tokens=usage.input_tokens if usage else 0,
            completion_tokens=usage.output_tokens if usage else 0,
            duration_ms=duration_ms,
            raw_response=response,
        )

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate cost in USD based on token usage."""
        # Try exact model match first
        pricing = ANTHROPIC_PRICING.get(self._model)

        # Fall back to prefix matching for versioned models
        if pricing is None:
            for model_key, model_pricing in ANTHROPIC_PRICING.items():
                if model_key != "default" and self._model.startswith(
                    model_key.rsplit("-", 1)[0]
                ):
                    pricing = model_pricing
                    break

        if pricing is None:
            pricing = ANTHROPIC_PRICING["default"]

        # Convert from per-million to per-token
        input_cost = prompt_tokens * (pricing["input"] / 1_000_000)
        output_cost = completion_tokens * (pricing["output"] / 1_000_000)

        return input_cost + output_cost
