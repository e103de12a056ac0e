"""OpenAI language model provider implementation."""

import json
import logging
import time
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

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
OPENAI_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    # Default fallback for unknown models
    "default": {"input": 2.50, "output": 10.00},
}


class OpenAIProvider(LanguageModel):
    """OpenAI provider using Chat Completions with function tools."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        interaction_logger: Optional[LLMLogger] = None,
    ):
        """Initialize the OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model to use (default: gpt-4o)
            interaction_logger: LLM interaction logger (defaults to the global one)
        """
        if not api_key:
            raise ValueError("OpenAI API key is required")

        self.client = AsyncOpenAI(api_key=api_key)
        self._model = model
        self._llm_logger = interaction_logger or llm_logger
        logger.info(f"Initialized OpenAI provider with model: {model}")

    @property
    def provider_name(self) -> str:
        """Return 'openai' as the provider identifier."""
        return "openai"

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
        """Generate a reply using OpenAI's Chat Completions API."""
        messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        for entry in transcript:
            messages.extend(self._to_messages(entry))

        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if tools:
            request_params["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.input_schema,
                    },
                }
                for tool in tools
            ]
            request_params["tool_choice"] = "auto"

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
            response = await self.client.chat.completions.create(**request_params)
        except OpenAIError as e:
            self._llm_logger.log_error(request_id, e)
            raise ProviderError(self.provider_name, str(e)) from e
        duration_ms = (time.time() - start_time) * 1000

        reply = self._build_reply(response, duration_ms)
        self._llm_logger.log_response(request_id, reply)
        return reply

    def _to_messages(self, entry: TranscriptEntry) -> list[dict[str, Any]]:
        """Translate one transcript entry into OpenAI chat messages.

        Tool results expand to one ``tool`` message per result.
        """
        if entry.tool_results:
            return [
                {
                    "role": "tool",
                    "tool_call_id": result.request_id,
                    "content": result.content,
                }
                for result in entry.tool_results
            ]

        if entry.tool_requests:
            return [
                {
                    "role": "assistant",
                    "content": entry.text or None,
                    "tool_calls": [
                        {
                            "id": request.id,
                            "type": "function",
                            "function": {
                                "name": request.name,
                                "arguments": json.dumps(request.arguments),
                            },
                        }
                        for request in entry.tool_requests
                    ],
                }
            ]

        return [{"role": entry.role.value, "content": entry.text}]

    def _build_reply(self, response: Any, duration_ms: float) -> ModelReply:
        """Build ModelReply from an OpenAI API response."""
        choice = response.choices[0]
        message = choice.message

        text_segments = [message.content] if message.content else []
        tool_requests: list[ToolRequest] = []
        for call in message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning(
                    f"Unparseable tool arguments for {call.function.name}: "
                    f"{call.function.arguments!r}"
                )
                arguments = {}
            tool_requests.append(
                ToolRequest(
                    id=call.id,
                    name=call.function.name,
                    arguments=arguments if isinstance(arguments, dict) else {},
                )
            )

        usage = response.usage
        return ModelReply(
            text_segments=text_segments,
            tool_requests=tool_requests,
            stop_reason=choice.finish_reason or "unknown",
            model=response.model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            duration_ms=duration_ms,
            raw_response=response,
        )

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate cost in USD based on token usage."""
        pricing = OPENAI_PRICING.get(self._model, OPENAI_PRICING["default"])

        # Convert from per-million to per-token
        input_cost = prompt_tokens * (pricing["input"] / 1_000_000)
        output_cost = completion_tokens * (pricing["output"] / 1_000_000)

        return input_cost + output_cost
