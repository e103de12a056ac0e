"""
Search tool bridge and the bounded tool-use loop.

The recommendation step lets the model request web searches before it
answers. The loop satisfies each request, feeds the results back through the
transcript and re-invokes the model, up to a fixed number of rounds. When the
bound is hit the last reply is used as-is.
"""

import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from workflowsage.llm.base import LanguageModel, ModelReply, ToolSpec
from workflowsage.llm.transcript import ConversationTranscript, ToolRequest, ToolResult
from workflowsage.search.base import SearchProvider, SearchResult

logger = logging.getLogger(__name__)

ToolHandler = Callable[[ToolRequest], Awaitable[ToolResult]]

WEB_SEARCH_TOOL = ToolSpec(
    name="web_search",
    description=(
        "Search the web for AI implementation case studies, best practices, "
        "and industry research"
    ),
    input_schema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": (
                    "The search query to find information about AI "
                    "implementations and industry best practices"
                ),
            }
        },
        "required": ["query"],
    },
)


class SearchToolBridge:
    """Exposes a SearchProvider as the ``web_search`` tool.

    Provider failures never escape: a failed search is reported to the model
    as an empty result list so one flaky call does not abort the loop.
    """

    def __init__(self, provider: SearchProvider):
        self.provider = provider

    @property
    def spec(self) -> ToolSpec:
        return WEB_SEARCH_TOOL

    async def search(self, query: str) -> list[SearchResult]:
        """Search, downgrading any provider failure to an empty list."""
        try:
            return await self.provider.search(query)
        except Exception as e:
            logger.warning(f"Web search failed for {query!r}: {e}", exc_info=True)
            return []

    async def handle(self, request: ToolRequest) -> ToolResult:
        """Answer a ``web_search`` request from the model."""
        query = request.arguments.get("query")
        if not isinstance(query, str) or not query.strip():
            return ToolResult(
                request_id=request.id,
                name=request.name,
                content=json.dumps({"error": "web_search requires a non-empty 'query'"}),
                is_error=True,
            )

        logger.info(f"Performing web search for query: {query!r}")
        results = await self.search(query)
        return ToolResult(
            request_id=request.id,
            name=request.name,
            content=json.dumps({"results": [result.to_dict() for result in results]}),
        )


@dataclass
class ToolLoopResult:
    """Outcome of a tool-use loop run."""

    text: str
    reply: ModelReply
    rounds: int
    transcript: ConversationTranscript

    @property
    def hit_round_limit(self) -> bool:
        return self.reply.requests_tools


async def run_tool_loop(
    model: LanguageModel,
    system_prompt: str,
    transcript: ConversationTranscript,
    tools: dict[str, ToolHandler],
    specs: list[ToolSpec],
    max_rounds: int = 5,
    max_tokens: int = 4000,
    temperature: float = 0.7,
) -> ToolLoopResult:
    """Drive the model until it answers without tool requests or rounds run out.

    A round is one batch of tool requests satisfied and sent back to the
    model, so the model is called at most ``max_rounds + 1`` times. Model
    errors propagate and abort the loop.

    Args:
        model: Language model to call
        system_prompt: Instructions repeated on every call
        transcript: Starting history; extended in place with requests and results
        tools: Handlers by tool name
        specs: Tool declarations sent to the model
        max_rounds: Maximum number of tool rounds
        max_tokens: Output token limit per call
        temperature: Sampling temperature per call

    Returns:
        ToolLoopResult carrying the joined text of the final reply
    """

    async def call() -> ModelReply:
        return await model.complete(
            system_prompt=system_prompt,
            transcript=transcript,
            max_tokens=max_tokens,
            temperature=temperature,
            tools=specs,
        )

    reply = await call()
    rounds = 0

    while reply.requests_tools and rounds < max_rounds:
        rounds += 1
        logger.info(
            f"Processing tool round {rounds} with {len(reply.tool_requests)} request(s)"
        )

        results: list[ToolResult] = []
        for request in reply.tool_requests:
            results.append(await _dispatch(tools.get(request.name), request))

        transcript.add_assistant(reply.text, reply.tool_requests)
        transcript.add_tool_results(results)
        reply = await call()

    if reply.requests_tools:
        logger.warning(
            f"Tool round limit ({max_rounds}) reached; using last reply as-is"
        )

    logger.info(f"Finished tool loop after {rounds} round(s)")
    return ToolLoopResult(text=reply.text, reply=reply, rounds=rounds, transcript=transcript)


async def _dispatch(handler: Optional[ToolHandler], request: ToolRequest) -> ToolResult:
    if handler is None:
        logger.warning(f"Model requested unknown tool {request.name!r}")
        return ToolResult(
            request_id=request.id,
            name=request.name,
            content=json.dumps({"error": f"Unknown tool: {request.name}"}),
            is_error=True,
        )
    return await handler(request)
