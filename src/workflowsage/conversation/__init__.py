"""Conversation core: extraction, intent, deduplication, tool loop and orchestration."""

from workflowsage.conversation.dedup import DeduplicationGuard
from workflowsage.conversation.extraction import (
    DEFAULT_MATCHERS,
    PatternMatcher,
    WorkflowExtractor,
    try_extract,
    validate_workflow,
)
from workflowsage.conversation.intent import wants_diagram, wants_suggestions
from workflowsage.conversation.orchestrator import WorkflowOrchestrator
from workflowsage.conversation.tools import (
    WEB_SEARCH_TOOL,
    SearchToolBridge,
    ToolLoopResult,
    run_tool_loop,
)

__all__ = [
    "DEFAULT_MATCHERS",
    "DeduplicationGuard",
    "PatternMatcher",
    "SearchToolBridge",
    "ToolLoopResult",
    "WEB_SEARCH_TOOL",
    "WorkflowExtractor",
    "WorkflowOrchestrator",
    "run_tool_loop",
    "try_extract",
    "validate_workflow",
    "wants_diagram",
    "wants_suggestions",
]
