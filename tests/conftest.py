"""
Pytest configuration and fixtures for Workflow Sage tests.

This module provides scripted stand-ins for the language model and search
collaborators, chat store fixtures and a ready-wired orchestrator.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Generator, Iterable, Optional, Union

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from workflowsage.config import Settings
from workflowsage.conversation import (
    DeduplicationGuard,
    SearchToolBridge,
    WorkflowOrchestrator,
)
from workflowsage.db.connection import build_engine
from workflowsage.llm import ConversationTranscript, LanguageModel, ModelReply, ToolSpec
from workflowsage.llm.transcript import ToolRequest, TranscriptEntry
from workflowsage.models.db import Base
from workflowsage.search.base import SearchProvider, SearchResult
from workflowsage.store import InMemoryChatStore

ScriptItem = Union[str, ModelReply, BaseException]


@dataclass
class ModelCall:
    """One recorded call to ScriptedModel.complete."""

    system_prompt: str
    entries: tuple[TranscriptEntry, ...]
    max_tokens: int
    temperature: float
    tools: list[ToolSpec] = field(default_factory=list)

    @property
    def last_user_text(self) -> str:
        for entry in reversed(self.entries):
            if entry.text and entry.role.value == "user":
                return entry.text
        return ""


class ScriptedModel(LanguageModel):
    """LanguageModel that replays a script of replies.

    Each script item is a reply text, a ModelReply or an exception to raise.
    Once the script is exhausted ``default`` is returned.
    """

    def __init__(self, replies: Iterable[ScriptItem] = (), default: ScriptItem = ""):
        self.replies: list[ScriptItem] = list(replies)
        self.default = default
        self.calls: list[ModelCall] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    @property
    def model_name(self) -> str:
        return "scripted-model"

    def queue(self, *items: ScriptItem) -> "ScriptedModel":
        self.replies.extend(items)
        return self

    async def complete(
        self,
        system_prompt: str,
        transcript: ConversationTranscript,
        max_tokens: int = 2000,
        temperature: float = 0.7,
        tools: Optional[list[ToolSpec]] = None,
    ) -> ModelReply:
        self.calls.append(
            ModelCall(
                system_prompt=system_prompt,
                entries=transcript.entries,
                max_tokens=max_tokens,
                temperature=temperature,
                tools=list(tools or []),
            )
        )
        # Yield so concurrent callers interleave as they would on real I/O
        await asyncio.sleep(0)

        item = self.replies.pop(0) if self.replies else self.default
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, ModelReply):
            return item
        return ModelReply(text_segments=[item] if item else [], stop_reason="end_turn")

    def calculate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        return 0.0


class StaticSearch(SearchProvider):
    """SearchProvider returning fixed results, or raising a fixed error."""

    def __init__(
        self,
        results: Optional[list[SearchResult]] = None,
        error: Optional[BaseException] = None,
    ):
        super().__init__(api_key="test-key")
        self.results = results if results is not None else []
        self.error = error
        self.queries: list[str] = []

    @property
    def provider_name(self) -> str:
        return "static"

    async def _fetch(self, client, query: str) -> list[SearchResult]:
        return list(self.results)

    async def search(self, query: str) -> list[SearchResult]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.results)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def tool_reply(query: str, request_id: str = "toolu_1", text: str = "") -> ModelReply:
    """A model reply requesting one web search."""
    return ModelReply(
        text_segments=[text] if text else [],
        tool_requests=[ToolRequest(id=request_id, name="web_search", arguments={"query": query})],
        stop_reason="tool_use",
    )


SAMPLE_WORKFLOW: dict[str, Any] = {
    "title": "Invoice Approval",
    "start_event": "Supplier emails an invoice",
    "end_event": "Invoice is paid",
    "steps": [
        {"id": "step1", "description": "Log invoice", "actor": "person1", "system": "system1"},
        {"id": "step2", "description": "Approve invoice", "actor": "person2", "system": "system1"},
        {"id": "step3", "description": "Schedule payment", "actor": "person1", "system": "system2"},
    ],
    "people": [
        {"id": "person1", "name": "AP Clerk", "type": "internal"},
        {"id": "person2", "name": "Finance Manager", "type": "internal"},
    ],
    "systems": [
        {"id": "system1", "name": "Shared Inbox", "type": "external"},
        {"id": "system2", "name": "ERP", "type": "internal"},
    ],
    "pain_points": ["Manual data entry", "Approvals stall when managers travel"],
}


def fenced_workflow_reply(document: Optional[dict[str, Any]] = None) -> str:
    """Assistant text embedding a workflow document in a ```json fence."""
    body = json.dumps(document or SAMPLE_WORKFLOW, indent=2)
    return (
        "Thanks for confirming! Here is the workflow:\n\n"
        f"```json\n{body}\n```\n\n"
        "Great! Now that we have the workflow mapped out, would you like me "
        "to generate a diagram of it?"
    )


@pytest.fixture
def sample_workflow() -> dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_WORKFLOW))


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and the filesystem."""
    return Settings(
        _env_file=None,
        llm_logging_enabled=False,
        log_file_enabled=False,
        search_api_key="",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def guard(clock: FakeClock) -> DeduplicationGuard:
    return DeduplicationGuard(window_seconds=10.0, clock=clock)


@pytest.fixture
def store() -> InMemoryChatStore:
    return InMemoryChatStore()


@pytest.fixture
def model() -> ScriptedModel:
    return ScriptedModel(default="Could you tell me more about that step?")


@pytest.fixture
def search_provider() -> StaticSearch:
    return StaticSearch(
        [
            SearchResult(
                title="Invoice automation case study",
                link="https://example.com/invoices",
                snippet="How an SMB cut invoice processing time by 60%.",
            )
        ]
    )


@pytest.fixture
def orchestrator(
    store: InMemoryChatStore,
    model: ScriptedModel,
    search_provider: StaticSearch,
    guard: DeduplicationGuard,
    test_settings: Settings,
) -> WorkflowOrchestrator:
    return WorkflowOrchestrator(
        store=store,
        model=model,
        search=SearchToolBridge(search_provider),
        guard=guard,
        config=test_settings,
    )


@pytest.fixture
def sql_session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory over a fresh SQLite in-memory database.

    StaticPool keeps a single connection so worker threads share the database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Session factory over a SQLite file, one pooled connection per thread."""
    engine = build_engine(f"sqlite:///{tmp_path / 'chats.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
