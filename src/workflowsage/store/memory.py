"""Process-local chat store, used by tests and the interactive CLI."""

import copy
import uuid
from dataclasses import replace
from typing import Any, Optional

from workflowsage.exceptions import ConversationNotFoundError
from workflowsage.models.workflow import (
    Conversation,
    Role,
    Turn,
    WorkflowDocument,
    utcnow,
)
from workflowsage.store.base import ChatStore


class InMemoryChatStore(ChatStore):
    """Dictionary-backed store.

    Every method runs without suspending, so reads and writes of a single
    conversation are atomic with respect to the event loop.
    """

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._turns: dict[str, list[Turn]] = {}

    async def create_conversation(
        self, owner: Optional[str] = None, title: Optional[str] = None
    ) -> Conversation:
        conversation = Conversation(id=str(uuid.uuid4()), owner=owner, title=title)
        self._conversations[conversation.id] = conversation
        self._turns[conversation.id] = []
        return replace(conversation)

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            return None
        return replace(conversation, workflow=copy.deepcopy(conversation.workflow))

    async def get_turns(self, conversation_id: str) -> list[Turn]:
        return list(self._turns.get(conversation_id, []))

    async def append_turn(self, conversation_id: str, role: Role, text: str) -> Turn:
        self._require(conversation_id)
        turn = Turn(role=Role(role), text=text)
        self._turns[conversation_id].append(turn)
        self._touch(conversation_id)
        return turn

    async def append_exchange(
        self, conversation_id: str, user_text: str, assistant_text: str
    ) -> tuple[Turn, Turn]:
        self._require(conversation_id)
        user = Turn(role=Role.USER, text=user_text)
        assistant = Turn(role=Role.ASSISTANT, text=assistant_text)
        self._turns[conversation_id].extend([user, assistant])
        self._touch(conversation_id)
        return user, assistant

    async def set_phase(self, conversation_id: str, phase: int) -> None:
        self._update(conversation_id, phase=phase)

    async def set_completed(self, conversation_id: str, completed: bool) -> None:
        self._update(conversation_id, completed=completed)

    async def set_workflow_document(
        self, conversation_id: str, document: WorkflowDocument
    ) -> None:
        self._update(conversation_id, workflow=copy.deepcopy(document))

    async def set_recommendations(self, conversation_id: str, text: str) -> None:
        self._update(conversation_id, recommendations=text)

    async def set_title(self, conversation_id: str, title: str) -> None:
        self._update(conversation_id, title=title)

    def _require(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def _update(self, conversation_id: str, **fields: Any) -> None:
        conversation = self._require(conversation_id)
        for key, value in fields.items():
            setattr(conversation, key, value)
        self._touch(conversation_id)

    def _touch(self, conversation_id: str) -> None:
        self._conversations[conversation_id].updated_at = utcnow()
