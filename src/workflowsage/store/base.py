"""Abstract chat store consumed by the conversation orchestrator."""

from abc import ABC, abstractmethod
from typing import Optional

from workflowsage.models.workflow import Conversation, Role, Turn, WorkflowDocument


class ChatStore(ABC):
    """Asynchronous persistence contract for conversations and their turns.

    Implementations must be strongly consistent per conversation: turns are
    returned in the order they were appended. Setters and the append methods raise
    ConversationNotFoundError for unknown ids.
    """

    @abstractmethod
    async def create_conversation(
        self, owner: Optional[str] = None, title: Optional[str] = None
    ) -> Conversation:
        """Create an empty conversation at the discovery phase."""
        ...

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Return the conversation, or None if it does not exist."""
        ...

    @abstractmethod
    async def get_turns(self, conversation_id: str) -> list[Turn]:
        """Return all turns in chronological order."""
        ...

    @abstractmethod
    async def append_turn(self, conversation_id: str, role: Role, text: str) -> Turn:
        """Append a turn and return it."""
        ...

    @abstractmethod
    async def append_exchange(
        self, conversation_id: str, user_text: str, assistant_text: str
    ) -> tuple[Turn, Turn]:
        """Append a user turn and its assistant reply as one adjacent pair.

        Both turns are written together or not at all, and no other turn of
        the conversation can land between them.
        """
        ...

    @abstractmethod
    async def set_phase(self, conversation_id: str, phase: int) -> None: ...

    @abstractmethod
    async def set_completed(self, conversation_id: str, completed: bool) -> None: ...

    @abstractmethod
    async def set_workflow_document(
        self, conversation_id: str, document: WorkflowDocument
    ) -> None: ...

    @abstractmethod
    async def set_recommendations(self, conversation_id: str, text: str) -> None: ...

    @abstractmethod
    async def set_title(self, conversation_id: str, title: str) -> None: ...
