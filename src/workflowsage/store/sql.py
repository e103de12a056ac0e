"""SQLAlchemy-backed chat store."""

import asyncio
import logging
import threading
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from workflowsage.db.connection import SessionLocal, db_session
from workflowsage.db.repositories import ConversationRepository, TurnRepository
from workflowsage.exceptions import ConversationNotFoundError
from workflowsage.models.workflow import (
    Conversation,
    Role,
    Turn,
    WorkflowDocument,
    utcnow,
)
from workflowsage.store.base import ChatStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Tries per append when another writer claims the same turn sequence.
APPEND_ATTEMPTS = 3


class SqlChatStore(ChatStore):
    """Chat store over the relational schema in models.db.

    Each operation opens its own session and runs in a worker thread so the
    event loop is never blocked on database I/O. Appends to one conversation
    are serialized within the process so turn sequence numbers never collide.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    async def _run(self, fn: Callable[[Session], T]) -> T:
        def work() -> T:
            with db_session(self.session_factory) as session:
                return fn(session)

        return await asyncio.to_thread(work)

    async def create_conversation(
        self, owner: Optional[str] = None, title: Optional[str] = None
    ) -> Conversation:
        def work(session: Session) -> Conversation:
            record = ConversationRepository(session).create_conversation(
                owner=owner, title=title
            )
            session.refresh(record)
            return record.to_domain()

        conversation = await self._run(work)
        logger.info(f"Created conversation {conversation.id}")
        return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        def work(session: Session) -> Optional[Conversation]:
            record = ConversationRepository(session).get(conversation_id)
            return record.to_domain() if record else None

        return await self._run(work)

    async def get_turns(self, conversation_id: str) -> list[Turn]:
        def work(session: Session) -> list[Turn]:
            records = TurnRepository(session).get_by_conversation(conversation_id)
            return [record.to_domain() for record in records]

        return await self._run(work)

    async def append_turn(self, conversation_id: str, role: Role, text: str) -> Turn:
        turns = await self._append(conversation_id, [(Role(role), text)])
        return turns[0]

    async def append_exchange(
        self, conversation_id: str, user_text: str, assistant_text: str
    ) -> tuple[Turn, Turn]:
        user, assistant = await self._append(
            conversation_id,
            [(Role.USER, user_text), (Role.ASSISTANT, assistant_text)],
        )
        return user, assistant

    async def _append(
        self, conversation_id: str, entries: list[tuple[Role, str]]
    ) -> list[Turn]:
        def work() -> list[Turn]:
            attempt = 1
            with self._conversation_lock(conversation_id):
                while True:
                    try:
                        with db_session(self.session_factory) as session:
                            return self._insert_turns(session, conversation_id, entries)
                    except IntegrityError:
                        # Another process took the same sequence number.
                        if attempt >= APPEND_ATTEMPTS:
                            raise
                        logger.warning(
                            f"Turn sequence conflict for conversation {conversation_id}, "
                            f"retrying (attempt {attempt})"
                        )
                        attempt += 1

        return await asyncio.to_thread(work)

    @staticmethod
    def _insert_turns(
        session: Session, conversation_id: str, entries: list[tuple[Role, str]]
    ) -> list[Turn]:
        if ConversationRepository(session).get(conversation_id) is None:
            raise ConversationNotFoundError(conversation_id)
        records = TurnRepository(session).append_many(
            conversation_id,
            [(role.value, text) for role, text in entries],
            created_at=utcnow(),
        )
        return [record.to_domain() for record in records]

    def _conversation_lock(self, conversation_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(conversation_id)
            if lock is None:
                lock = self._locks[conversation_id] = threading.Lock()
            return lock

    async def set_phase(self, conversation_id: str, phase: int) -> None:
        await self._set(conversation_id, phase=int(phase))

    async def set_completed(self, conversation_id: str, completed: bool) -> None:
        await self._set(conversation_id, completed=completed)

    async def set_workflow_document(
        self, conversation_id: str, document: WorkflowDocument
    ) -> None:
        await self._set(conversation_id, workflow_json=document)

    async def set_recommendations(self, conversation_id: str, text: str) -> None:
        await self._set(conversation_id, recommendations_markdown=text)

    async def set_title(self, conversation_id: str, title: str) -> None:
        await self._set(conversation_id, title=title)

    async def _set(self, conversation_id: str, **fields: Any) -> None:
        def work(session: Session) -> bool:
            return ConversationRepository(session).set_fields(conversation_id, **fields)

        if not await self._run(work):
            raise ConversationNotFoundError(conversation_id)
