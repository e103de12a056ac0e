"""Repository for chat turns."""

from datetime import datetime
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from workflowsage.db.repositories.base import BaseRepository
from workflowsage.models.db import TurnRecord


class TurnRepository(BaseRepository[TurnRecord]):
    """Append-only access to the ordered turns of a conversation.

    Sequence numbers are read and assigned inside the caller's transaction.
    Callers that append from several threads must serialize appends per
    conversation; the unique index on (conversation_id, sequence) rejects
    the loser of any race that slips through.
    """

    def __init__(self, session: Session):
        super().__init__(TurnRecord, session)

    def get_by_conversation(self, conversation_id: str) -> list[TurnRecord]:
        """Get all turns of a conversation in chronological order."""
        stmt = (
            select(TurnRecord)
            .where(TurnRecord.conversation_id == conversation_id)
            .order_by(TurnRecord.sequence.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def last_sequence(self, conversation_id: str) -> int:
        """Highest sequence used by a conversation, 0 when it has no turns."""
        last = self.session.execute(
            select(func.max(TurnRecord.sequence)).where(
                TurnRecord.conversation_id == conversation_id
            )
        ).scalar()
        return last or 0

    def append(
        self, conversation_id: str, role: str, content: str, created_at: datetime
    ) -> TurnRecord:
        """Append a turn after the current last one."""
        return self.append_many(conversation_id, [(role, content)], created_at)[0]

    def append_many(
        self,
        conversation_id: str,
        entries: Iterable[tuple[str, str]],
        created_at: datetime,
    ) -> list[TurnRecord]:
        """Append (role, content) pairs with consecutive sequence numbers."""
        sequence = self.last_sequence(conversation_id)
        records = []
        for role, content in entries:
            sequence += 1
            records.append(
                self.create(
                    conversation_id=conversation_id,
                    sequence=sequence,
                    role=role,
                    content=content,
                    created_at=created_at,
                )
            )
        return records
