"""Repository for conversations."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from workflowsage.db.repositories.base import BaseRepository
from workflowsage.models.db import ConversationRecord

logger = logging.getLogger(__name__)


class ConversationRepository(BaseRepository[ConversationRecord]):
    """Repository for conversation rows and their mutable phase state."""

    def __init__(self, session: Session):
        super().__init__(ConversationRecord, session)

    def create_conversation(
        self, owner: Optional[str] = None, title: Optional[str] = None
    ) -> ConversationRecord:
        """Create a conversation at the discovery phase."""
        return self.create(owner=owner, title=title)

    def set_fields(self, conversation_id: str, **fields: Any) -> bool:
        """Update columns on a conversation.

        Returns:
            False if the conversation does not exist
        """
        record = self.get(conversation_id)
        if record is None:
            logger.warning(f"Cannot update missing conversation {conversation_id}")
            return False
        self.update(record, **fields)
        return True
