"""
Repository layer for database operations.

Provides a clean API for CRUD operations on database models.
"""

from workflowsage.db.repositories.base import BaseRepository
from workflowsage.db.repositories.conversation import ConversationRepository
from workflowsage.db.repositories.turn import TurnRepository

__all__ = [
    "BaseRepository",
    "ConversationRepository",
    "TurnRepository",
]
