"""Chat persistence backends used by the conversation core."""

from workflowsage.store.base import ChatStore
from workflowsage.store.memory import InMemoryChatStore
from workflowsage.store.sql import SqlChatStore

__all__ = [
    "ChatStore",
    "InMemoryChatStore",
    "SqlChatStore",
]
