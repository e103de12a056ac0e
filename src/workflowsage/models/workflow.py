"""
Conversation domain models.

Plain dataclasses shared by the conversation core, the chat stores and the
API layer. The workflow document itself is kept as the JSON-shaped dict that
the model emits, so that what is parsed out of assistant text and what is
stored or returned over the wire stay identical.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

# JSON-shaped workflow record extracted from assistant text
WorkflowDocument = dict[str, Any]

REQUIRED_FIELDS: tuple[str, ...] = (
    "title",
    "start_event",
    "end_event",
    "steps",
    "people",
    "systems",
    "pain_points",
)

LIST_FIELDS: tuple[str, ...] = ("steps", "people", "systems", "pain_points")

TEXT_FIELDS: tuple[str, ...] = ("title", "start_event", "end_event")


class Phase(enum.IntEnum):
    """Ordered conversation phases. Values match the stored integers."""

    DISCOVERY = 1
    DIAGRAM = 2
    OPPORTUNITIES = 3

    @classmethod
    def coerce(cls, value: Any) -> Optional["Phase"]:
        """Map a stored value to a Phase, or None if it is not a known phase."""
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return None


class Role(str, enum.Enum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """A single immutable chat turn."""

    role: Role
    text: str
    timestamp: datetime = field(default_factory=utcnow)


@dataclass
class Conversation:
    """Mutable conversation state owned by a chat store."""

    id: str
    phase: int = Phase.DISCOVERY
    completed: bool = False
    title: Optional[str] = None
    owner: Optional[str] = None
    workflow: Optional[WorkflowDocument] = None
    recommendations: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
