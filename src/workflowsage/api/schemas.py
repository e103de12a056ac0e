"""
API schemas for Workflow Sage.

Pydantic models for request/response validation.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from workflowsage.models.workflow import Conversation, Turn

# ===== Requests =====


class ConversationCreate(BaseModel):
    """Request schema for starting a conversation."""

    owner: Optional[str] = None


class MessageCreate(BaseModel):
    """Request schema for sending a user message."""

    content: str = Field(..., min_length=1)


class ImplementationPromptRequest(BaseModel):
    """Request schema for turning an opportunity into an implementation prompt."""

    description: str = Field(..., min_length=1)


# ===== Responses =====


class TurnResponse(BaseModel):
    """Response schema for a chat turn."""

    role: str
    content: str
    timestamp: datetime

    @classmethod
    def from_turn(cls, turn: Turn) -> "TurnResponse":
        return cls(role=turn.role.value, content=turn.text, timestamp=turn.timestamp)


class ConversationResponse(BaseModel):
    """Response schema for a conversation without its turns."""

    id: str
    title: Optional[str] = None
    owner: Optional[str] = None
    phase: int
    completed: bool = False
    workflow: Optional[dict[str, Any]] = None
    recommendations: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ConversationDetail(ConversationResponse):
    """Conversation with its ordered turns."""

    turns: list[TurnResponse] = Field(default_factory=list)

    @classmethod
    def build(cls, conversation: Conversation, turns: list[Turn]) -> "ConversationDetail":
        detail = cls.model_validate(conversation, from_attributes=True)
        detail.turns = [TurnResponse.from_turn(turn) for turn in turns]
        return detail


class MessageReply(BaseModel):
    """Assistant reply to a user message plus the updated conversation."""

    reply: str
    conversation: ConversationDetail


class DiagramResponse(BaseModel):
    """Flowchart notation and the rendered artifact reference."""

    notation: str
    artifact_ref: str


class RecommendationsResponse(BaseModel):
    """Generated AI opportunities plus the updated conversation."""

    recommendations: str
    conversation: ConversationDetail


class TitleResponse(BaseModel):
    title: str


class ImplementationPromptResponse(BaseModel):
    prompt: str


class HealthResponse(BaseModel):
    status: str
    database: str
