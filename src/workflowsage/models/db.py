"""
SQLAlchemy database models for Workflow Sage.

These models back the SQL chat store: one row per conversation and one row
per chat turn.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from workflowsage.models.workflow import Conversation, Phase, Role, Turn


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def _new_id() -> str:
    return str(uuid.uuid4())


class ConversationRecord(Base):
    """A chat that maps exactly one workflow."""

    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    owner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phase: Mapped[int] = mapped_column(
        Integer, nullable=False, default=int(Phase.DISCOVERY)
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    workflow_json: Mapped[Optional[dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )
    recommendations_markdown: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    turns: Mapped[list["TurnRecord"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="TurnRecord.sequence",
    )

    def to_domain(self) -> Conversation:
        return Conversation(
            id=self.id,
            phase=self.phase,
            completed=bool(self.completed),
            title=self.title,
            owner=self.owner,
            workflow=self.workflow_json,
            recommendations=self.recommendations_markdown,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class TurnRecord(Base):
    """A single user or assistant turn, ordered by sequence within its chat."""

    __tablename__ = "turns"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    conversation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    conversation: Mapped["ConversationRecord"] = relationship(back_populates="turns")

    __table_args__ = (
        Index("ix_turns_conversation_sequence", "conversation_id", "sequence", unique=True),
    )

    def to_domain(self) -> Turn:
        return Turn(role=Role(self.role), text=self.content, timestamp=self.created_at)
