"""Data models for Workflow Sage."""

from workflowsage.models.workflow import (
    LIST_FIELDS,
    REQUIRED_FIELDS,
    Conversation,
    Phase,
    Role,
    Turn,
    WorkflowDocument,
)

__all__ = [
    "Conversation",
    "LIST_FIELDS",
    "Phase",
    "REQUIRED_FIELDS",
    "Role",
    "Turn",
    "WorkflowDocument",
]
