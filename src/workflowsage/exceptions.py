"""Custom exceptions for Workflow Sage."""


class WorkflowSageError(Exception):
    """Base class for errors raised by the conversation core."""


class DuplicateMessageError(WorkflowSageError):
    """Raised when the same message is resubmitted inside the dedup window."""

    def __init__(self, conversation_id: str, window_seconds: float):
        self.conversation_id = conversation_id
        self.window_seconds = window_seconds
        super().__init__(
            "Duplicate message detected. Please wait before sending the same "
            f"message again ({window_seconds:g}s window)."
        )


class ConversationNotFoundError(WorkflowSageError):
    """Raised when a conversation id has no backing record."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} not found")


class MissingWorkflowDataError(WorkflowSageError):
    """Raised when diagram or recommendation generation runs before extraction."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"No workflow data found for conversation {conversation_id}")


class EmptyRecommendationResultError(WorkflowSageError):
    """Raised when the tool-use loop finishes without producing any text."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(
            f"Failed to generate recommendations for conversation {conversation_id}: "
            "no content in the response"
        )


class ProviderError(WorkflowSageError):
    """Raised when a language model provider call fails."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider} request failed: {message}")
