"""
Vendor-neutral message history passed whole to every model call.

A transcript is an append-only log of user text, assistant replies (which may
carry tool requests) and tool results. Provider adapters translate it into
their own message shapes.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from workflowsage.models.workflow import Role, Turn


@dataclass(frozen=True)
class ToolRequest:
    """A request from the model to invoke a named capability."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """The caller's answer to a ToolRequest."""

    request_id: str
    name: str
    content: str
    is_error: bool = False


@dataclass(frozen=True)
class TranscriptEntry:
    """One entry in the transcript.

    User entries carry text or tool results; assistant entries carry text
    and optionally the tool requests the model made in that reply.
    """

    role: Role
    text: str = ""
    tool_requests: tuple[ToolRequest, ...] = ()
    tool_results: tuple[ToolResult, ...] = ()


class ConversationTranscript:
    """Append-only ordered log of transcript entries."""

    def __init__(self, entries: Iterable[TranscriptEntry] = ()):
        self._entries: list[TranscriptEntry] = list(entries)

    @classmethod
    def from_turns(cls, turns: Iterable[Turn]) -> "ConversationTranscript":
        """Build a transcript replaying stored chat turns in order."""
        return cls(TranscriptEntry(role=Role(turn.role), text=turn.text) for turn in turns)

    def add_user_text(self, text: str) -> "ConversationTranscript":
        self._entries.append(TranscriptEntry(role=Role.USER, text=text))
        return self

    def add_assistant(
        self, text: str, tool_requests: Iterable[ToolRequest] = ()
    ) -> "ConversationTranscript":
        self._entries.append(
            TranscriptEntry(
                role=Role.ASSISTANT, text=text, tool_requests=tuple(tool_requests)
            )
        )
        return self

    def add_tool_results(self, results: Iterable[ToolResult]) -> "ConversationTranscript":
        self._entries.append(TranscriptEntry(role=Role.USER, tool_results=tuple(results)))
        return self

    @property
    def entries(self) -> tuple[TranscriptEntry, ...]:
        return tuple(self._entries)

    def __iter__(self) -> Iterator[TranscriptEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
