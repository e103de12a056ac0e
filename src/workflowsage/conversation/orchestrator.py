"""
Phase-driven conversation orchestrator.

Every conversation moves through three ordered phases:

1. DISCOVERY - the model interviews the user. The phase advances only when a
   reply carries a workflow document that passes structured extraction.
2. DIAGRAM - an affirmative answer about the diagram advances the phase;
   anything else is routed back through discovery so the user can keep
   refining the workflow.
3. OPPORTUNITIES - an affirmative answer about suggestions gets a canned
   acknowledgment; anything else is answered by a follow-up completion.

Diagram and recommendation generation are explicit operations invoked by a
collaborator, not inferred from chat text. Phase never decreases.
"""

import json
import logging
from typing import Optional

from workflowsage.config import Settings, settings as default_settings
from workflowsage.conversation import prompts
from workflowsage.conversation.dedup import DeduplicationGuard
from workflowsage.conversation.extraction import WorkflowExtractor
from workflowsage.conversation.intent import wants_diagram, wants_suggestions
from workflowsage.conversation.tools import SearchToolBridge, run_tool_loop
from workflowsage.diagram import (
    DiagramResult,
    build_flowchart,
    clean_notation,
    render_artifact,
)
from workflowsage.exceptions import (
    ConversationNotFoundError,
    EmptyRecommendationResultError,
    MissingWorkflowDataError,
    ProviderError,
)
from workflowsage.llm import ConversationTranscript, LanguageModel, create_provider
from workflowsage.models.workflow import Conversation, Phase, Role, Turn
from workflowsage.search import create_search_provider
from workflowsage.store.base import ChatStore

logger = logging.getLogger(__name__)


def _last_assistant_text(turns: list[Turn]) -> str:
    for turn in reversed(turns):
        if turn.role == Role.ASSISTANT:
            return turn.text
    return ""


def _user_turns(turns: list[Turn]) -> list[Turn]:
    return [turn for turn in turns if turn.role == Role.USER]


class WorkflowOrchestrator:
    """Drives conversations through the discovery, diagram and opportunity phases.

    Collaborators are injected: a ChatStore for persistence, a LanguageModel
    for completions, a SearchToolBridge for the recommendation tool loop and
    a DeduplicationGuard shared by every turn processed in this process.
    """

    def __init__(
        self,
        store: ChatStore,
        model: LanguageModel,
        search: SearchToolBridge,
        guard: Optional[DeduplicationGuard] = None,
        extractor: Optional[WorkflowExtractor] = None,
        config: Optional[Settings] = None,
    ):
        """Initialize the orchestrator.

        Args:
            store: Chat persistence backend
            model: Language model used for every completion
            search: Web search tool exposed to the model during recommendations
            guard: Deduplication guard (built from config if omitted)
            extractor: Workflow document extractor (default matchers if omitted)
            config: Settings for token limits, temperatures and titles
        """
        self.config = config or default_settings
        self.store = store
        self.model = model
        self.search = search
        self.guard = guard or DeduplicationGuard(
            window_seconds=self.config.dedup_window_seconds,
            prefix_length=self.config.dedup_prefix_length,
            cleanup_threshold=self.config.dedup_cleanup_threshold,
        )
        self.extractor = extractor or WorkflowExtractor()

    @classmethod
    def from_settings(
        cls, store: ChatStore, config: Optional[Settings] = None
    ) -> "WorkflowOrchestrator":
        """Build an orchestrator with the model and search provider from settings.

        Raises:
            ValueError: The configured model provider has no API key
        """
        config = config or default_settings
        model = create_provider(
            provider_type=config.llm_provider,  # type: ignore[arg-type]
            api_key=config.llm_api_key,
            model=config.llm_model,
        )
        search = SearchToolBridge(create_search_provider(config))
        return cls(store=store, model=model, search=search, config=config)

    async def _require_conversation(self, conversation_id: str) -> Conversation:
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    async def _advance_phase(self, conversation: Conversation, phase: Phase) -> None:
        """Move the conversation forward to ``phase``; never moves it back."""
        if int(conversation.phase) >= phase:
            return
        await self.store.set_phase(conversation.id, int(phase))
        logger.info(
            f"Updated conversation {conversation.id} from phase "
            f"{int(conversation.phase)} to {int(phase)} ({phase.name})"
        )
        conversation.phase = phase

    async def start_conversation(self, owner: Optional[str] = None) -> Conversation:
        """Create a conversation at DISCOVERY with the assistant greeting."""
        conversation = await self.store.create_conversation(
            owner=owner, title=self.config.default_chat_title
        )
        await self.store.append_turn(conversation.id, Role.ASSISTANT, prompts.GREETING)
        logger.info(f"Started conversation {conversation.id}")
        return conversation

    async def process_turn(self, conversation_id: str, user_text: str) -> str:
        """Process one user message and return the assistant reply.

        Concurrent submissions of the same message share one processing run;
        a repeat of an accepted message inside the dedup window is rejected.
        The user and assistant turns are appended only after a reply has been
        produced.

        Raises:
            DuplicateMessageError: Same message accepted within the dedup window
            ConversationNotFoundError: Unknown conversation id
            ProviderError: The language model call failed
        """
        return await self.guard.run(
            conversation_id,
            user_text,
            lambda: self._process_turn(conversation_id, user_text),
        )

    async def _process_turn(self, conversation_id: str, user_text: str) -> str:
        conversation = await self._require_conversation(conversation_id)
        turns = await self.store.get_turns(conversation_id)
        phase = Phase.coerce(conversation.phase)
        last_assistant = _last_assistant_text(turns)

        logger.info(f"Processing message for conversation {conversation_id} in phase {phase}")

        if phase is Phase.DIAGRAM and wants_diagram(user_text, last_assistant):
            reply = prompts.DIAGRAM_ACKNOWLEDGMENT
            await self._advance_phase(conversation, Phase.OPPORTUNITIES)
        elif phase is Phase.OPPORTUNITIES:
            if wants_suggestions(user_text, last_assistant):
                logger.info(f"User requested AI suggestions for conversation {conversation_id}")
                reply = prompts.SUGGESTIONS_ACKNOWLEDGMENT
            else:
                reply = await self._followup(turns, user_text)
        else:
            if phase is None:
                logger.warning(
                    f"Unknown phase {conversation.phase!r} for conversation "
                    f"{conversation_id}; using discovery"
                )
            reply = await self._discovery(conversation, turns, user_text)

        await self.store.append_exchange(conversation_id, user_text, reply)

        await self._maybe_generate_title(conversation, len(_user_turns(turns)) + 1)
        return reply

    async def _discovery(
        self, conversation: Conversation, turns: list[Turn], user_text: str
    ) -> str:
        """Run one discovery exchange and apply the extraction gate."""
        model_text = user_text
        if not _user_turns(turns):
            model_text = f"{user_text}\n\n{prompts.FIRST_TURN_HINT}"

        transcript = ConversationTranscript.from_turns(turns).add_user_text(model_text)
        response = await self.model.complete(
            system_prompt=prompts.DISCOVERY_SYSTEM_PROMPT,
            transcript=transcript,
            max_tokens=self.config.discovery_max_tokens,
            temperature=self.config.discovery_temperature,
        )
        reply = response.text or prompts.DISCOVERY_FALLBACK_REPLY

        document = self.extractor.try_extract(response.text)
        if document is not None:
            await self.store.set_workflow_document(conversation.id, document)
            conversation.workflow = document
            await self._advance_phase(conversation, Phase.DIAGRAM)
            logger.info(f"Extracted workflow data for conversation {conversation.id}")

        return reply

    async def _followup(self, turns: list[Turn], user_text: str) -> str:
        transcript = ConversationTranscript.from_turns(turns).add_user_text(user_text)
        response = await self.model.complete(
            system_prompt=prompts.FOLLOWUP_SYSTEM_PROMPT,
            transcript=transcript,
            max_tokens=self.config.followup_max_tokens,
            temperature=self.config.followup_temperature,
        )
        return response.first_text or prompts.FOLLOWUP_FALLBACK_REPLY

    async def _maybe_generate_title(self, conversation: Conversation, user_turns: int) -> None:
        if user_turns < self.config.title_after_user_turns:
            return
        if conversation.title and conversation.title != self.config.default_chat_title:
            return
        logger.info(
            f"Generating title for conversation {conversation.id} after {user_turns} user messages"
        )
        await self.generate_title(conversation.id)

    async def generate_diagram(self, conversation_id: str) -> DiagramResult:
        """Produce flowchart notation and a rendered artifact for the workflow.

        Never changes the conversation phase.

        Raises:
            ConversationNotFoundError: Unknown conversation id
            MissingWorkflowDataError: No workflow document has been extracted yet
            ProviderError: The language model call failed
        """
        conversation = await self._require_conversation(conversation_id)
        if not conversation.workflow:
            raise MissingWorkflowDataError(conversation_id)

        workflow_json = json.dumps(conversation.workflow, indent=2)
        transcript = ConversationTranscript().add_user_text(
            prompts.diagram_request(workflow_json)
        )
        response = await self.model.complete(
            system_prompt=prompts.DIAGRAM_SYSTEM_PROMPT,
            transcript=transcript,
            max_tokens=self.config.diagram_max_tokens,
            temperature=self.config.diagram_temperature,
        )

        notation = clean_notation(response.text)
        if not notation:
            logger.warning(
                f"Model returned no diagram notation for conversation {conversation_id}; "
                "building it from the workflow document"
            )
            notation = build_flowchart(conversation.workflow)

        artifact_ref = render_artifact(notation, conversation.workflow)
        logger.info(f"Generated diagram for conversation {conversation_id}")
        return DiagramResult(notation=notation, artifact_ref=artifact_ref)

    async def generate_recommendations(self, conversation_id: str) -> str:
        """Research and store AI opportunities for the conversation's workflow.

        Runs the bounded web-search tool loop. On success the recommendations
        are stored, the conversation is marked completed and the phase is at
        OPPORTUNITIES.

        Raises:
            ConversationNotFoundError: Unknown conversation id
            MissingWorkflowDataError: No workflow document has been extracted yet
            EmptyRecommendationResultError: The loop produced no text
            ProviderError: The language model call failed
        """
        conversation = await self._require_conversation(conversation_id)
        if not conversation.workflow:
            raise MissingWorkflowDataError(conversation_id)

        workflow_json = json.dumps(conversation.workflow, indent=2)
        transcript = ConversationTranscript().add_user_text(
            prompts.opportunities_request(workflow_json)
        )

        logger.info(f"Generating recommendations for conversation {conversation_id}")
        result = await run_tool_loop(
            model=self.model,
            system_prompt=prompts.OPPORTUNITIES_SYSTEM_PROMPT,
            transcript=transcript,
            tools={self.search.spec.name: self.search.handle},
            specs=[self.search.spec],
            max_rounds=self.config.max_tool_rounds,
            max_tokens=self.config.recommendations_max_tokens,
            temperature=self.config.recommendations_temperature,
        )

        text = result.text.strip()
        if not text:
            raise EmptyRecommendationResultError(conversation_id)

        await self.store.set_recommendations(conversation_id, text)
        await self.store.set_completed(conversation_id, True)
        await self._advance_phase(conversation, Phase.OPPORTUNITIES)
        logger.info(
            f"Stored recommendations for conversation {conversation_id} "
            f"after {result.rounds} tool round(s)"
        )
        return text

    async def generate_title(self, conversation_id: str) -> str:
        """Generate a short title from the first user messages and store it.

        Model failures and out-of-range titles fall back to the default title.

        Raises:
            ConversationNotFoundError: Unknown conversation id
        """
        await self._require_conversation(conversation_id)
        default_title = self.config.default_chat_title

        user_turns = _user_turns(await self.store.get_turns(conversation_id))
        first_messages = user_turns[: self.config.title_after_user_turns]
        if not first_messages:
            return default_title

        content = "\n\n".join(turn.text for turn in first_messages)
        transcript = ConversationTranscript().add_user_text(content)
        try:
            response = await self.model.complete(
                system_prompt=prompts.TITLE_SYSTEM_PROMPT,
                transcript=transcript,
                max_tokens=self.config.title_max_tokens,
                temperature=self.config.title_temperature,
            )
        except ProviderError as e:
            logger.error(f"Error generating title for conversation {conversation_id}: {e}")
            return default_title

        title = (response.first_text or "").strip().strip("\"'").strip()
        if not (self.config.title_min_length <= len(title) <= self.config.title_max_length):
            logger.warning(f"Rejected generated title {title!r}; using default")
            title = default_title

        await self.store.set_title(conversation_id, title)
        logger.info(f"Set title to {title!r} for conversation {conversation_id}")
        return title

    async def generate_implementation_prompt(self, description: str) -> str:
        """Turn an opportunity description into a ready-to-paste prompt.

        Stateless. Returns fallback text instead of raising on model failure.
        """
        transcript = ConversationTranscript().add_user_text(
            prompts.implementation_prompt_request(description)
        )
        try:
            response = await self.model.complete(
                system_prompt=prompts.IMPLEMENTATION_PROMPT_SYSTEM_PROMPT,
                transcript=transcript,
                max_tokens=self.config.implementation_prompt_max_tokens,
                temperature=self.config.implementation_prompt_temperature,
            )
        except ProviderError as e:
            logger.error(f"Error generating implementation prompt: {e}")
            return prompts.IMPLEMENTATION_PROMPT_ERROR

        return response.first_text or prompts.IMPLEMENTATION_PROMPT_FALLBACK
