"""
Chat API routes.

Endpoints for starting conversations, sending messages and triggering the
explicit diagram, recommendation and title operations.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from workflowsage.api.schemas import (
    ConversationCreate,
    ConversationDetail,
    DiagramResponse,
    ImplementationPromptRequest,
    ImplementationPromptResponse,
    MessageCreate,
    MessageReply,
    RecommendationsResponse,
    TitleResponse,
)
from workflowsage.conversation import WorkflowOrchestrator
from workflowsage.exceptions import (
    ConversationNotFoundError,
    DuplicateMessageError,
    EmptyRecommendationResultError,
    MissingWorkflowDataError,
    ProviderError,
    WorkflowSageError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> WorkflowOrchestrator:
    """Resolve the orchestrator installed on the application state."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Conversation service is not initialized",
        )
    return orchestrator


def _to_http_error(error: WorkflowSageError) -> HTTPException:
    """Map a core error onto an HTTP response."""
    if isinstance(error, DuplicateMessageError):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"message": str(error), "is_duplicate": True},
        )
    if isinstance(error, ConversationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, MissingWorkflowDataError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, (EmptyRecommendationResultError, ProviderError)):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error)
    )


async def _detail(
    orchestrator: WorkflowOrchestrator, conversation_id: str
) -> ConversationDetail:
    conversation = await orchestrator.store.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Conversation {conversation_id} not found",
        )
    turns = await orchestrator.store.get_turns(conversation_id)
    return ConversationDetail.build(conversation, turns)


@router.post(
    "/chats", response_model=ConversationDetail, status_code=status.HTTP_201_CREATED
)
async def create_chat(
    payload: ConversationCreate,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> ConversationDetail:
    """Start a conversation at the discovery phase with the assistant greeting."""
    conversation = await orchestrator.start_conversation(owner=payload.owner)
    return await _detail(orchestrator, conversation.id)


@router.get("/chats/{conversation_id}", response_model=ConversationDetail)
async def get_chat(
    conversation_id: str,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> ConversationDetail:
    """Get a conversation with all of its turns."""
    return await _detail(orchestrator, conversation_id)


@router.post(
    "/chats/{conversation_id}/messages",
    response_model=MessageReply,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> MessageReply:
    """
    Process a user message and return the assistant reply.

    Returns 429 with ``is_duplicate`` when the same message was accepted
    within the deduplication window.
    """
    logger.info(
        f"Processing message for chat {conversation_id}: {payload.content[:50]!r}"
    )
    try:
        reply = await orchestrator.process_turn(conversation_id, payload.content)
    except WorkflowSageError as e:
        raise _to_http_error(e) from e

    return MessageReply(
        reply=reply, conversation=await _detail(orchestrator, conversation_id)
    )


@router.post(
    "/chats/{conversation_id}/generate-diagram", response_model=DiagramResponse
)
async def generate_diagram(
    conversation_id: str,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> DiagramResponse:
    """Generate flowchart notation and a rendered diagram for the workflow."""
    try:
        result = await orchestrator.generate_diagram(conversation_id)
    except WorkflowSageError as e:
        raise _to_http_error(e) from e

    return DiagramResponse(notation=result.notation, artifact_ref=result.artifact_ref)


@router.post(
    "/chats/{conversation_id}/generate-suggestions",
    response_model=RecommendationsResponse,
)
async def generate_suggestions(
    conversation_id: str,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> RecommendationsResponse:
    """Research AI opportunities for the workflow and complete the conversation."""
    try:
        recommendations = await orchestrator.generate_recommendations(conversation_id)
    except WorkflowSageError as e:
        raise _to_http_error(e) from e

    return RecommendationsResponse(
        recommendations=recommendations,
        conversation=await _detail(orchestrator, conversation_id),
    )


@router.post("/chats/{conversation_id}/generate-title", response_model=TitleResponse)
async def generate_title(
    conversation_id: str,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> TitleResponse:
    """Generate and store a short title from the first user messages."""
    try:
        title = await orchestrator.generate_title(conversation_id)
    except WorkflowSageError as e:
        raise _to_http_error(e) from e

    return TitleResponse(title=title)


@router.post("/implementation-prompt", response_model=ImplementationPromptResponse)
async def create_implementation_prompt(
    payload: ImplementationPromptRequest,
    orchestrator: WorkflowOrchestrator = Depends(get_orchestrator),
) -> ImplementationPromptResponse:
    """Turn an opportunity description into a ready-to-paste implementation prompt."""
    prompt = await orchestrator.generate_implementation_prompt(payload.description)
    return ImplementationPromptResponse(prompt=prompt)
