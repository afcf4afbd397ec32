"""API routes for conversations, messages and web search."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from polymath import crud
from polymath.api.deps import (
    AppSettings,
    CurrentUser,
    DbSession,
    get_chat_service,
    get_search_service,
)
from polymath.exceptions import InvalidInputError
from polymath.schemas.chat import (
    ChatMessageResponse,
    ConversationCreateRequest,
    ConversationCreatedResponse,
    ConversationListResponse,
    ConversationResponse,
    ConversationUpdateRequest,
    ConversationWithMessages,
    ModelResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from polymath.schemas.search import SearchResult
from polymath.services import AVAILABLE_MODELS, ChatService, WebSearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def _validate_model(model: str) -> None:
    if model not in AVAILABLE_MODELS:
        raise InvalidInputError(f"Unsupported model: {model}")


# =============================================================================
# MODELS
# =============================================================================


@router.get("/models", response_model=list[ModelResponse])
async def get_models(user: CurrentUser):
    """List the language models a conversation can use."""
    return [ModelResponse(id=model_id, **info) for model_id, info in AVAILABLE_MODELS.items()]


# =============================================================================
# CONVERSATION MANAGEMENT
# =============================================================================


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    db: DbSession,
    user: CurrentUser,
    limit: int = Query(50, ge=1, le=200),
):
    """List user's conversations, most recently active first."""
    conversations = await crud.conversations.get_conversations_by_user_id(db, user.id, limit=limit)
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations],
        total=len(conversations),
    )


@router.get("/conversations/search", response_model=ConversationListResponse)
async def search_conversations(
    db: DbSession,
    user: CurrentUser,
    query: str = Query(..., min_length=1, max_length=200),
):
    """Find conversations whose title or tags contain the query."""
    conversations = await crud.conversations.search_conversations(db, user.id, query)
    return ConversationListResponse(
        conversations=[ConversationResponse.model_validate(c) for c in conversations],
        total=len(conversations),
    )


@router.post(
    "/conversations",
    response_model=ConversationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    request: ConversationCreateRequest,
    db: DbSession,
    user: CurrentUser,
    settings: AppSettings,
):
    """Create a new chat conversation."""
    model = request.model or settings.llm_model
    _validate_model(model)

    conversation = await crud.conversations.create_conversation(
        db,
        user_id=user.id,
        title=request.title or settings.default_conversation_title,
        model=model,
    )
    return ConversationCreatedResponse(id=conversation.id)


@router.get("/conversations/{conversation_id}", response_model=ConversationWithMessages)
async def get_conversation(
    conversation_id: int,
    db: DbSession,
    user: CurrentUser,
):
    """Get conversation with full message history."""
    conversation = await crud.conversations.get_conversation_by_id(db, conversation_id, user.id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")

    messages = await crud.messages.get_messages_by_conversation_id(db, conversation_id)
    return ConversationWithMessages(
        conversation=ConversationResponse.model_validate(conversation),
        messages=[ChatMessageResponse.model_validate(m) for m in messages],
    )


@router.patch("/conversations/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    conversation_id: int,
    request: ConversationUpdateRequest,
    db: DbSession,
    user: CurrentUser,
):
    """Update title, favorite flag, tags or model."""
    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    if "model" in fields:
        _validate_model(fields["model"])
    if "title" in fields:
        # A user-chosen title is never overwritten by the automatic one
        fields["title_generated"] = True

    updated = await crud.conversations.update_conversation(db, conversation_id, user.id, **fields)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")

    conversation = await crud.conversations.get_conversation_by_id(db, conversation_id, user.id)
    return ConversationResponse.model_validate(conversation)


@router.delete("/conversations/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: int,
    db: DbSession,
    user: CurrentUser,
):
    """Delete conversation and all its messages."""
    deleted = await crud.conversations.delete_conversation(db, conversation_id, user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return None


# =============================================================================
# MESSAGES
# =============================================================================


@router.post("/conversations/{conversation_id}/messages", response_model=SendMessageResponse)
async def send_message(
    conversation_id: int,
    request: SendMessageRequest,
    db: DbSession,
    user: CurrentUser,
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
):
    """
    Send a message and get the assistant's reply.

    With include_web_search, DuckDuckGo and Wikipedia results are given to
    the model as extra context and returned alongside the reply. The first
    exchange also retitles the conversation.
    """
    result = await chat_service.send_message(
        db,
        user_id=user.id,
        conversation_id=conversation_id,
        message=request.message,
        include_web_search=request.include_web_search,
    )
    return SendMessageResponse(
        message_id=result.message_id,
        content=result.content,
        web_search_results=result.web_search_results,
    )


# =============================================================================
# WEB SEARCH
# =============================================================================


@router.get("/web-search", response_model=list[SearchResult])
async def web_search(
    user: CurrentUser,
    search_service: Annotated[WebSearchService, Depends(get_search_service)],
    query: str = Query(..., min_length=1, max_length=500),
):
    """Search DuckDuckGo and Wikipedia. Never fails; providers that error add nothing."""
    return await search_service.search(query)
