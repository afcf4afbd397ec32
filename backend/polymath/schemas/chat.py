"""Pydantic schemas for chat operations."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from polymath.schemas.base import BaseSchema, IDMixin, TimestampMixin
from polymath.schemas.search import SearchResult


# Request schemas
class ConversationCreateRequest(BaseModel):
    """Request to create a new conversation."""

    title: str | None = Field(None, max_length=500)
    model: str | None = None


class SendMessageRequest(BaseModel):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=32000)
    include_web_search: bool = False

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message must not be empty")
        return value


class ConversationUpdateRequest(BaseModel):
    """Partial update; only provided fields change."""

    title: str | None = Field(None, min_length=1, max_length=500)
    is_favorite: int | None = Field(None, ge=0, le=1)
    tags: list[str] | None = None
    model: str | None = None


# Response schemas
class ModelResponse(BaseModel):
    """One entry of the model catalog."""

    id: str
    name: str
    description: str
    max_tokens: int


class ConversationCreatedResponse(BaseModel):
    id: int


class ConversationResponse(BaseSchema, IDMixin, TimestampMixin):
    """Conversation response."""

    user_id: int
    title: str
    model: str
    is_favorite: int
    tags: list[str]


class ChatMessageResponse(BaseSchema, IDMixin):
    """Chat message response."""

    conversation_id: int
    role: str
    content: str
    metadata: dict | None = Field(None, validation_alias="metadata_json")
    created_at: datetime


class ConversationWithMessages(BaseModel):
    """Conversation with message history."""

    conversation: ConversationResponse
    messages: list[ChatMessageResponse]


class ConversationListResponse(BaseModel):
    """List of conversations."""

    conversations: list[ConversationResponse]
    total: int


class SendMessageResponse(BaseModel):
    """Assistant reply for one user turn."""

    message_id: int
    content: str
    web_search_results: list[SearchResult] | None = None
