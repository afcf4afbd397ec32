"""Pydantic schemas for API request/response validation."""

from polymath.schemas.user import UserRead
from polymath.schemas.search import SearchResult
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
from polymath.schemas.advanced import (
    AudioUploadRequest,
    AudioUploadResponse,
    FileListResponse,
    FileResponse,
    FileUploadRequest,
    FileUploadResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
    TranscriptionRequest,
    TranscriptionResponse,
)
from polymath.schemas.code import (
    AnalyzeCodeRequest,
    AnalyzeCodeResponse,
    CodeFileCreateRequest,
    CodeFileCreatedResponse,
    CodeFileResponse,
    ExplainCodeRequest,
    ExplainCodeResponse,
    GenerateCodeRequest,
    GenerateCodeResponse,
    ProjectCreateRequest,
    ProjectCreatedResponse,
    ProjectResponse,
    ProjectUpdateRequest,
    ProjectWithFiles,
)

__all__ = [
    # User
    "UserRead",
    # Search
    "SearchResult",
    # Chat
    "ChatMessageResponse",
    "ConversationCreateRequest",
    "ConversationCreatedResponse",
    "ConversationListResponse",
    "ConversationResponse",
    "ConversationUpdateRequest",
    "ConversationWithMessages",
    "ModelResponse",
    "SendMessageRequest",
    "SendMessageResponse",
    # Advanced tools
    "AudioUploadRequest",
    "AudioUploadResponse",
    "FileListResponse",
    "FileResponse",
    "FileUploadRequest",
    "FileUploadResponse",
    "ImageGenerationRequest",
    "ImageGenerationResponse",
    "TranscriptionRequest",
    "TranscriptionResponse",
    # Code
    "AnalyzeCodeRequest",
    "AnalyzeCodeResponse",
    "CodeFileCreateRequest",
    "CodeFileCreatedResponse",
    "CodeFileResponse",
    "ExplainCodeRequest",
    "ExplainCodeResponse",
    "GenerateCodeRequest",
    "GenerateCodeResponse",
    "ProjectCreateRequest",
    "ProjectCreatedResponse",
    "ProjectResponse",
    "ProjectUpdateRequest",
    "ProjectWithFiles",
]
