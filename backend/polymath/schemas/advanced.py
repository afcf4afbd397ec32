"""Pydantic schemas for file upload, image generation and transcription."""

from datetime import datetime

from pydantic import BaseModel, Field

from polymath.schemas.base import BaseSchema, IDMixin


# Request schemas
class FileUploadRequest(BaseModel):
    """File sent inline as base64."""

    filename: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., description="Base64-encoded file bytes")
    mime_type: str = Field(..., min_length=1, max_length=127)
    conversation_id: int | None = None


class ImageGenerationRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)
    conversation_id: int | None = None


class TranscriptionRequest(BaseModel):
    """Transcribe audio already reachable at a URL."""

    audio_url: str = Field(..., min_length=1)
    language: str | None = Field(None, max_length=16)


class AudioUploadRequest(BaseModel):
    """Audio recording sent inline as base64, stored then transcribed."""

    filename: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., description="Base64-encoded audio bytes")
    mime_type: str = Field(..., min_length=1, max_length=127)
    language: str | None = Field(None, max_length=16)
    conversation_id: int | None = None


# Response schemas
class FileUploadResponse(BaseModel):
    id: int
    url: str
    extracted_text: str | None = None


class FileResponse(BaseSchema, IDMixin):
    """Stored file metadata."""

    user_id: int
    conversation_id: int | None = None
    filename: str
    file_key: str
    url: str
    mime_type: str | None = None
    size: int | None = None
    extracted_text: str | None = None
    created_at: datetime


class FileListResponse(BaseModel):
    files: list[FileResponse]
    total: int


class ImageGenerationResponse(BaseModel):
    file_id: int
    url: str


class TranscriptionResponse(BaseModel):
    text: str
    language: str | None = None


class AudioUploadResponse(TranscriptionResponse):
    file_id: int
    url: str
