"""API routes for file upload, image generation and audio transcription."""

import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Annotated
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from polymath import crud
from polymath.api.deps import (
    AppSettings,
    CurrentUser,
    DbSession,
    get_image_service,
    get_storage_service,
    get_transcription_service,
)
from polymath.config import sanitize_error
from polymath.exceptions import InvalidInputError, NotFoundError
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
from polymath.services import ImageService, StorageService, TranscriptionService, file_processor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/advanced", tags=["advanced"])


# =============================================================================
# HELPERS
# =============================================================================


def _decode_base64(content: str) -> bytes:
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidInputError("Content is not valid base64")


def _check_size(data: bytes, limit: int, kind: str) -> None:
    if len(data) > limit:
        raise InvalidInputError(f"{kind} too large (max {limit // (1024 * 1024)}MB)")


async def _check_conversation(db: AsyncSession | None, conversation_id: int | None, user_id: int) -> None:
    """A file may only be attached to one of the caller's own conversations."""
    if conversation_id is None:
        return
    conversation = await crud.conversations.get_conversation_by_id(db, conversation_id, user_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")


async def _store(storage: StorageService, file_key: str, data: bytes, mime_type: str) -> str:
    try:
        return await storage.put_object(file_key, data, mime_type)
    except Exception as e:
        logger.error("Failed to store %s: %s", file_key, str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to store file."),
        )


# =============================================================================
# FILES
# =============================================================================


@router.post("/files", response_model=FileUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    request: FileUploadRequest,
    db: DbSession,
    user: CurrentUser,
    settings: AppSettings,
    storage: Annotated[StorageService, Depends(get_storage_service)],
):
    """
    Upload a file sent as base64 and extract its text.

    Flow:
    1. Decode and size-check the payload (nothing is stored on failure)
    2. Store the bytes under a random key scoped to the user
    3. Derive text for text/markdown/csv/JSON/PDF files
    4. Record the file metadata

    The declared MIME type is trusted as-is.
    """
    data = _decode_base64(request.content)
    _check_size(data, settings.max_upload_size_bytes, "File")
    await _check_conversation(db, request.conversation_id, user.id)

    file_key = f"{user.id}/files/{uuid4().hex}-{request.filename}"
    url = await _store(storage, file_key, data, request.mime_type)

    extracted_text = file_processor.extract_text(data, request.mime_type)

    file = await crud.files.create_file(
        db,
        user_id=user.id,
        conversation_id=request.conversation_id,
        filename=request.filename,
        file_key=file_key,
        url=url,
        mime_type=request.mime_type,
        size=len(data),
        extracted_text=extracted_text,
    )

    logger.info("File uploaded: %s (%d bytes, text=%s)", request.filename, len(data), extracted_text is not None)
    return FileUploadResponse(id=file.id, url=url, extracted_text=extracted_text)


@router.get("/files", response_model=FileListResponse)
async def list_files(db: DbSession, user: CurrentUser):
    """List the user's files, newest first."""
    files = await crud.files.get_files_by_user_id(db, user.id)
    return FileListResponse(
        files=[FileResponse.model_validate(f) for f in files],
        total=len(files),
    )


# =============================================================================
# IMAGES
# =============================================================================


@router.post("/images", response_model=ImageGenerationResponse, status_code=status.HTTP_201_CREATED)
async def generate_image(
    request: ImageGenerationRequest,
    db: DbSession,
    user: CurrentUser,
    images: Annotated[ImageService, Depends(get_image_service)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
):
    """Generate an image from a prompt and save it to the user's files."""
    await _check_conversation(db, request.conversation_id, user.id)

    image_bytes = await images.generate(request.prompt)

    file_key = f"{user.id}/generated/{uuid4().hex}.png"
    url = await _store(storage, file_key, image_bytes, "image/png")

    stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    file = await crud.files.create_file(
        db,
        user_id=user.id,
        conversation_id=request.conversation_id,
        filename=f"generated-{stamp}.png",
        file_key=file_key,
        url=url,
        mime_type="image/png",
        size=len(image_bytes),
        extracted_text=f"Generated from prompt: {request.prompt}",
    )
    return ImageGenerationResponse(file_id=file.id, url=url)


# =============================================================================
# TRANSCRIPTION
# =============================================================================


@router.post("/transcriptions", response_model=TranscriptionResponse)
async def transcribe_audio(
    request: TranscriptionRequest,
    user: CurrentUser,
    transcriber: Annotated[TranscriptionService, Depends(get_transcription_service)],
):
    """Transcribe audio that is already reachable at a URL."""
    transcription = await transcriber.transcribe_url(request.audio_url, request.language)
    return TranscriptionResponse(text=transcription.text, language=transcription.language)


@router.post(
    "/transcriptions/upload",
    response_model=AudioUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_and_transcribe(
    request: AudioUploadRequest,
    db: DbSession,
    user: CurrentUser,
    settings: AppSettings,
    storage: Annotated[StorageService, Depends(get_storage_service)],
    transcriber: Annotated[TranscriptionService, Depends(get_transcription_service)],
):
    """
    Store a recording and transcribe it.

    The size limit is enforced before anything is stored. The transcript is
    kept as the file's extracted text.
    """
    data = _decode_base64(request.content)
    _check_size(data, settings.max_audio_size_bytes, "Audio file")
    await _check_conversation(db, request.conversation_id, user.id)

    file_key = f"{user.id}/audio/{uuid4().hex}-{request.filename}"
    url = await _store(storage, file_key, data, request.mime_type)

    transcription = await transcriber.transcribe_bytes(data, request.filename, request.mime_type, request.language)

    file = await crud.files.create_file(
        db,
        user_id=user.id,
        conversation_id=request.conversation_id,
        filename=request.filename,
        file_key=file_key,
        url=url,
        mime_type=request.mime_type,
        size=len(data),
        extracted_text=transcription.text,
    )
    return AudioUploadResponse(
        file_id=file.id,
        url=url,
        text=transcription.text,
        language=transcription.language,
    )
