"""Services for external integrations and chat orchestration."""

from polymath.services.chat_service import ChatService, SendMessageResult
from polymath.services.code_assistant import CodeAssistant
from polymath.services.file_processor import file_processor
from polymath.services.images import ImageService
from polymath.services.llm import AVAILABLE_MODELS, Completion, LLMService
from polymath.services.storage import StorageService
from polymath.services.transcription import Transcription, TranscriptionService
from polymath.services.web_search import WebSearchService

__all__ = [
    "AVAILABLE_MODELS",
    "ChatService",
    "CodeAssistant",
    "Completion",
    "ImageService",
    "LLMService",
    "SendMessageResult",
    "StorageService",
    "Transcription",
    "TranscriptionService",
    "WebSearchService",
    "file_processor",
]
