"""Speech-to-text via the OpenAI Whisper API."""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
from openai import APIError, AsyncOpenAI

from polymath.config import Settings
from polymath.exceptions import InvalidInputError, ProviderError

logger = logging.getLogger(__name__)


@dataclass
class Transcription:
    text: str
    language: str | None = None
    duration: float | None = None


class TranscriptionService:
    """Transcribes audio given as bytes or as a URL to fetch."""

    def __init__(self, client: AsyncOpenAI, http_client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.http_client = http_client
        self.model = settings.transcription_model
        self.max_audio_size_bytes = settings.max_audio_size_bytes

    async def transcribe_bytes(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        language: str | None = None,
    ) -> Transcription:
        """
        Transcribe raw audio.

        Raises:
            ProviderError: the Whisper call failed
        """
        kwargs: dict = {
            "model": self.model,
            "file": (filename, data, mime_type),
            "response_format": "verbose_json",
        }
        if language:
            kwargs["language"] = language

        try:
            result = await self.client.audio.transcriptions.create(**kwargs)
        except APIError as e:
            logger.error("Transcription failed for %s: %s", filename, str(e), exc_info=True)
            raise ProviderError("Failed to transcribe audio") from e

        return Transcription(
            text=result.text,
            language=getattr(result, "language", None) or language,
            duration=getattr(result, "duration", None),
        )

    async def transcribe_url(self, audio_url: str, language: str | None = None) -> Transcription:
        """
        Download audio from a URL and transcribe it.

        The body is streamed and the download stops as soon as it is known to
        exceed the size limit, either from Content-Length or from the bytes read.

        Raises:
            InvalidInputError: the audio exceeds the size limit
            ProviderError: the download or the Whisper call failed
        """
        too_large = InvalidInputError(
            f"Audio file too large (max {self.max_audio_size_bytes // (1024 * 1024)}MB)"
        )
        try:
            async with self.http_client.stream("GET", audio_url, follow_redirects=True) as response:
                response.raise_for_status()

                declared = response.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > self.max_audio_size_bytes:
                    raise too_large

                data = bytearray()
                async for chunk in response.aiter_bytes():
                    data.extend(chunk)
                    if len(data) > self.max_audio_size_bytes:
                        raise too_large

                mime_type = response.headers.get("content-type", "audio/webm").split(";")[0].strip()
        except httpx.HTTPError as e:
            logger.error("Failed to download audio from %s: %s", audio_url, str(e), exc_info=True)
            raise ProviderError("Failed to transcribe audio") from e

        filename = urlparse(audio_url).path.rsplit("/", 1)[-1] or "audio"
        return await self.transcribe_bytes(bytes(data), filename, mime_type, language)
