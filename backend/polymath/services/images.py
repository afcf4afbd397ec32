"""Text-to-image generation via the OpenAI Images API."""

import base64
import logging

from openai import APIError, AsyncOpenAI

from polymath.config import Settings
from polymath.exceptions import ProviderError

logger = logging.getLogger(__name__)


class ImageService:
    """Generates one PNG per prompt and returns its bytes."""

    def __init__(self, client: AsyncOpenAI, settings: Settings):
        self.client = client
        self.model = settings.image_model
        self.size = settings.image_size

    async def generate(self, prompt: str) -> bytes:
        """
        Generate an image for the prompt.

        Raises:
            ProviderError: the API call failed or returned no image
        """
        kwargs: dict = {"model": self.model, "prompt": prompt, "size": self.size, "n": 1}
        # gpt-image models always answer with base64 and reject response_format
        if not self.model.startswith("gpt-image"):
            kwargs["response_format"] = "b64_json"

        try:
            response = await self.client.images.generate(**kwargs)
        except APIError as e:
            logger.error("Image generation failed: %s", str(e), exc_info=True)
            raise ProviderError("Failed to generate image") from e

        if not response.data or not response.data[0].b64_json:
            logger.error("Image generation returned no data for model=%s", self.model)
            raise ProviderError("Failed to generate image")

        return base64.b64decode(response.data[0].b64_json)
