"""Language model adapter over the Anthropic Messages API."""

import logging
import re
from dataclasses import dataclass, field
from typing import Literal, TypedDict

from anthropic import APIError, AsyncAnthropic

from polymath.config import Settings
from polymath.exceptions import ProviderError

logger = logging.getLogger(__name__)


class LLMMessage(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


class ModelInfo(TypedDict):
    name: str
    description: str
    max_tokens: int


# Models offered to the conversation picker
AVAILABLE_MODELS: dict[str, ModelInfo] = {
    "claude-sonnet-4-20250514": {
        "name": "Claude Sonnet 4",
        "description": "Balanced performance and capability",
        "max_tokens": 8192,
    },
    "claude-3-5-haiku-latest": {
        "name": "Claude 3.5 Haiku",
        "description": "Fast and efficient for most tasks",
        "max_tokens": 4096,
    },
    "claude-opus-4-20250514": {
        "name": "Claude Opus 4",
        "description": "Most capable, for complex reasoning",
        "max_tokens": 8192,
    },
}

TITLE_PROMPT = (
    "Generate a short, concise title (max 6 words) for this conversation. "
    "Only return the title, nothing else."
)
TITLE_MAX_WORDS = 6

_WRAPPING_QUOTES = re.compile(r"^[\"'“”‘’]+|[\"'“”‘’]+$")


@dataclass
class Completion:
    """Normalized model reply."""

    content: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)


def clean_title(raw: str) -> str:
    """Trim whitespace and wrapping quotes, and cap the title at six words."""
    title = _WRAPPING_QUOTES.sub("", raw.strip()).strip()
    words = title.split()
    if len(words) > TITLE_MAX_WORDS:
        title = " ".join(words[:TITLE_MAX_WORDS])
    return title


def split_system_messages(messages: list[LLMMessage]) -> tuple[str, list[dict]]:
    """
    Separate system turns from the conversation.

    The Messages API takes system text as a top-level parameter, so every
    system-role message is folded into one system prompt (in order) and the
    remaining user/assistant turns are passed through.
    """
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    turns = [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"]
    return "\n\n".join(system_parts), turns


class LLMService:
    """Stateless wrapper around one chat-completion call."""

    def __init__(self, client: AsyncAnthropic, settings: Settings):
        self.client = client
        self.default_model = settings.llm_model
        self.max_tokens = settings.llm_max_tokens
        self.temperature = settings.llm_temperature
        self.title_temperature = settings.llm_title_temperature
        self.title_max_tokens = settings.llm_title_max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMService":
        client = AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )
        return cls(client, settings)

    async def complete(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Completion:
        """
        Send the message list to the model and return the reply text.

        Raises:
            ProviderError: the API call failed for any reason
        """
        model = model or self.default_model
        system_prompt, turns = split_system_messages(messages)
        if max_tokens is None:
            model_limit = AVAILABLE_MODELS.get(model, {}).get("max_tokens", self.max_tokens)
            max_tokens = min(self.max_tokens, model_limit)

        request: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
            "messages": turns,
        }
        if system_prompt:
            request["system"] = system_prompt

        try:
            response = await self.client.messages.create(**request)
        except APIError as e:
            logger.error("LLM chat completion failed (model=%s): %s", model, str(e), exc_info=True)
            raise ProviderError("Failed to generate response from LLM") from e

        content = "".join(block.text for block in response.content if block.type == "text")
        usage = {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        }
        return Completion(content=content, model=model, usage=usage)

    async def generate_title(self, first_message: str) -> str | None:
        """
        Derive a short conversation title from the opening message.

        Returns None when the call fails or yields nothing usable, so the
        caller can keep whatever title is already stored.
        """
        try:
            completion = await self.complete(
                [
                    {"role": "system", "content": TITLE_PROMPT},
                    {"role": "user", "content": first_message},
                ],
                temperature=self.title_temperature,
                max_tokens=self.title_max_tokens,
            )
        except ProviderError:
            logger.warning("Title generation failed; keeping existing title")
            return None

        title = clean_title(completion.content)
        return title or None
