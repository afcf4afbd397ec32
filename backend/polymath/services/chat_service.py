"""Chat orchestration: persist, build model context, reply, title."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from polymath import crud
from polymath.db.models import MessageRole
from polymath.exceptions import NotFoundError
from polymath.schemas.search import SearchResult
from polymath.services.llm import LLMMessage, LLMService
from polymath.services.web_search import WebSearchService

logger = logging.getLogger(__name__)


@dataclass
class SendMessageResult:
    message_id: int
    content: str
    web_search_results: list[SearchResult] | None


def build_search_context(results: list[SearchResult]) -> str:
    """Render search hits as the body of a synthetic system message."""
    search_context = "\n\n".join(f"{r.title}: {r.snippet} ({r.url})" for r in results)
    return f"Web search results:\n{search_context}"


class ChatService:
    """
    Runs one user turn of a conversation.

    Providers are injected per request; the service keeps no state between
    calls beyond what it writes to the database.
    """

    def __init__(self, llm: LLMService, search: WebSearchService):
        self.llm = llm
        self.search = search

    async def send_message(
        self,
        db: AsyncSession | None,
        *,
        user_id: int,
        conversation_id: int,
        message: str,
        include_web_search: bool = False,
    ) -> SendMessageResult:
        """
        Persist a user message, get the assistant reply, persist it.

        Steps run strictly in order. The user message is committed before the
        model is called, so a provider failure leaves it stored without a
        reply; nothing is rolled back.

        Raises:
            NotFoundError: conversation missing or owned by another user
            ProviderError: the model call failed
            DatabaseUnavailableError: no database configured
        """
        conversation = await crud.conversations.get_conversation_by_id(db, conversation_id, user_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")

        await crud.messages.create_message(
            db,
            conversation_id=conversation_id,
            role=MessageRole.USER.value,
            content=message,
        )

        history = await crud.messages.get_messages_by_conversation_id(db, conversation_id)
        llm_messages: list[LLMMessage] = [{"role": m.role, "content": m.content} for m in history]

        web_search_results: list[SearchResult] | None = None
        if include_web_search:
            web_search_results = await self.search.search(message)
            if web_search_results:
                # Context only; never persisted
                llm_messages.append({"role": "system", "content": build_search_context(web_search_results)})

        completion = await self.llm.complete(llm_messages, conversation.model)

        metadata: dict = {"model": conversation.model, "usage": completion.usage}
        if web_search_results is not None:
            metadata["web_search_results"] = len(web_search_results)

        assistant_message = await crud.messages.create_message(
            db,
            conversation_id=conversation_id,
            role=MessageRole.ASSISTANT.value,
            content=completion.content,
            metadata=metadata,
        )

        await self._maybe_generate_title(db, user_id=user_id, conversation_id=conversation_id, first_message=message)

        # Always bump updated_at so the conversation sorts as most recent
        await crud.conversations.update_conversation(db, conversation_id, user_id)

        logger.info(
            "Conversation %s: reply %s stored (web_search=%s, usage=%s)",
            conversation_id,
            assistant_message.id,
            include_web_search,
            completion.usage,
        )

        return SendMessageResult(
            message_id=assistant_message.id,
            content=completion.content,
            web_search_results=web_search_results,
        )

    async def _maybe_generate_title(
        self,
        db: AsyncSession | None,
        *,
        user_id: int,
        conversation_id: int,
        first_message: str,
    ) -> None:
        """Retitle the conversation once, on the first completed exchange."""
        claimed = await crud.conversations.claim_title_generation(db, conversation_id, user_id)
        if not claimed:
            return

        title = await self.llm.generate_title(first_message)
        if title:
            await crud.conversations.update_conversation(db, conversation_id, user_id, title=title)
