"""Conversation persistence."""

from typing import Any

from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from polymath.crud._common import db_unavailable, require_db
from polymath.db.models import Conversation, utcnow

# Columns callers may change through update_conversation
UPDATABLE_FIELDS = frozenset({"title", "model", "is_favorite", "tags", "title_generated"})


async def create_conversation(
    db: AsyncSession | None,
    *,
    user_id: int,
    title: str,
    model: str,
) -> Conversation:
    db = require_db(db, "create conversation")
    conversation = Conversation(user_id=user_id, title=title, model=model, is_favorite=0, tags=[])
    db.add(conversation)
    await db.commit()
    await db.refresh(conversation)
    return conversation


async def get_conversations_by_user_id(
    db: AsyncSession | None,
    user_id: int,
    limit: int = 50,
) -> list[Conversation]:
    """Most recently active first."""
    if db_unavailable(db, "list conversations"):
        return []
    result = await db.execute(
        select(Conversation)
        .where(Conversation.user_id == user_id)
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_conversation_by_id(
    db: AsyncSession | None,
    conversation_id: int,
    user_id: int,
) -> Conversation | None:
    """Fetch a conversation scoped to its owner; another user's row reads as missing."""
    if db_unavailable(db, "get conversation"):
        return None
    result = await db.execute(
        select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def update_conversation(
    db: AsyncSession | None,
    conversation_id: int,
    user_id: int,
    **fields: Any,
) -> bool:
    """
    Apply a partial update and bump updated_at.

    Called with no fields it only refreshes the timestamp. Returns False when
    no row matched (missing or owned by someone else). Instances already
    loaded in the session are not refreshed.
    """
    db = require_db(db, "update conversation")
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update conversation fields: {sorted(unknown)}")

    result = await db.execute(
        update(Conversation)
        .where(Conversation.id == conversation_id, Conversation.user_id == user_id)
        .values(**fields, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount > 0


async def claim_title_generation(
    db: AsyncSession | None,
    conversation_id: int,
    user_id: int,
) -> bool:
    """
    Atomically flip title_generated from false to true.

    Only one caller ever sees True for a conversation, so concurrent first
    messages cannot both retitle it.
    """
    db = require_db(db, "claim conversation title")
    result = await db.execute(
        update(Conversation)
        .where(
            Conversation.id == conversation_id,
            Conversation.user_id == user_id,
            Conversation.title_generated.is_(False),
        )
        .values(title_generated=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def delete_conversation(
    db: AsyncSession | None,
    conversation_id: int,
    user_id: int,
) -> bool:
    """Delete a conversation with its messages and attached files."""
    db = require_db(db, "delete conversation")
    conversation = await get_conversation_by_id(db, conversation_id, user_id)
    if conversation is None:
        return False
    await db.delete(conversation)
    await db.commit()
    return True


async def search_conversations(
    db: AsyncSession | None,
    user_id: int,
    query: str,
    limit: int = 20,
) -> list[Conversation]:
    """Case-insensitive substring match on title or tags."""
    if db_unavailable(db, "search conversations"):
        return []
    needle = query.lower()
    result = await db.execute(
        select(Conversation)
        .where(
            Conversation.user_id == user_id,
            or_(
                func.lower(Conversation.title).contains(needle, autoescape=True),
                func.lower(cast(Conversation.tags, String)).contains(needle, autoescape=True),
            ),
        )
        .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
