"""Message persistence. Messages are append-only."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polymath.crud._common import db_unavailable, require_db
from polymath.db.models import Message


async def create_message(
    db: AsyncSession | None,
    *,
    conversation_id: int,
    role: str,
    content: str,
    metadata: dict | None = None,
) -> Message:
    db = require_db(db, "create message")
    message = Message(
        conversation_id=conversation_id,
        role=role,
        content=content,
        metadata_json=metadata,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return message


async def get_messages_by_conversation_id(db: AsyncSession | None, conversation_id: int) -> list[Message]:
    """Full history in insertion order."""
    if db_unavailable(db, "get messages"):
        return []
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(result.scalars().all())
