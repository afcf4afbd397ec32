"""File metadata persistence."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from polymath.crud._common import db_unavailable, require_db
from polymath.db.models import File


async def create_file(
    db: AsyncSession | None,
    *,
    user_id: int,
    filename: str,
    file_key: str,
    url: str,
    mime_type: str | None,
    size: int | None,
    extracted_text: str | None = None,
    conversation_id: int | None = None,
) -> File:
    db = require_db(db, "create file")
    file = File(
        user_id=user_id,
        conversation_id=conversation_id,
        filename=filename,
        file_key=file_key,
        url=url,
        mime_type=mime_type,
        size=size,
        extracted_text=extracted_text,
    )
    db.add(file)
    await db.commit()
    await db.refresh(file)
    return file


async def get_files_by_user_id(db: AsyncSession | None, user_id: int) -> list[File]:
    """Newest first."""
    if db_unavailable(db, "list files"):
        return []
    result = await db.execute(
        select(File).where(File.user_id == user_id).order_by(File.created_at.desc(), File.id.desc())
    )
    return list(result.scalars().all())


async def get_files_by_conversation_id(db: AsyncSession | None, conversation_id: int) -> list[File]:
    if db_unavailable(db, "list conversation files"):
        return []
    result = await db.execute(
        select(File)
        .where(File.conversation_id == conversation_id)
        .order_by(File.created_at.asc(), File.id.asc())
    )
    return list(result.scalars().all())
