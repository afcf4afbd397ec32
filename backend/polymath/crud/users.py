"""User persistence."""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from polymath.crud._common import db_unavailable, require_db
from polymath.db.models import User, UserRole, utcnow


async def get_user_by_open_id(db: AsyncSession | None, open_id: str) -> User | None:
    if db_unavailable(db, "get user"):
        return None
    result = await db.execute(select(User).where(User.open_id == open_id))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession | None, user_id: int) -> User | None:
    if db_unavailable(db, "get user"):
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def upsert_user(
    db: AsyncSession | None,
    open_id: str,
    *,
    name: str | None = None,
    email: str | None = None,
    login_method: str | None = None,
    role: str | None = None,
    owner_open_id: str | None = None,
) -> User:
    """
    Insert or refresh a user keyed by open_id.

    Only fields that are provided overwrite stored values; last_signed_in is
    always refreshed. When no role is given, the configured owner gets admin.
    open_id itself is never rewritten.
    """
    db = require_db(db, "upsert user")
    if not open_id:
        raise ValueError("User open_id is required for upsert")

    if role is None and owner_open_id is not None and open_id == owner_open_id:
        role = UserRole.ADMIN.value

    user = await get_user_by_open_id(db, open_id)
    if user is None:
        user = User(
            open_id=open_id,
            name=name,
            email=email,
            login_method=login_method,
            role=role or UserRole.USER.value,
        )
        try:
            # Savepoint so a concurrent insert doesn't poison the caller's transaction
            async with db.begin_nested():
                db.add(user)
                await db.flush()
        except IntegrityError:
            user = await get_user_by_open_id(db, open_id)
            if user is None:
                raise
        else:
            await db.commit()
            await db.refresh(user)
            return user

    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    if login_method is not None:
        user.login_method = login_method
    if role is not None:
        user.role = role
    user.last_signed_in = utcnow()

    await db.commit()
    await db.refresh(user)
    return user
