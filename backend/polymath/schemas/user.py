"""User schemas."""

from datetime import datetime

from polymath.schemas.base import BaseSchema, IDMixin, TimestampMixin


class UserRead(BaseSchema, IDMixin, TimestampMixin):
    """Schema for reading user data."""

    open_id: str
    name: str | None
    email: str | None
    login_method: str | None
    role: str
    last_signed_in: datetime
